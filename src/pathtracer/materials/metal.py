"""Metal (specular reflective) material implementation.

Metals reflect the incident direction about the surface normal:
    R = I - 2(I . N)N

A fuzz parameter perturbs the reflected direction by a random point in a ball
of radius fuzz, blurring the reflection. Perturbations that push the ray below
the surface absorb it instead.

Example:
    >>> from src.pathtracer.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> Metal(albedo=(0.8, 0.8, 0.8), fuzz=4.0).fuzz
    1.0
"""

from dataclasses import dataclass

import taichi as ti

from src.pathtracer.core.ray import dot, real, reflect, unit_vector, vec3
from src.pathtracer.core.sampler import random_in_unit_sphere
from src.pathtracer.materials.material import validate_albedo


@dataclass(frozen=True)
class Metal:
    """Metal (specular reflective) material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: The reflection blur radius. Silently clamped to [0, 1].
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        object.__setattr__(self, "fuzz", min(max(float(self.fuzz), 0.0), 1.0))


@ti.func
def scatter_metal(
    stream: ti.i32,
    albedo: vec3,
    fuzz: real,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        stream: The random stream of the pixel being rendered.
        albedo: The reflective color (RGB).
        fuzz: The reflection blur radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction.
        normal: The surface normal, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected direction (normalized), or the
          zero vector when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the scattered ray leaves the surface, 0 if absorbed.
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    scattered = reflected + fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    direction = vec3(0.0, 0.0, 0.0)
    if dot(scattered, normal) > 0.0:
        did_scatter = 1
        direction = unit_vector(scattered)

    return direction, albedo, did_scatter
