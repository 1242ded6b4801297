"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a random unit vector. The
endpoint of that sum is uniform on a unit sphere tangent to the surface, which
distributes directions proportionally to cos(theta) about the normal, exactly
the Lambertian distribution. The attenuation is therefore just the albedo.

Example:
    >>> from src.pathtracer.materials.lambertian import Lambertian
    >>> grey = Lambertian(albedo=(0.5, 0.5, 0.5))
    >>> # Within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(stream, albedo, normal)
"""

from dataclasses import dataclass

import taichi as ti

from src.pathtracer.core.ray import near_zero, unit_vector, vec3
from src.pathtracer.core.sampler import random_unit_vector
from src.pathtracer.materials.material import validate_albedo


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@ti.func
def scatter_lambertian(stream: ti.i32, albedo: vec3, normal: vec3):
    """Sample a scattered ray direction for a Lambertian surface.

    A Lambertian surface always scatters.

    Args:
        stream: The random stream of the pixel being rendered.
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction (normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1.
    """
    direction = normal + random_unit_vector(stream)

    # The random vector can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal

    return unit_vector(direction), albedo, 1
