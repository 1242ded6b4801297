"""Signed distance fields for sphere-traced geometry.

A signed distance field (SDF) maps a point to a lower bound on its distance
to the nearest surface, negative inside. The raymarcher relies on that bound:
stepping a ray forward by the estimate can never pass through a surface.

Two fields are supported:

SphereField:
    distance = |p - center| - radius, normal = unit(p - center).

SierpinskiTetrasphere:
    An iterated function system fractal. The offset v = p - center is folded
    into one octant-like wedge by three conditional reflections, then scaled
    about (1, 1, 1):

        fold (x, y) if x + y < 0:  (x, y, z) -> (-y, -x, z)
        fold (x, z) if x + z < 0:  (x, y, z) -> (-z, y, -x)
        fold (y, z) if y + z < 0:  (x, y, z) -> (x, -z, -y)
        v = 2 v - (1, 1, 1)

    After n iterations the distance is (|v| - 0.9) * 2^-n; the rescale undoes
    the n doublings so the estimate stays a valid lower bound.

    Its normal estimate is a placeholder returning the constant z axis,
    which is fine for diffuse shading but wrong for specular reflection.
    Setting ``gradient_normals=True`` estimates the normal from the central
    finite difference gradient of the distance instead.

Fields are described on the Python side by frozen dataclasses and evaluated in
kernels through the FieldParams struct, dispatching on SdfKind.
"""

from dataclasses import dataclass
from enum import IntEnum

import taichi as ti

from src.pathtracer.core.ray import length, real, to_tuple3, unit_vector, vec3

# Offset of the tetrasphere's bounding sphere
TETRASPHERE_RADIUS = 0.9

# Step used for finite difference normals
GRADIENT_STEP = 1e-6


class SdfKind(IntEnum):
    """Enumeration of supported signed distance fields."""

    SPHERE = 0
    SIERPINSKI_TETRASPHERE = 1


@dataclass(frozen=True)
class SphereField:
    """Signed distance field of a sphere.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
    """

    center: tuple[float, float, float]
    radius: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_tuple3(self.center, "center"))
        if self.radius <= 0.0:
            raise ValueError(f"Sphere field radius must be positive, got {self.radius}")


@dataclass(frozen=True)
class SierpinskiTetrasphere:
    """Sierpinski tetrahedron fractal built from folded spheres.

    Attributes:
        center: The center of the fractal.
        iterations: Number of folding iterations (0 gives a sphere of radius 0.9).
        gradient_normals: Estimate normals from the distance gradient instead
            of the constant placeholder.
    """

    center: tuple[float, float, float]
    iterations: int
    gradient_normals: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_tuple3(self.center, "center"))
        if self.iterations < 0:
            raise ValueError(f"Iteration count must be non-negative, got {self.iterations}")


SignedDistanceField = SphereField | SierpinskiTetrasphere


@ti.dataclass
class FieldParams:
    """Kernel-side parameters of a signed distance field.

    Attributes:
        kind: The SdfKind of the field.
        center: The field's center.
        radius: Sphere radius (SPHERE only).
        iterations: Folding iterations (SIERPINSKI_TETRASPHERE only).
        gradient_normals: 1 to estimate normals by finite differences
            (SIERPINSKI_TETRASPHERE only).
    """

    kind: ti.i32
    center: vec3
    radius: real
    iterations: ti.i32
    gradient_normals: ti.i32


def field_kind(field: SignedDistanceField) -> SdfKind:
    """Get the SdfKind tag of a field description.

    Raises:
        TypeError: If the object is not a supported field.
    """
    if isinstance(field, SphereField):
        return SdfKind.SPHERE
    if isinstance(field, SierpinskiTetrasphere):
        return SdfKind.SIERPINSKI_TETRASPHERE
    raise TypeError(f"Unsupported signed distance field: {type(field).__name__}")


# =============================================================================
# Distance Estimates
# =============================================================================


@ti.func
def sphere_distance(center: vec3, radius: real, point: vec3) -> real:
    """Signed distance from a point to a sphere surface."""
    return length(point - center) - radius


@ti.func
def tetrasphere_distance(center: vec3, iterations: ti.i32, point: vec3) -> real:
    """Distance estimate of the Sierpinski tetrasphere.

    Args:
        center: The center of the fractal.
        iterations: Number of folding iterations.
        point: The point to evaluate.

    Returns:
        A lower bound on the distance to the fractal surface.
    """
    v = point - center
    scale = 1.0
    for _ in range(iterations):
        if v.x + v.y < 0.0:
            v = vec3(-v.y, -v.x, v.z)
        if v.x + v.z < 0.0:
            v = vec3(-v.z, v.y, -v.x)
        if v.y + v.z < 0.0:
            v = vec3(v.x, -v.z, -v.y)
        v = 2.0 * v - vec3(1.0, 1.0, 1.0)
        scale *= 0.5
    return (length(v) - TETRASPHERE_RADIUS) * scale


@ti.func
def distance_estimate(field: FieldParams, point: vec3) -> real:
    """Evaluate a field's distance lower bound at a point.

    Args:
        field: The field parameters.
        point: The point to evaluate.

    Returns:
        The signed distance estimate (negative inside the surface).
    """
    distance = 0.0
    if field.kind == int(SdfKind.SPHERE):
        distance = sphere_distance(field.center, field.radius, point)
    elif field.kind == int(SdfKind.SIERPINSKI_TETRASPHERE):
        distance = tetrasphere_distance(field.center, field.iterations, point)
    return distance


@ti.func
def gradient_normal(field: FieldParams, point: vec3) -> vec3:
    """Estimate a surface normal from the central difference gradient.

    Args:
        field: The field parameters.
        point: A point on or near the surface.

    Returns:
        The normalized gradient of the distance estimate.
    """
    h = GRADIENT_STEP
    dx = vec3(h, 0.0, 0.0)
    dy = vec3(0.0, h, 0.0)
    dz = vec3(0.0, 0.0, h)
    gradient = vec3(
        distance_estimate(field, point + dx) - distance_estimate(field, point - dx),
        distance_estimate(field, point + dy) - distance_estimate(field, point - dy),
        distance_estimate(field, point + dz) - distance_estimate(field, point - dz),
    )
    return unit_vector(gradient)


@ti.func
def normal_estimate(field: FieldParams, point: vec3) -> vec3:
    """Estimate the outward surface normal of a field at a point.

    Args:
        field: The field parameters.
        point: A point on or near the surface.

    Returns:
        A unit normal. For the tetrasphere this is the constant z axis
        unless gradient normals were requested.
    """
    normal = vec3(0.0, 0.0, 1.0)
    if field.kind == int(SdfKind.SPHERE):
        normal = unit_vector(point - field.center)
    elif field.kind == int(SdfKind.SIERPINSKI_TETRASPHERE):
        if field.gradient_normals == 1:
            normal = gradient_normal(field, point)
    return normal
