"""Analytic sphere primitive and the shared hit record.

This module provides the HitRecord dataclass returned by every geometric
intersection routine, the front-face orientation rule, and ray-sphere
intersection by solving the quadratic in half-b form.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.geometry.sphere import hit_sphere
    >>> # Use hit_sphere within a Taichi kernel:
    >>> # record = hit_sphere(ray, center, radius, 0.001, 100.0)
"""

import taichi as ti

from src.pathtracer.core.ray import Ray, dot, length_squared, ray_at, real, vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, oriented
            against the incoming ray. Only valid if hit == 1.
        front_face: Whether the ray hit the outside of the surface (1) or
            the inside (0). Only valid if hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def face_normal(direction: vec3, outward_normal: vec3):
    """Orient a surface normal against the incoming ray.

    Args:
        direction: The ray direction.
        outward_normal: The unit normal pointing out of the surface.

    Returns:
        A tuple (normal, front_face) where front_face is 1 when the ray
        arrives from outside (direction . outward_normal < 0). The returned
        normal is the outward normal for front faces and its negation
        otherwise, so it always points to the side the ray came from.
    """
    front_face = 0
    normal = -outward_normal
    if dot(direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return normal, front_face


@ti.func
def hit_sphere(
    ray: Ray,
    center: vec3,
    radius: real,
    t_min: real,
    t_max: real,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The intersection is found by solving:
        |origin + t * direction - center|^2 = radius^2

    which expands to the quadratic a*t^2 + 2*half_b*t + c = 0 with:
        oc = origin - center
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2

    A non-positive discriminant (including the tangent case) is a miss.
    Otherwise the roots are tried in ascending order and the first one
    strictly inside (t_min, t_max) is reported, which is the nearest valid
    intersection.

    Args:
        ray: The ray to test.
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        t_min: Lower bound (exclusive) for accepted t values.
        t_max: Upper bound (exclusive) for accepted t values.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    oc = ray.origin - center
    a = length_squared(ray.direction)
    half_b = dot(oc, ray.direction)
    c = length_squared(oc) - radius * radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = (-half_b + root) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - center) / radius
            normal, front_face = face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
            )

    return result
