"""Sphere tracing of signed distance fields.

The raymarcher walks a ray forward by the field's distance estimate until the
estimate drops below epsilon (a hit), the ray passes t_max, or the step budget
runs out. Running out of steps is an ordinary miss: rays grazing a surface
converge slowly and are simply reported as escaping.

Raymarched hits are always treated as front-facing; the normal comes from the
field's normal estimate without orientation against the ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.geometry.raymarcher import march
    >>> # Use march within a Taichi kernel:
    >>> # record = march(ray, field, 100, 1e-5, 0.001, 100.0)
"""

import taichi as ti

from src.pathtracer.core.ray import Ray, ray_at, real
from src.pathtracer.geometry.sdf import FieldParams, distance_estimate, normal_estimate
from src.pathtracer.geometry.sphere import HitRecord, make_miss_record


@ti.func
def march(
    ray: Ray,
    field: FieldParams,
    max_steps: ti.i32,
    epsilon: real,
    t_min: real,
    t_max: real,
) -> HitRecord:
    """Intersect a ray with a signed distance field by sphere tracing.

    Starting at t = t_min, each step evaluates the field at ray_at(t). An
    estimate below epsilon reports a hit at the current t; otherwise t
    advances by the estimate, which is safe because the estimate is a lower
    bound on the distance to the surface.

    Args:
        ray: The ray to march (unit direction).
        field: The signed distance field.
        max_steps: Maximum number of field evaluations.
        epsilon: Surface proximity threshold for a hit.
        t_min: Starting ray parameter.
        t_max: The march gives up once t exceeds this value.

    Returns:
        A HitRecord with front_face = 1 on a hit, or a miss record.
    """
    result = make_miss_record()
    t = t_min
    step = 0
    done = 0

    while done == 0 and step < max_steps:
        point = ray_at(ray, t)
        distance = distance_estimate(field, point)
        if distance < epsilon:
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal_estimate(field, point),
                front_face=1,
            )
            done = 1
        else:
            t += distance
            if t > t_max:
                done = 1
        step += 1

    return result
