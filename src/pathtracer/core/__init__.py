"""Core rendering module.

Components:
    ray: vec3 value type, Ray data structure and vector utilities
    sampler: Per-pixel random streams and Monte Carlo sampling
    integrator: Depth-limited path tracing and the render kernel
    progressive: Batched rendering with progress reporting

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    ray_at,
    real,
    reflect,
    sqrt_components,
    unit_vector,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    random_float,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    random_vec_range,
    seed_streams,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "real",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "sqrt_components",
    "lerp",
    "dot",
    "cross",
    "reflect",
    "near_zero",
    "MAX_STREAMS",
    "seed_streams",
    "random_float",
    "random_range",
    "random_vec_range",
    "random_in_unit_sphere",
    "random_unit_vector",
]
