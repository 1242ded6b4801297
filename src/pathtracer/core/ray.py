"""Ray data structure and vector algebra for double precision ray tracing.

This module provides the ``vec3`` value type, the Ray dataclass and the vector
utility functions used by every intersection and scattering routine. All
operations are Taichi functions so they can be inlined into render kernels.

``vec3`` is a Taichi vector of three f64 components. It behaves as an
immutable value inside kernels and supports negation, component-wise
add/sub/mul and scalar mul/div through Taichi's operator overloads; the
functions below supply the remaining operations.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 5.0)  # (0, 0, -5): the direction is normalized
"""

from collections.abc import Sequence

import taichi as ti

# Scalar and vector types used across the renderer
real = ti.f64
vec3 = ti.types.vector(3, ti.f64)

# Tolerance below which a vector counts as degenerate
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Always unit length when
            the ray is built with ``make_ray``.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray, normalizing the supplied direction.

    Because the stored direction is unit length, the ray parameter t of a
    hit equals its distance from the origin.

    Args:
        origin: The starting point of the ray.
        direction: Any non-zero direction vector.

    Returns:
        A new Ray instance with a unit direction.
    """
    return Ray(origin=origin, direction=unit_vector(direction))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


@ti.func
def length(v: vec3) -> real:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Args:
        v: The input vector. Must have non-zero length; a zero vector
            divides by zero and yields non-finite components.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / length(v)


@ti.func
def sqrt_components(v: vec3) -> vec3:
    """Take the square root of each component (gamma 2 correction)."""
    return vec3(ti.sqrt(v.x), ti.sqrt(v.y), ti.sqrt(v.z))


@ti.func
def lerp(a: vec3, b: vec3, t: real) -> vec3:
    """Linearly blend from a (t = 0) to b (t = 1)."""
    return (1.0 - t) * a + t * b


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 (v . n) n. With a unit normal the component along the
    normal flips sign while the tangential component is preserved, so the
    angle of reflection equals the angle of incidence.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Python-side Helpers
# =============================================================================


def to_tuple3(values: Sequence[float], name: str = "vector") -> tuple[float, float, float]:
    """Convert a 3-sequence to a tuple of floats for scene descriptions.

    Args:
        values: Any sequence of three numbers.
        name: Name used in the error message.

    Returns:
        The components as a tuple of Python floats.

    Raises:
        ValueError: If the sequence does not have exactly three components.
    """
    components = tuple(float(c) for c in values)
    if len(components) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(components)}")
    return components  # type: ignore[return-value]
