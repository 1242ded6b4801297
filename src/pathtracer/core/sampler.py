"""Per-pixel random streams and Monte Carlo sampling helpers.

Every pixel owns one pseudo-random stream: a 32-bit xorshift state stored in
a Taichi field and indexed by the pixel's stream index. A stream is only ever
advanced by the thread rendering that pixel, so no generator state is shared
between parallel workers and a render is reproducible for a given seed no
matter how Taichi schedules the pixel loop.

Streams are seeded by hashing the global seed together with the stream
index, which decorrelates neighbouring pixels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.sampler import random_unit_vector, seed_streams
    >>> seed_streams(seed=42, count=16)
    >>> # Within a Taichi kernel, pixel k draws from stream k:
    >>> # direction = random_unit_vector(k)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, validate_seed
from src.pathtracer.core.ray import length_squared, real, vec3

# One stream per pixel of the largest supported render target
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# Scale mapping the top 24 bits of a draw onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


# =============================================================================
# Stream State
# =============================================================================


@ti.func
def _hash_u32(value: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    x = value
    x = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    x *= ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x *= ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def seed_stream(stream: ti.i32, seed: ti.u32):
    """Derive the initial state of one stream from the global seed.

    Args:
        stream: Index of the stream (the pixel index during rendering).
        seed: The global seed.
    """
    state = _hash_u32(seed ^ _hash_u32(ti.cast(stream, ti.u32) + ti.u32(1)))
    # xorshift has a fixed point at zero
    if state == ti.u32(0):
        state = ti.u32(1)
    _rng_state[stream] = state


@ti.func
def next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream with xorshift32 and return the new state.

    Seeded states are never zero, so a zero state marks a stream that was
    never seeded. It is seeded with seed 0 on first use; otherwise every draw
    would be 0 forever.
    """
    if _rng_state[stream] == ti.u32(0):
        seed_stream(stream, ti.u32(0))
    x = _rng_state[stream]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_state[stream] = x
    return x


@ti.kernel
def _seed_streams_kernel(seed: ti.u32, count: ti.i32):
    for stream in range(count):
        seed_stream(stream, seed)


def seed_streams(seed: int, count: int) -> None:
    """Seed the first ``count`` streams from a global seed.

    Args:
        seed: Global seed in [0, 2**31).
        count: Number of streams to seed (usually width * height).

    Raises:
        ValueError: If the seed is out of range or count exceeds MAX_STREAMS.
    """
    validate_seed(seed)
    if not 0 < count <= MAX_STREAMS:
        raise ValueError(f"Stream count must be in [1, {MAX_STREAMS}], got {count}")
    _seed_streams_kernel(seed, count)


# =============================================================================
# Uniform Draws
# =============================================================================


@ti.func
def random_float(stream: ti.i32) -> real:
    """Draw a uniform float in [0, 1) from a stream."""
    return ti.cast(next_u32(stream) >> ti.u32(8), real) * _INV_2_POW_24


@ti.func
def random_range(stream: ti.i32, low: real, high: real) -> real:
    """Draw a uniform float in [low, high) from a stream."""
    return low + (high - low) * random_float(stream)


@ti.func
def random_vec_range(stream: ti.i32, low: real, high: real) -> vec3:
    """Draw a vector whose components are uniform in [low, high)."""
    x = random_range(stream, low, high)
    y = random_range(stream, low, high)
    z = random_range(stream, low, high)
    return vec3(x, y, z)


# =============================================================================
# Random Directions for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit ball.

    Uses rejection sampling over the cube [-1, 1)^3, which yields points
    uniformly distributed in the ball. Each attempt succeeds with probability
    pi / 6, so the loop terminates quickly.

    Returns:
        A random point with squared length <= 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    while found == 0:
        p = random_vec_range(stream, -1.0, 1.0)
        if length_squared(p) <= 1.0:
            found = 1
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Samples an azimuth angle in [0, 2 pi) and a height in [-1, 1); by
    Archimedes' hat-box theorem the resulting point is uniform on the sphere.

    Returns:
        A random unit vector.
    """
    angle = random_range(stream, 0.0, 2.0 * tm.pi)
    height = random_range(stream, -1.0, 1.0)
    radius = ti.sqrt(1.0 - height * height)
    return vec3(radius * ti.cos(angle), radius * ti.sin(angle), height)
