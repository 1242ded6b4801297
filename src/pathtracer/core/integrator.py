"""Depth-limited Monte Carlo path tracing integrator.

This module implements the radiance estimate of a single camera ray
(``ray_color``) and the render kernel that averages jittered samples per
pixel into an accumulation buffer.

A path is traced by repeatedly intersecting the scene and asking the hit
material for a scattered ray:

- a miss returns the sky gradient, scaled by the product of the attenuations
  collected so far
- a hit that scatters multiplies the running product by the attenuation and
  continues from the hit point
- a hit that does not scatter, or running out of depth, returns black

This is the iterative form of the recursion
``ray_color(r, d) = attenuation * ray_color(scattered, d - 1)``, since Taichi
functions cannot recurse.

Every pixel draws its jitter and scattering decisions from its own random
stream (see sampler.py), indexed by the pixel's position in the output image
(row-major, row 0 at the top). Pixels never share generator state, so a render
is reproducible for a given seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>> from src.pathtracer.core.integrator import (
    ...     get_image_numpy, render_image, setup_render_target
    ... )
    >>> from src.pathtracer.scene import SceneManager, get_scene
    >>>
    >>> world, camera = get_scene("three_spheres", aspect_ratio=16 / 9)
    >>> scene = SceneManager(world)
    >>> setup_camera(camera)
    >>> setup_render_target(160, 90, seed=0)
    >>> render_image(num_samples=16, max_depth=5)
    >>> image = get_image_numpy()  # (90, 160, 3), gamma corrected
"""

import logging

import numpy as np
import taichi as ti

from src.pathtracer.camera.pinhole import get_ray
from src.pathtracer.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_T_MAX,
    DEFAULT_T_MIN,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    validate_seed,
)
from src.pathtracer.core.ray import Ray, lerp, make_ray, real, unit_vector, vec3
from src.pathtracer.core.sampler import MAX_STREAMS, random_float, seed_streams
from src.pathtracer.materials.registry import scatter_material
from src.pathtracer.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

# =============================================================================
# Radiance Estimate
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a direction that escapes the scene.

    Blends white at the bottom (y = -1) to light blue at the top (y = 1).
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return lerp(vec3(1.0, 1.0, 1.0), vec3(0.5, 0.7, 1.0), t)


@ti.func
def ray_color(stream: ti.i32, ray: Ray, depth: ti.i32, t_min: real, t_max: real) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        stream: The random stream of the pixel being rendered.
        ray: The ray to trace.
        depth: Maximum number of scene intersections. Paths that exhaust it
            return black, so depth <= 0 is always black.
        t_min: Smallest accepted hit distance.
        t_max: Largest accepted hit distance.

    Returns:
        The radiance estimate (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(make_ray(origin, direction), t_min, t_max)

            if rec.hit == 0:
                color = throughput * background(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, stream, direction, rec.normal
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    return color


# =============================================================================
# Render Target (Accumulation Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_render_seed = ti.field(dtype=ti.i32, shape=())

# Sum of sample radiance per pixel, indexed [i, j] with j = 0 the bottom row
_color_sum = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Every pixel receives the same number of samples per pass
_sample_count = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, seed: int = 0) -> None:
    """Initialize the render target and the per-pixel random streams.

    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Global seed from which every pixel's stream is derived.

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum
            supported size, or the seed is out of range.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    validate_seed(seed)

    _image_width[None] = width
    _image_height[None] = height
    _render_seed[None] = seed
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Discard accumulated samples and restart every pixel's random stream."""
    _color_sum.fill(0.0)
    _sample_count[None] = 0
    if _render_target_initialized[None] == 1:
        width, height = get_image_dimensions()
        seed_streams(int(_render_seed[None]), width * height)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[None])


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def pixel_stream(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> ti.i32:
    """Stream index of pixel (i, j): its row-major index in the output image."""
    return (height - 1 - j) * width + i


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    t_min: real,
    t_max: real,
):
    """Trace ``num_samples`` jittered camera rays per pixel and accumulate."""
    u_scale = 1.0 / ti.cast(ti.max(width - 1, 1), real)
    v_scale = 1.0 / ti.cast(ti.max(height - 1, 1), real)

    for i, j in ti.ndrange(width, height):
        stream = pixel_stream(i, j, width, height)
        for _ in range(num_samples):
            u = (ti.cast(i, real) + random_float(stream)) * u_scale
            v = (ti.cast(j, real) + random_float(stream)) * v_scale
            ray = get_ray(u, v)
            _color_sum[i, j] += ray_color(stream, ray, max_depth, t_min, t_max)


@ti.kernel
def _trace_single_ray(
    ox: real,
    oy: real,
    oz: real,
    dx: real,
    dy: real,
    dz: real,
    depth: ti.i32,
    stream: ti.i32,
    t_min: real,
    t_max: real,
) -> vec3:
    ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
    return ray_color(stream, ray, depth, t_min, t_max)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = DEFAULT_MAX_DEPTH,
    stream: int = 0,
    t_min: float = DEFAULT_T_MIN,
    t_max: float = DEFAULT_T_MAX,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray against the uploaded scene.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized before tracing).
        depth: Maximum number of scene intersections.
        stream: The random stream to draw from. Streams not seeded by
            setup_render_target() or seed_streams() behave as seeded with 0.
        t_min: Smallest accepted hit distance.
        t_max: Largest accepted hit distance.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        ValueError: If the stream index is outside [0, MAX_STREAMS).
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream index must be in [0, {MAX_STREAMS}), got {stream}")
    color = _trace_single_ray(*origin, *direction, depth, stream, t_min, t_max)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    t_min: float = DEFAULT_T_MIN,
    t_max: float = DEFAULT_T_MAX,
) -> None:
    """Accumulate more samples per pixel into the render target.

    Each pixel's stream continues where the previous call left off, so
    rendering a then b samples gives the same image as a + b at once.
    The camera and scene must have been uploaded beforehand.

    Args:
        num_samples: Number of samples to add per pixel.
        max_depth: Maximum number of bounces per path.
        t_min: Smallest accepted hit distance.
        t_max: Largest accepted hit distance.

    Raises:
        ValueError: If num_samples or max_depth is not positive, or
            0 < t_min < t_max does not hold.
        RuntimeError: If render target has not been set up.
    """
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if max_depth <= 0:
        raise ValueError(f"max_depth must be positive, got {max_depth}")
    if not 0.0 < t_min < t_max:
        raise ValueError(f"Expected 0 < t_min < t_max, got t_min={t_min}, t_max={t_max}")
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _render_samples(width, height, num_samples, max_depth, t_min, t_max)
    _sample_count[None] += num_samples
    logger.debug(
        "Rendered %d samples per pixel at %dx%d (total %d)",
        num_samples,
        width,
        height,
        _sample_count[None],
    )


def get_linear_image_numpy() -> np.ndarray:
    """Get the averaged radiance before gamma correction.

    Returns:
        NumPy float64 array of shape (height, width, 3), row 0 at the top.
        All zeros before the first sample.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    samples = int(_sample_count[None])

    # Extract active region, then (width, height, 3) -> (height, width, 3)
    image = _color_sum.to_numpy()[:width, :height, :]
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer rows count from the bottom, images from the top)
    image = np.flipud(image)

    if samples == 0:
        return np.zeros_like(image, dtype=np.float64)
    return np.ascontiguousarray(image / samples, dtype=np.float64)


def get_image_numpy() -> np.ndarray:
    """Get the rendered image with gamma 2 correction applied.

    Returns:
        NumPy float64 array of shape (height, width, 3), row 0 at the top,
        holding sqrt(sum / samples) per component.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return np.sqrt(get_linear_image_numpy())
