"""Progressive renderer for batched sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Batch rendering (several samples per pixel per kernel launch)
- Progress callbacks and a generator interface for UI updates
- Reset and re-render with the same seed
- One-call rendering of a scene tree with ``render_scene``

Because each pixel continues its own random stream between batches, the
batch size never changes the result: 100 samples in batches of 10 produce
exactly the image of one batch of 100.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.config import RenderConfig
    >>> from src.pathtracer.core.progressive import render_scene
    >>> from src.pathtracer.scene import get_scene
    >>>
    >>> config = RenderConfig(width=200, height=112, samples_per_pixel=32)
    >>> world, camera = get_scene("spherion", aspect_ratio=config.aspect_ratio)
    >>> image = render_scene(world, camera, config)  # (112, 200, 3) in [0, 1]
"""

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.pathtracer.camera.pinhole import PinholeCamera, setup_camera
from src.pathtracer.config import DEFAULT_MAX_DEPTH, DEFAULT_T_MAX, DEFAULT_T_MIN, RenderConfig
from src.pathtracer.core.integrator import (
    clear_render_target,
    get_image_numpy,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.preview.export import save_image, to_rgb8
from src.pathtracer.scene.hittable import Hittable
from src.pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the tracing parameters of one render and delegates
    to the global integrator buffers (which are Taichi fields). The scene
    and camera must be uploaded before rendering.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of bounces per path.
        seed: Global seed of the per-pixel random streams.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        seed: int = 0,
        t_min: float = DEFAULT_T_MIN,
        t_max: float = DEFAULT_T_MAX,
    ) -> None:
        """Initialize the progressive renderer.

        Raises:
            ValueError: If dimensions are invalid or exceed the maximum
                supported size, or the seed is out of range.
        """
        if max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        self.t_min = t_min
        self.t_max = t_max
        setup_render_target(width, height, seed)

    @classmethod
    def from_config(cls, config: RenderConfig) -> "ProgressiveRenderer":
        """Create a renderer with the size and tracing parameters of a config."""
        return cls(
            config.width,
            config.height,
            max_depth=config.max_depth,
            seed=config.seed,
            t_min=config.t_min,
            t_max=config.t_max,
        )

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples and restart the random streams.

        Rendering again after a reset reproduces the previous image.
        """
        clear_render_target()

    def _render_batch(self, batch: int) -> None:
        render_image(batch, max_depth=self.max_depth, t_min=self.t_min, t_max=self.t_max)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_linear_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the averaged radiance as a (height, width, 3) array."""
        return get_linear_image_numpy()

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the gamma corrected image as a (height, width, 3) array."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image quantized to 8 bits per channel."""
        return to_rgb8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the rendered image to a file (format from the extension).

        Args:
            filepath: Path to save the image (e.g., "output.png").
        """
        save_image(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )


def render_scene(
    world: Hittable,
    camera: PinholeCamera,
    config: RenderConfig,
    batch_size: int | None = None,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.float64]:
    """Render a scene tree from start to finish.

    Uploads the scene and camera, accumulates ``config.samples_per_pixel``
    samples and returns the gamma corrected image.

    Args:
        world: The root of the scene tree.
        camera: The camera to render from.
        config: Image size, sampling and tracing parameters.
        batch_size: Samples per batch. Defaults to all samples in one batch.
        callback: Optional progress callback, see ProgressiveRenderer.render.

    Returns:
        NumPy float64 array of shape (height, width, 3), row 0 at the top.

    Raises:
        ValueError: If a raymarcher's epsilon is not below config.t_min.
            Rays leaving such a surface would hit it again immediately.
    """
    scene = SceneManager(world)
    epsilon = scene.get_max_epsilon()
    if epsilon >= config.t_min:
        raise ValueError(
            f"Raymarcher epsilon ({epsilon}) must be below t_min ({config.t_min})"
        )
    setup_camera(camera)

    renderer = ProgressiveRenderer.from_config(config)
    logger.info(
        "Rendering %dx%d at %d spp, max depth %d, seed %d",
        config.width,
        config.height,
        config.samples_per_pixel,
        config.max_depth,
        config.seed,
    )
    renderer.render(
        config.samples_per_pixel,
        batch_size=batch_size or config.samples_per_pixel,
        callback=callback,
    )
    return renderer.get_image_numpy()
