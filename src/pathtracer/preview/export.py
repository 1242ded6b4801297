"""Image export utilities for rendered images.

Rendered images are gamma corrected floats in [0, 1] (see
``integrator.get_image_numpy``). Export quantizes each component to 8 bits
with ``floor(256 * clamp(c, 0, 0.999))``, which maps [0, 1] onto all 256
levels evenly, and writes the result with Pillow. The file format follows
the extension (PNG, JPEG, ...).

Example:
    >>> from src.pathtracer.preview.export import save_png
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 112)
    >>> renderer.render(100)
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.pathtracer.core.progressive import ProgressiveRenderer

# Upper clamp keeps 256 * c below 256
_MAX_INTENSITY = 0.999


def to_rgb8(image: npt.NDArray[np.floating[npt.NBitBase]]) -> npt.NDArray[np.uint8]:
    """Quantize a float image in [0, 1] to 8 bits per channel.

    Values outside [0, 1] are clamped.

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, _MAX_INTENSITY)
    return np.floor(256.0 * clamped).astype(np.uint8)


def save_image(image: npt.NDArray[np.floating[npt.NBitBase]], filepath: str) -> None:
    """Quantize a float image and save it to a file.

    Args:
        image: Gamma corrected image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path; the extension selects the format.

    Raises:
        ValueError: If the array is not of shape (H, W, 3) or the format
            cannot be determined from the extension.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    PILImage.fromarray(to_rgb8(image)).save(filepath)


def save_png(renderer: ProgressiveRenderer, filepath: str) -> None:
    """Save the current image of a renderer as a PNG file.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path (should end in .png).
    """
    save_image(renderer.get_image_numpy(), filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
