"""Preview module for image output.

Components:
    export: 8-bit quantization and Pillow image export

Example:
    >>> from src.pathtracer.preview import save_image
    >>> save_image(image, "render.png")  # image: (H, W, 3) floats in [0, 1]
"""

from src.pathtracer.preview.export import compute_rmse, save_image, save_png, to_rgb8

__all__ = [
    "to_rgb8",
    "save_image",
    "save_png",
    "compute_rmse",
]
