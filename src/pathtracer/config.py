"""Render configuration and Taichi runtime initialization.

The renderer works in double precision throughout. Taichi must therefore be
initialized with ``default_fp=ti.f64`` before any module declaring Taichi
fields is imported; ``init_taichi`` does exactly that.

Example:
    >>> from src.pathtracer.config import RenderConfig, init_taichi
    >>> init_taichi(arch="cpu", seed=7)
    >>> config = RenderConfig(width=200, height=112, samples_per_pixel=16)
    >>> config.aspect_ratio
    1.7857142857142858
"""

from __future__ import annotations

from dataclasses import dataclass

import taichi as ti

# =============================================================================
# Capacity Limits
# =============================================================================

# Render targets and random streams are preallocated to this size
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024

# Seeds are hashed as unsigned 32-bit integers
MAX_SEED = 2**31

# =============================================================================
# Tracing Defaults
# =============================================================================

# Smallest accepted hit distance, avoids shadow acne on re-emitted rays
DEFAULT_T_MIN = 0.001

# Largest accepted hit distance, bounds raymarching cost on escaping rays
DEFAULT_T_MAX = 100.0

DEFAULT_MAX_DEPTH = 5
DEFAULT_SAMPLES_PER_PIXEL = 100

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
}


@dataclass(frozen=True)
class RenderConfig:
    """Parameters of a single render invocation.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered camera samples averaged per pixel.
        max_depth: Maximum number of ray bounces; the path returns black
            once this is exhausted.
        seed: Global seed from which every pixel's random stream is derived.
        t_min: Smallest accepted hit distance.
        t_max: Largest accepted hit distance.
    """

    width: int
    height: int
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0
    t_min: float = DEFAULT_T_MIN
    t_max: float = DEFAULT_T_MAX

    def __post_init__(self) -> None:
        for name in ("width", "height", "samples_per_pixel", "max_depth"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value}")

        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

        validate_seed(self.seed)

        if not 0.0 < self.t_min < self.t_max:
            raise ValueError(
                f"Expected 0 < t_min < t_max, got t_min={self.t_min}, t_max={self.t_max}"
            )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height of the output image."""
        return self.width / self.height


def validate_seed(seed: int) -> int:
    """Check that a seed fits the unsigned 32-bit hash used by the streams.

    Args:
        seed: The seed to check.

    Returns:
        The seed, unchanged.

    Raises:
        ValueError: If the seed is outside [0, 2**31).
    """
    if not 0 <= seed < MAX_SEED:
        raise ValueError(f"Seed must be in [0, {MAX_SEED}), got {seed}")
    return seed


def init_taichi(arch: str = "cpu", seed: int = 0) -> None:
    """Initialize the Taichi runtime for double precision rendering.

    Args:
        arch: Backend name ("cpu", "gpu", "cuda" or "vulkan").
        seed: Seed for Taichi's own generator. Rendering uses its own
            per-pixel streams and does not depend on it.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if arch not in _ARCHES:
        raise ValueError(f"Unknown Taichi backend '{arch}', expected one of {sorted(_ARCHES)}")
    ti.init(arch=_ARCHES[arch], default_fp=ti.f64, random_seed=validate_seed(seed))
