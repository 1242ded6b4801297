"""Fully absorbing material.

Surfaces with this material never scatter, so any path reaching them carries
no radiance. Useful for opaque, light-swallowing geometry.
"""

from dataclasses import dataclass

import taichi as ti

from src.pathtracer.core.ray import vec3


@dataclass(frozen=True)
class Absorb:
    """Material that absorbs every incoming ray."""


@ti.func
def scatter_absorb():
    """Absorb the ray.

    Returns:
        A tuple of (zero direction, zero attenuation, did_scatter = 0).
    """
    return vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 0.0), 0
