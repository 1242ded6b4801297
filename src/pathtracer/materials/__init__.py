"""Materials module for surface scattering models.

This module implements the closed set of materials a surface can carry:

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with fuzz
    absorb: Full absorption (never scatters)
    material: Material kind tags and parameter validation
    registry: Material storage in Taichi fields and scatter dispatch

Each material is described by a frozen dataclass on the Python side and
scattered in kernels by a Taichi function returning
(scattered_direction, attenuation, did_scatter).
"""

from .absorb import Absorb, scatter_absorb
from .lambertian import Lambertian, scatter_lambertian
from .material import MaterialKind, validate_albedo
from .metal import Metal, scatter_metal
from .registry import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
    get_material_kind,
    material_kind,
    scatter_material,
)

__all__ = [
    # Descriptions
    "Lambertian",
    "Metal",
    "Absorb",
    "Material",
    "MaterialKind",
    "validate_albedo",
    # Scattering
    "scatter_lambertian",
    "scatter_metal",
    "scatter_absorb",
    "scatter_material",
    # Registry
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_kind",
    "material_kind",
]
