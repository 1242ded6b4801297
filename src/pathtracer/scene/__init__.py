"""Scene module for scene description, upload and intersection.

Components:
    hittable: Immutable scene tree (HittableList, Sphere, Raymarcher)
    intersection: Leaf storage in Taichi fields and nearest-hit queries
    manager: Uploads a scene tree and its materials into Taichi fields
    presets: Ready-made scenes with matching cameras

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for leaf parameters
    - Integer kind tags selecting the intersection routine
    - Material IDs indexing the material registry
"""

from .hittable import Hittable, HittableKind, HittableList, Raymarcher, Sphere, iter_leaves
from .intersection import (
    MAX_HITTABLES,
    SceneHit,
    SceneHitRecord,
    add_raymarcher,
    add_sphere,
    clear_scene,
    get_hittable_count,
    intersect_scene,
    query_scene,
)
from .manager import HittableInfo, MaterialInfo, SceneManager
from .presets import DEFAULT_SCENE, SCENES, get_scene, main_camera

__all__ = [
    # Scene tree
    "Hittable",
    "HittableKind",
    "HittableList",
    "Sphere",
    "Raymarcher",
    "iter_leaves",
    # Intersection module
    "MAX_HITTABLES",
    "SceneHit",
    "SceneHitRecord",
    "add_sphere",
    "add_raymarcher",
    "clear_scene",
    "get_hittable_count",
    "intersect_scene",
    "query_scene",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "HittableInfo",
    # Presets
    "SCENES",
    "DEFAULT_SCENE",
    "get_scene",
    "main_camera",
]
