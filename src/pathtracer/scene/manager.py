"""Scene manager for uploading a Hittable tree into Taichi fields.

The SceneManager is the bridge between the immutable Python-side scene
description (frozen dataclasses, see hittable.py) and the kernel-side storage
(see intersection.py and materials/registry.py). Uploading a tree:

- clears the leaf storage and the material registry
- walks the leaves depth-first, flattening nested lists
- registers each distinct material once and assigns it a material ID
- stores every leaf with the material ID of its material

The manager keeps a Python-side record of what was uploaded so tests and
tools can inspect the scene without reading Taichi fields.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials import Lambertian
    >>> from src.pathtracer.scene import HittableList, SceneManager, Sphere
    >>> grey = Lambertian((0.5, 0.5, 0.5))
    >>> world = HittableList((Sphere((0, 0, -1), 0.5, grey), Sphere((0, -100.5, -1), 100, grey)))
    >>> scene = SceneManager(world)
    >>> scene.get_material_count()
    1
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

from src.pathtracer.materials.registry import (
    Material,
    add_material,
    clear_materials,
    get_material_count,
    material_kind,
)
from src.pathtracer.materials.material import MaterialKind
from src.pathtracer.scene.hittable import (
    Hittable,
    HittableKind,
    Raymarcher,
    Sphere,
    iter_leaves,
)
from src.pathtracer.scene.intersection import (
    add_raymarcher,
    add_sphere,
    clear_scene,
    get_hittable_count,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material ID used in kernels.
        material_kind: The kind tag of the material.
        material: The material description as provided in the tree.
    """

    material_id: int
    material_kind: MaterialKind
    material: Material


@dataclass
class HittableInfo:
    """Information about an uploaded leaf.

    Attributes:
        hittable_index: The index in the leaf storage arrays.
        hittable_kind: Whether the leaf is a sphere or a raymarcher.
        hittable: The leaf description as provided in the tree.
        material_id: The material ID assigned to the leaf.
    """

    hittable_index: int
    hittable_kind: HittableKind
    hittable: Sphere | Raymarcher
    material_id: int


class SceneManager:
    """Uploads a scene tree and tracks what was uploaded.

    Only one scene lives in the Taichi fields at a time; constructing a new
    SceneManager (or calling ``load``) replaces the previous scene.

    Attributes:
        materials: MaterialInfo for every registered material, by material ID.
        hittables: HittableInfo for every uploaded leaf, in upload order.
    """

    def __init__(self, world: Hittable | None = None) -> None:
        """Initialize the manager, uploading ``world`` if given."""
        self.materials: list[MaterialInfo] = []
        self.hittables: list[HittableInfo] = []
        self._material_ids: dict[Material, int] = {}
        self._clear_all()
        if world is not None:
            self.load(world)

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        self.materials.clear()
        self.hittables.clear()
        self._material_ids.clear()

    def clear(self) -> None:
        """Clear the uploaded scene (leaves and materials)."""
        self._clear_all()

    def load(self, world: Hittable) -> None:
        """Replace the uploaded scene with ``world``.

        Args:
            world: The root of the scene tree.

        Raises:
            TypeError: If the tree contains unsupported objects.
            RuntimeError: If leaf or material capacity is exceeded.
        """
        self._clear_all()
        for leaf in iter_leaves(world):
            self._add_leaf(leaf)
        logger.info(
            "Uploaded scene: %d hittables, %d materials",
            len(self.hittables),
            len(self.materials),
        )

    # =========================================================================
    # Materials
    # =========================================================================

    def _material_id(self, material: Material) -> int:
        """Get the material ID of a material, registering it on first use."""
        existing = self._material_ids.get(material)
        if existing is not None:
            return existing

        material_id = add_material(material)
        self._material_ids[material] = material_id
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_kind=material_kind(material),
                material=material,
            )
        )
        logger.debug("Registered material %d: %r", material_id, material)
        return material_id

    def get_material_count(self) -> int:
        """Get the number of distinct materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Leaves
    # =========================================================================

    def _add_leaf(self, leaf: Sphere | Raymarcher) -> int:
        material_id = self._material_id(leaf.material)
        if isinstance(leaf, Sphere):
            index = add_sphere(leaf.center, leaf.radius, material_id)
            kind = HittableKind.SPHERE
        else:
            index = add_raymarcher(leaf.field, leaf.max_steps, leaf.epsilon, material_id)
            kind = HittableKind.RAYMARCHER

        self.hittables.append(
            HittableInfo(
                hittable_index=index,
                hittable_kind=kind,
                hittable=leaf,
                material_id=material_id,
            )
        )
        return index

    def get_hittable_count(self) -> int:
        """Get the number of uploaded leaves."""
        return get_hittable_count()

    def get_sphere_count(self) -> int:
        """Get the number of analytic spheres in the scene."""
        return sum(1 for info in self.hittables if info.hittable_kind == HittableKind.SPHERE)

    def get_raymarcher_count(self) -> int:
        """Get the number of raymarched leaves in the scene."""
        return sum(
            1 for info in self.hittables if info.hittable_kind == HittableKind.RAYMARCHER
        )

    def get_max_epsilon(self) -> float:
        """Get the largest raymarching epsilon in the scene (0.0 without raymarchers)."""
        return max(
            (
                info.hittable.epsilon
                for info in self.hittables
                if info.hittable_kind == HittableKind.RAYMARCHER
            ),
            default=0.0,
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the uploaded scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with "materials" and "hittables" lists. Each entry
            carries a lowercase "type" key plus its dataclass fields.
        """
        materials = [
            {"type": info.material_kind.name.lower(), **asdict(info.material)}
            for info in self.materials
        ]
        hittables = []
        for info in self.hittables:
            entry: dict[str, Any] = {"type": info.hittable_kind.name.lower()}
            if isinstance(info.hittable, Sphere):
                entry["center"] = list(info.hittable.center)
                entry["radius"] = info.hittable.radius
            else:
                entry["field"] = {
                    "type": type(info.hittable.field).__name__,
                    **asdict(info.hittable.field),
                }
                entry["max_steps"] = info.hittable.max_steps
                entry["epsilon"] = info.hittable.epsilon
            entry["material_id"] = info.material_id
            hittables.append(entry)
        return {"materials": materials, "hittables": hittables}

    def __repr__(self) -> str:
        return (
            f"SceneManager(hittables={len(self.hittables)}, "
            f"materials={len(self.materials)})"
        )
