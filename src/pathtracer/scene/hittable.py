"""Scene geometry descriptions.

A scene is an immutable tree of Hittable values:

    HittableList(children)                  aggregate, nearest hit wins
    Sphere(center, radius, material)        analytic sphere
    Raymarcher(field, max_steps, epsilon, material)
                                            sphere-traced distance field

Leaves own their materials by value. The tree is built once per render and
uploaded into Taichi fields by the SceneManager. Nested lists are flattened
during upload: the nearest hit over all leaves of a tree is the same as the
nearest hit computed list by list.

Example:
    >>> from src.pathtracer.materials import Lambertian
    >>> from src.pathtracer.scene.hittable import HittableList, Sphere, iter_leaves
    >>> world = HittableList((
    ...     Sphere((0.0, -100.5, -1.0), 100.0, Lambertian((0.5, 0.5, 0.5))),
    ...     Sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.5, 0.5, 0.5))),
    ... ))
    >>> len(list(iter_leaves(world)))
    2
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

from src.pathtracer.core.ray import to_tuple3
from src.pathtracer.geometry.sdf import SignedDistanceField, field_kind
from src.pathtracer.materials.registry import Material, material_kind


class HittableKind(IntEnum):
    """Enumeration of uploadable (leaf) hittables."""

    SPHERE = 0
    RAYMARCHER = 1


@dataclass(frozen=True)
class Sphere:
    """An analytic sphere.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: The surface material.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_tuple3(self.center, "center"))
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        material_kind(self.material)


@dataclass(frozen=True)
class Raymarcher:
    """A signed distance field rendered by sphere tracing.

    Attributes:
        field: The signed distance field.
        max_steps: Maximum number of marching steps before giving up.
        epsilon: Distance below which the march reports a hit.
        material: The surface material.
    """

    field: SignedDistanceField
    max_steps: int
    epsilon: float
    material: Material

    def __post_init__(self) -> None:
        field_kind(self.field)
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        material_kind(self.material)


@dataclass(frozen=True)
class HittableList:
    """An aggregate of hittables; a ray hits the nearest child.

    Attributes:
        children: The child hittables, possibly nested lists.
    """

    children: tuple[Hittable, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))

    def __len__(self) -> int:
        return len(self.children)


Hittable = HittableList | Sphere | Raymarcher


def iter_leaves(hittable: Hittable) -> Iterator[Sphere | Raymarcher]:
    """Yield the leaves of a hittable tree in depth-first order.

    Args:
        hittable: The root of the tree.

    Yields:
        Every Sphere and Raymarcher, in the order their lists list them.

    Raises:
        TypeError: If the tree contains an unsupported object.
    """
    if isinstance(hittable, HittableList):
        for child in hittable.children:
            yield from iter_leaves(child)
    elif isinstance(hittable, (Sphere, Raymarcher)):
        yield hittable
    else:
        raise TypeError(f"Unsupported hittable: {type(hittable).__name__}")
