"""Scene-level intersection testing.

This module stores the leaves of the uploaded scene (analytic spheres and
raymarched fields) in Taichi fields and intersects rays against all of them,
returning the nearest hit together with the material ID of the surface.

Leaves are tagged with a HittableKind and share one set of Structure-of-Arrays
fields; the raymarcher-only fields are ignored for spheres and vice versa.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.intersection import add_sphere, clear_scene, query_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    0
    >>> query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).t
    0.5
"""

from collections.abc import Sequence
from dataclasses import dataclass

import taichi as ti

from src.pathtracer.config import DEFAULT_T_MAX, DEFAULT_T_MIN
from src.pathtracer.core.ray import Ray, make_ray, real, vec3
from src.pathtracer.geometry.raymarcher import march
from src.pathtracer.geometry.sdf import (
    FieldParams,
    SierpinskiTetrasphere,
    SignedDistanceField,
    SphereField,
    field_kind,
)
from src.pathtracer.geometry.sphere import HitRecord, hit_sphere, make_miss_record
from src.pathtracer.scene.hittable import HittableKind


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any leaf (1 if hit, 0 if miss).
        t: The ray parameter of the nearest intersection.
        point: The intersection point.
        normal: The unit surface normal, facing the incoming ray.
        front_face: Whether the ray hit the front face (1) or back face (0).
        material_id: The material ID of the hit leaf. -1 on a miss.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of leaves in the scene
MAX_HITTABLES = 1024

# Leaf storage: Structure of Arrays layout
hittable_kinds = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
hittable_material_ids = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
num_hittables = ti.field(dtype=ti.i32, shape=())

# Sphere centers double as field centers for raymarchers
hittable_centers = ti.Vector.field(3, dtype=real, shape=MAX_HITTABLES)
hittable_radii = ti.field(dtype=real, shape=MAX_HITTABLES)

# Raymarcher payload
field_kinds = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
field_iterations = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
field_gradient_normals = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
march_max_steps = ti.field(dtype=ti.i32, shape=MAX_HITTABLES)
march_epsilons = ti.field(dtype=real, shape=MAX_HITTABLES)


def clear_scene() -> None:
    """Clear all leaves from the scene.

    Resets the leaf count to zero. The field data is overwritten when new
    leaves are added.
    """
    num_hittables[None] = 0


def _next_index() -> int:
    idx = num_hittables[None]
    if idx >= MAX_HITTABLES:
        raise RuntimeError(f"Maximum number of hittables ({MAX_HITTABLES}) exceeded")
    return idx


def add_sphere(center: Sequence[float], radius: float, material_id: int = 0) -> int:
    """Add an analytic sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added leaf.

    Raises:
        RuntimeError: If the maximum number of hittables is exceeded.
    """
    idx = _next_index()
    hittable_kinds[idx] = int(HittableKind.SPHERE)
    hittable_centers[idx] = list(center)
    hittable_radii[idx] = radius
    hittable_material_ids[idx] = material_id
    num_hittables[None] = idx + 1
    return idx


def add_raymarcher(
    field: SignedDistanceField,
    max_steps: int,
    epsilon: float,
    material_id: int = 0,
) -> int:
    """Add a sphere-traced signed distance field to the scene.

    Args:
        field: The signed distance field.
        max_steps: Maximum number of marching steps.
        epsilon: Hit threshold on the distance estimate.
        material_id: The material ID to associate with this leaf.

    Returns:
        The index of the added leaf.

    Raises:
        TypeError: If the field type is not supported.
        RuntimeError: If the maximum number of hittables is exceeded.
    """
    kind = field_kind(field)
    idx = _next_index()

    radius = 0.0
    iterations = 0
    gradient_normals = 0
    if isinstance(field, SphereField):
        radius = field.radius
    elif isinstance(field, SierpinskiTetrasphere):
        iterations = field.iterations
        gradient_normals = int(field.gradient_normals)

    hittable_kinds[idx] = int(HittableKind.RAYMARCHER)
    hittable_centers[idx] = list(field.center)
    hittable_radii[idx] = radius
    hittable_material_ids[idx] = material_id
    field_kinds[idx] = int(kind)
    field_iterations[idx] = iterations
    field_gradient_normals[idx] = gradient_normals
    march_max_steps[idx] = max_steps
    march_epsilons[idx] = epsilon
    num_hittables[None] = idx + 1
    return idx


def get_hittable_count() -> int:
    """Get the number of leaves in the scene."""
    return int(num_hittables[None])


@ti.func
def _field_params(idx: ti.i32) -> FieldParams:
    """Assemble the signed distance field of a raymarcher leaf."""
    return FieldParams(
        kind=field_kinds[idx],
        center=hittable_centers[idx],
        radius=hittable_radii[idx],
        iterations=field_iterations[idx],
        gradient_normals=field_gradient_normals[idx],
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Convert a HitRecord to a SceneHitRecord with material ID."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def make_scene_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return _to_scene_hit_record(make_miss_record(), -1)


@ti.func
def hit_leaf(idx: ti.i32, ray: Ray, t_min: real, t_max: real) -> HitRecord:
    """Intersect a ray with a single leaf, dispatching on its kind."""
    rec = make_miss_record()
    kind = hittable_kinds[idx]
    if kind == int(HittableKind.SPHERE):
        rec = hit_sphere(ray, hittable_centers[idx], hittable_radii[idx], t_min, t_max)
    elif kind == int(HittableKind.RAYMARCHER):
        rec = march(
            ray,
            _field_params(idx),
            march_max_steps[idx],
            march_epsilons[idx],
            t_min,
            t_max,
        )
    return rec


@ti.func
def intersect_scene(ray: Ray, t_min: real, t_max: real) -> SceneHitRecord:
    """Test a ray against every leaf in the scene and keep the nearest hit.

    Each leaf is queried over the full (t_min, t_max) interval. A hit
    replaces the current result only when it is strictly nearer, so of two
    hits at exactly the same t the earlier leaf wins; a present hit always
    beats a miss.

    Args:
        ray: The ray to test.
        t_min: Lower bound for accepted t values.
        t_max: Upper bound for accepted t values.

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    result = make_scene_miss_record()
    for i in range(num_hittables[None]):
        rec = hit_leaf(i, ray, t_min, t_max)
        if rec.hit == 1:
            if result.hit == 0 or rec.t < result.t:
                result = _to_scene_hit_record(rec, hittable_material_ids[i])
    return result


# =============================================================================
# Python-side Queries
# =============================================================================


@dataclass(frozen=True)
class SceneHit:
    """A ray-scene intersection read back into Python.

    Attributes:
        t: The ray parameter (distance along the unit direction).
        point: The intersection point.
        normal: The unit normal facing the incoming ray.
        front_face: Whether the ray hit the outside of the surface.
        material_id: The material ID of the hit leaf.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=real, shape=())
_query_point = ti.Vector.field(3, dtype=real, shape=())
_query_normal = ti.Vector.field(3, dtype=real, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_kernel(
    ox: real,
    oy: real,
    oz: real,
    dx: real,
    dy: real,
    dz: real,
    t_min: real,
    t_max: real,
):
    ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
    rec = intersect_scene(ray, t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_id[None] = rec.material_id


def query_scene(
    origin: Sequence[float],
    direction: Sequence[float],
    t_min: float = DEFAULT_T_MIN,
    t_max: float = DEFAULT_T_MAX,
) -> SceneHit | None:
    """Intersect a single ray with the uploaded scene from Python.

    Intended for tests and debugging; rendering intersects inside kernels.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized before tracing).
        t_min: Lower bound for accepted t values.
        t_max: Upper bound for accepted t values.

    Returns:
        The nearest SceneHit, or None if the ray hits nothing.
    """
    _query_kernel(*origin, *direction, t_min, t_max)
    if _query_hit[None] == 0:
        return None

    point = _query_point[None]
    normal = _query_normal[None]
    return SceneHit(
        t=float(_query_t[None]),
        point=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        front_face=bool(_query_front_face[None]),
        material_id=int(_query_material_id[None]),
    )
