"""Material registry and scatter dispatch.

Materials are stored in Taichi fields in Structure-of-Arrays layout and
addressed by a material ID. Each entry records its MaterialKind tag plus the
payload of the Lambertian and Metal variants (the Absorb variant has none).
The integrator calls ``scatter_material`` with a material ID, which
dispatches on the tag to the matching scatter function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials import Lambertian, Metal
    >>> from src.pathtracer.materials.registry import add_material
    >>> add_material(Lambertian((0.5, 0.5, 0.5)))
    0
    >>> add_material(Metal((0.8, 0.8, 0.8), fuzz=0.1))
    1
"""

import taichi as ti

from src.pathtracer.core.ray import real, vec3
from src.pathtracer.materials.absorb import Absorb, scatter_absorb
from src.pathtracer.materials.lambertian import Lambertian, scatter_lambertian
from src.pathtracer.materials.material import MaterialKind
from src.pathtracer.materials.metal import Metal, scatter_metal

Material = Lambertian | Metal | Absorb

# Maximum number of distinct materials in the scene
MAX_MATERIALS = 1024

material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=real, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=real, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def material_kind(material: Material) -> MaterialKind:
    """Get the MaterialKind tag of a material description.

    Raises:
        TypeError: If the object is not a supported material.
    """
    if isinstance(material, Lambertian):
        return MaterialKind.LAMBERTIAN
    if isinstance(material, Metal):
        return MaterialKind.METAL
    if isinstance(material, Absorb):
        return MaterialKind.ABSORB
    raise TypeError(f"Unsupported material: {type(material).__name__}")


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the registry.

    Args:
        material: A Lambertian, Metal or Absorb description.

    Returns:
        The material ID of the added material.

    Raises:
        TypeError: If the material type is not supported.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    kind = material_kind(material)

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    albedo = (0.0, 0.0, 0.0)
    fuzz = 0.0
    if isinstance(material, Lambertian):
        albedo = material.albedo
    elif isinstance(material, Metal):
        albedo = material.albedo
        fuzz = material.fuzz

    material_kinds[idx] = int(kind)
    material_albedos[idx] = list(albedo)
    material_fuzz[idx] = fuzz
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material_kind(material_id: ti.i32) -> ti.i32:
    """Get the MaterialKind of a material ID.

    Returns:
        The kind as an integer, or -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_kinds[material_id]
    return result


@ti.func
def scatter_material(
    material_id: ti.i32,
    stream: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Dispatch to the scattering function of a material.

    Args:
        material_id: The material ID of the hit surface.
        stream: The random stream of the pixel being rendered.
        incident_direction: The incoming ray direction.
        normal: The surface normal, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Invalid
        material IDs absorb the ray.
    """
    kind = get_material_kind(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if kind == int(MaterialKind.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian(
            stream, material_albedos[material_id], normal
        )
    elif kind == int(MaterialKind.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal(
            stream,
            material_albedos[material_id],
            material_fuzz[material_id],
            incident_direction,
            normal,
        )
    elif kind == int(MaterialKind.ABSORB):
        scattered_direction, attenuation, did_scatter = scatter_absorb()

    return scattered_direction, attenuation, did_scatter
