"""Tests for the material registry and scatter dispatch."""

import pytest
import taichi as ti


def _scatter(material_id, incident=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0)):
    """Dispatch scatter_material for one material ID on stream 0."""
    from src.pathtracer.core.ray import vec3
    from src.pathtracer.core.sampler import seed_streams
    from src.pathtracer.materials.registry import scatter_material

    seed_streams(seed=5, count=1)
    direction = ti.Vector.field(3, dtype=ti.f64, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
    scattered = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(mid: ti.i32, ix: ti.f64, iy: ti.f64, iz: ti.f64, nx: ti.f64, ny: ti.f64, nz: ti.f64):
        d, a, s = scatter_material(mid, 0, vec3(ix, iy, iz), vec3(nx, ny, nz))
        direction[None] = d
        attenuation[None] = a
        scattered[None] = s

    test_kernel(material_id, *incident, *normal)
    return (
        tuple(direction[None].to_numpy()),
        tuple(attenuation[None].to_numpy()),
        scattered[None],
    )


def _kind_of(material_id):
    from src.pathtracer.materials.registry import get_material_kind

    result = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(mid: ti.i32):
        result[None] = get_material_kind(mid)

    test_kernel(material_id)
    return result[None]


class TestAddMaterial:
    """Tests for registering materials."""

    def test_ids_are_sequential(self):
        from src.pathtracer.materials import Absorb, Lambertian, Metal, add_material

        assert add_material(Lambertian((0.5, 0.5, 0.5))) == 0
        assert add_material(Metal((0.8, 0.8, 0.8), 0.2)) == 1
        assert add_material(Absorb()) == 2

    def test_count(self):
        from src.pathtracer.materials import (
            Lambertian,
            add_material,
            clear_materials,
            get_material_count,
        )

        assert get_material_count() == 0
        add_material(Lambertian((0.1, 0.2, 0.3)))
        add_material(Lambertian((0.1, 0.2, 0.3)))
        assert get_material_count() == 2

        clear_materials()
        assert get_material_count() == 0

    def test_unsupported_material(self):
        from src.pathtracer.materials import add_material

        with pytest.raises(TypeError, match="Unsupported material"):
            add_material("lambertian")

    def test_material_kind(self):
        from src.pathtracer.materials import Absorb, Lambertian, MaterialKind, Metal, material_kind

        assert material_kind(Lambertian((0.5, 0.5, 0.5))) == MaterialKind.LAMBERTIAN
        assert material_kind(Metal((0.5, 0.5, 0.5))) == MaterialKind.METAL
        assert material_kind(Absorb()) == MaterialKind.ABSORB


class TestGetMaterialKind:
    """Tests for reading material kinds inside kernels."""

    def test_kinds_round_trip(self):
        from src.pathtracer.materials import Absorb, Lambertian, MaterialKind, Metal, add_material

        add_material(Metal((0.8, 0.8, 0.8)))
        add_material(Absorb())
        add_material(Lambertian((0.5, 0.5, 0.5)))

        assert _kind_of(0) == MaterialKind.METAL
        assert _kind_of(1) == MaterialKind.ABSORB
        assert _kind_of(2) == MaterialKind.LAMBERTIAN

    @pytest.mark.parametrize("material_id", [-1, 1, 100])
    def test_invalid_id(self, material_id):
        from src.pathtracer.materials import Lambertian, add_material

        add_material(Lambertian((0.5, 0.5, 0.5)))

        assert _kind_of(material_id) == -1


class TestScatterDispatch:
    """Tests for scatter_material dispatch."""

    def test_lambertian(self):
        from src.pathtracer.materials import Lambertian, add_material

        mid = add_material(Lambertian((0.2, 0.4, 0.6)))
        direction, attenuation, scattered = _scatter(mid)

        assert scattered == 1
        assert attenuation == pytest.approx((0.2, 0.4, 0.6))
        assert direction[1] >= 0.0

    def test_metal(self):
        from src.pathtracer.materials import Metal, add_material

        mid = add_material(Metal((0.9, 0.9, 0.9), fuzz=0.0))
        direction, attenuation, scattered = _scatter(mid)

        assert scattered == 1
        assert attenuation == pytest.approx((0.9, 0.9, 0.9))
        assert direction == pytest.approx((0.0, 1.0, 0.0))

    def test_absorb(self):
        from src.pathtracer.materials import Absorb, add_material

        mid = add_material(Absorb())
        direction, attenuation, scattered = _scatter(mid)

        assert scattered == 0
        assert attenuation == pytest.approx((0.0, 0.0, 0.0))
        assert direction == pytest.approx((0.0, 0.0, 0.0))

    def test_invalid_id_absorbs(self):
        _, _, scattered = _scatter(7)

        assert scattered == 0
