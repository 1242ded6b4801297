"""Unit tests for the Lambertian material.

Tests cover:
- Material description and albedo validation
- Scatter direction (unit length, same side as the normal)
- Attenuation equals albedo and the material always scatters
- Cosine-weighted direction distribution
"""

import numpy as np
import pytest
import taichi as ti

NUM_SAMPLES = 64


def _scatter_many(normal=(0.0, 1.0, 0.0), albedo=(0.8, 0.3, 0.1), count=NUM_SAMPLES):
    """Scatter ``count`` times from independent streams."""
    from src.pathtracer.core.ray import unit_vector, vec3
    from src.pathtracer.core.sampler import seed_streams
    from src.pathtracer.materials.lambertian import scatter_lambertian

    seed_streams(seed=17, count=count)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=count)
    attenuations = ti.Vector.field(3, dtype=ti.f64, shape=count)
    scattered = ti.field(dtype=ti.i32, shape=count)

    @ti.kernel
    def test_kernel(nx: ti.f64, ny: ti.f64, nz: ti.f64, ax: ti.f64, ay: ti.f64, az: ti.f64):
        for s in range(count):
            n = unit_vector(vec3(nx, ny, nz))
            direction, attenuation, did_scatter = scatter_lambertian(s, vec3(ax, ay, az), n)
            directions[s] = direction
            attenuations[s] = attenuation
            scattered[s] = did_scatter

    test_kernel(*normal, *albedo)
    return directions.to_numpy(), attenuations.to_numpy(), scattered.to_numpy()


class TestLambertianDescription:
    """Tests for the Lambertian dataclass."""

    def test_albedo_stored_as_tuple(self):
        from src.pathtracer.materials import Lambertian

        assert Lambertian([0.5, 0.4, 0.7]).albedo == (0.5, 0.4, 0.7)

    def test_albedo_validation_negative(self):
        from src.pathtracer.materials import Lambertian

        with pytest.raises(ValueError, match="outside"):
            Lambertian((-0.1, 0.5, 0.5))

    def test_albedo_validation_greater_than_one(self):
        from src.pathtracer.materials import Lambertian

        with pytest.raises(ValueError, match="outside"):
            Lambertian((0.5, 1.1, 0.5))

    def test_equal_materials_compare_equal(self):
        from src.pathtracer.materials import Lambertian

        assert Lambertian((0.5, 0.5, 0.5)) == Lambertian((0.5, 0.5, 0.5))
        assert hash(Lambertian((0.5, 0.5, 0.5))) == hash(Lambertian((0.5, 0.5, 0.5)))


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_always_scatters_with_albedo(self):
        _, attenuations, scattered = _scatter_many(albedo=(0.8, 0.3, 0.1))

        assert np.all(scattered == 1)
        np.testing.assert_allclose(attenuations, np.tile([0.8, 0.3, 0.1], (NUM_SAMPLES, 1)))

    def test_directions_are_unit_length(self):
        directions, _, _ = _scatter_many()

        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-12)

    @pytest.mark.parametrize("normal", [(0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.3, -0.4, 0.8)])
    def test_directions_on_normal_side(self, normal):
        directions, _, _ = _scatter_many(normal=normal)
        n = np.asarray(normal) / np.linalg.norm(normal)

        assert np.all(directions @ n >= -1e-12)

    def test_directions_cluster_around_normal(self):
        """For a cosine distribution E[cos theta] = 2/3."""
        directions, _, _ = _scatter_many(count=4096)

        assert directions[:, 1].mean() == pytest.approx(2.0 / 3.0, abs=0.03)
