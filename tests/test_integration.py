"""End-to-end rendering tests.

These render preset scenes through the public API (render_scene) and check
properties that hold exactly. The two-sphere regression render is also
compared byte for byte against a recorded 8-bit image in tests/data.
"""

from pathlib import Path

import numpy as np
import pytest

BASELINE = Path(__file__).parent / "data" / "two_spheres_16x9_seed0.txt"


@pytest.fixture
def regression_config():
    from src.pathtracer.config import RenderConfig

    return RenderConfig(width=16, height=9, samples_per_pixel=1, max_depth=1, seed=0)


class TestTwoSpheresRegression:
    """One sample, one bounce: hits are black and misses are sky."""

    def _render(self, config):
        from src.pathtracer.core.progressive import render_scene
        from src.pathtracer.scene import get_scene

        world, camera = get_scene("two_spheres", aspect_ratio=config.aspect_ratio)
        return render_scene(world, camera, config)

    def test_shape_and_range(self, regression_config):
        image = self._render(regression_config)

        assert image.shape == (9, 16, 3)
        assert image.dtype == np.float64
        assert np.all((image >= 0.0) & (image <= 1.0))

    def test_reproducible(self, regression_config):
        first = self._render(regression_config)
        second = self._render(regression_config)

        np.testing.assert_array_equal(first, second)

    def test_matches_recorded_baseline(self, regression_config):
        from src.pathtracer.preview import to_rgb8

        expected = np.loadtxt(BASELINE, dtype=np.uint8).reshape(9, 16, 3)
        image = to_rgb8(self._render(regression_config))

        np.testing.assert_array_equal(image, expected)

    def test_hit_pixels_are_black(self, regression_config):
        image = self._render(regression_config)

        # Image center looks at the sphere, bottom row at the ground
        assert np.all(image[4, 7] == 0.0)
        assert np.all(image[4, 8] == 0.0)
        assert np.all(image[-1] == 0.0)

    def test_sky_pixels(self, regression_config):
        image = self._render(regression_config)
        top = image[0]

        # Gamma corrected sky: blue is always 1, red between sqrt(0.5) and 1
        np.testing.assert_allclose(top[:, 2], 1.0)
        assert np.all((top[:, 0] >= np.sqrt(0.5)) & (top[:, 0] < 1.0))
        assert np.all(top[:, 0] <= top[:, 1])

    def test_deeper_paths_light_the_sphere(self):
        from src.pathtracer.config import RenderConfig

        config = RenderConfig(width=16, height=9, samples_per_pixel=8, max_depth=5, seed=0)
        image = self._render(config)

        assert image[4, 7].max() > 0.0


class TestPresetRenders:
    """Smoke renders of the showcase scenes."""

    @pytest.mark.parametrize(
        "name", ["three_spheres", "spherion", "first_fractal", "spherion_meets_fractalius"]
    )
    def test_preset_renders(self, name):
        from src.pathtracer.config import RenderConfig
        from src.pathtracer.core.progressive import render_scene
        from src.pathtracer.scene import get_scene

        config = RenderConfig(width=12, height=7, samples_per_pixel=2, max_depth=3, seed=4)
        world, camera = get_scene(name, aspect_ratio=config.aspect_ratio)
        image = render_scene(world, camera, config, batch_size=1)

        assert image.shape == (7, 12, 3)
        assert np.all(np.isfinite(image))
        assert np.all((image >= 0.0) & (image <= 1.0))

    def test_render_scene_callback(self):
        from src.pathtracer.config import RenderConfig
        from src.pathtracer.core.progressive import render_scene
        from src.pathtracer.scene import get_scene

        config = RenderConfig(width=4, height=4, samples_per_pixel=4, max_depth=2)
        world, camera = get_scene("three_spheres", aspect_ratio=1.0)
        calls = []
        render_scene(world, camera, config, batch_size=2, callback=lambda c, t: calls.append(c))

        assert calls == [2, 4]

    def test_march_epsilon_must_be_below_t_min(self):
        from src.pathtracer.config import RenderConfig
        from src.pathtracer.core.progressive import render_scene
        from src.pathtracer.geometry import SphereField
        from src.pathtracer.materials import Lambertian
        from src.pathtracer.scene import HittableList, Raymarcher, main_camera

        config = RenderConfig(width=4, height=4, samples_per_pixel=1, t_min=0.001)
        world = HittableList(
            (Raymarcher(SphereField((0, 0, 0), 0.5), 100, 0.005, Lambertian((0.5, 0.5, 0.5))),)
        )

        with pytest.raises(ValueError, match="epsilon"):
            render_scene(world, main_camera(1.0), config)
