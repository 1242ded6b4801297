"""Tests for the progressive renderer.

Tests cover:
- Batched rendering matching a single pass exactly
- Reset reproducing the image
- Progress callbacks and the generator interface
- Image output helpers
"""

import numpy as np
import pytest


@pytest.fixture
def two_spheres_scene():
    """Upload the regression scene and its camera for an 8x6 image."""
    from src.pathtracer.camera import setup_camera
    from src.pathtracer.scene import SceneManager, get_scene

    world, camera = get_scene("two_spheres", aspect_ratio=8 / 6)
    SceneManager(world)
    setup_camera(camera)


class TestProgressiveRenderer:
    """Tests for ProgressiveRenderer."""

    def test_initial_state(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, seed=3)

        assert renderer.width == 8
        assert renderer.height == 6
        assert renderer.sample_count == 0
        assert repr(renderer) == "ProgressiveRenderer(width=8, height=6, samples=0)"

    def test_invalid_arguments(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(0, 6)
        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(8, 6, max_depth=0)

    def test_from_config(self):
        from src.pathtracer.config import RenderConfig
        from src.pathtracer.core.progressive import ProgressiveRenderer

        config = RenderConfig(width=10, height=5, max_depth=3, seed=9)
        renderer = ProgressiveRenderer.from_config(config)

        assert (renderer.width, renderer.height) == (10, 5)
        assert renderer.max_depth == 3
        assert renderer.seed == 9

    def test_batch_size_does_not_change_image(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, seed=3)
        renderer.render(6, batch_size=6)
        single = renderer.get_linear_image_numpy()

        renderer.reset()
        renderer.render(6, batch_size=4)
        batched = renderer.get_linear_image_numpy()

        np.testing.assert_array_equal(batched, single)

    def test_split_calls_match_one_call(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, seed=5)
        renderer.render(4)
        one_call = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(1)
        renderer.render(3)

        assert renderer.sample_count == 4
        np.testing.assert_array_equal(renderer.get_image_numpy(), one_call)

    def test_seed_changes_image(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        first = ProgressiveRenderer(8, 6, seed=1)
        first.render(2)
        image_a = first.get_linear_image_numpy()

        second = ProgressiveRenderer(8, 6, seed=2)
        second.render(2)
        image_b = second.get_linear_image_numpy()

        assert not np.array_equal(image_a, image_b)

    def test_callback_progress(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, max_depth=2)
        calls = []
        renderer.render(10, batch_size=3, callback=lambda current, target: calls.append((current, target)))

        assert calls == [(3, 10), (6, 10), (9, 10), (10, 10)]

    def test_progress_targets_accumulate(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, max_depth=2)
        renderer.render(2)

        assert list(renderer.render_progressive(4, batch_size=2)) == [(4, 6), (6, 6)]

    def test_zero_samples_is_noop(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6)

        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6)

        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)

    def test_image_uint8(self, two_spheres_scene):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, max_depth=2)
        renderer.render(2)
        image = renderer.get_image_uint8()

        assert image.shape == (6, 8, 3)
        assert image.dtype == np.uint8

    def test_save_image(self, two_spheres_scene, tmp_path):
        from PIL import Image

        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 6, max_depth=2)
        renderer.render(1)
        path = tmp_path / "progressive.png"
        renderer.save_image(str(path))

        with Image.open(path) as saved:
            assert saved.size == (8, 6)
            np.testing.assert_array_equal(np.asarray(saved), renderer.get_image_uint8())
