"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. The renderer works
    in double precision, so the default float type is f64.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so modules declaring fields load after Taichi is initialized
    from src.pathtracer.core.integrator import clear_render_target
    from src.pathtracer.materials.registry import clear_materials
    from src.pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def vec3_result():
    """A scalar-shaped f64 vector field for reading kernel results."""
    return ti.Vector.field(3, dtype=ti.f64, shape=())


@pytest.fixture
def default_camera():
    """A camera at the origin looking down -z with a 90 degree field of view."""
    from src.pathtracer.camera.pinhole import PinholeCamera

    return PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
