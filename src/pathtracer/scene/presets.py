"""Preset scenes.

Each factory returns a ``(world, camera)`` pair: the scene tree and a camera
framing it. All presets except the regression scene share the main camera,
which looks at the origin from (-3.3, 2, 1.75) with a 45 degree vertical
field of view.

Scenes:
    three_spheres: Diffuse sphere between two metal spheres on green ground
    spherion: A sphere creature with metal eyes, built from analytic spheres
    first_fractal: A raymarched sphere on diffuse ground
    spherion_meets_fractalius: The spherion facing a Sierpinski tetrasphere
        with a mirror sphere inside
    two_spheres: Grey diffuse sphere above a grey ground sphere, seen
        straight on (deterministic regression scene)

Example:
    >>> from src.pathtracer.scene.presets import get_scene
    >>> world, camera = get_scene("three_spheres", aspect_ratio=16 / 9)
    >>> len(world)
    4
"""

from collections.abc import Callable

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.geometry.sdf import SierpinskiTetrasphere, SphereField
from src.pathtracer.materials import Lambertian, Metal
from src.pathtracer.scene.hittable import HittableList, Raymarcher, Sphere

DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_SCENE = "spherion_meets_fractalius"

# Shared ground: a huge sphere just below the scene
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0

Preset = tuple[HittableList, PinholeCamera]


def main_camera(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> PinholeCamera:
    """Camera used by the showcase scenes."""
    return PinholeCamera(
        lookfrom=(-3.3, 2.0, 1.75),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=45.0,
        aspect_ratio=aspect_ratio,
    )


def create_three_spheres_scene(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> Preset:
    """Create a diffuse sphere flanked by a fuzzy gold and a polished silver sphere."""
    world = HittableList(
        (
            Sphere(GROUND_CENTER, GROUND_RADIUS, Lambertian((0.1, 0.8, 0.4))),
            Sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.5, 0.4, 0.7))),
            Sphere((1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.7)),
            Sphere((-1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.8, 0.8), fuzz=0.2)),
        )
    )
    return world, main_camera(aspect_ratio)


def _spherion_face(depth: float) -> tuple[Sphere, ...]:
    """Body, eyes, pupils and nose of the spherion, with its body at z = depth."""
    eye = Metal((0.8, 0.8, 0.8), fuzz=0.05)
    pupil = Metal((0.5, 0.9, 0.5), fuzz=0.01)
    return (
        Sphere((0.0, -0.1, depth), 0.4, Lambertian((0.5, 0.4, 0.7))),
        Sphere((0.5, 0.15, depth), 0.2, eye),
        Sphere((-0.5, 0.15, depth), 0.2, eye),
        Sphere((0.125, 0.05, depth + 0.25), 0.15, pupil),
        Sphere((-0.125, 0.05, depth + 0.25), 0.15, pupil),
        Sphere((0.0, -0.05, depth + 0.3), 0.1, Lambertian((0.8, 0.2, 0.2))),
    )


def create_spherion_scene(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> Preset:
    """Create the spherion: a creature made of spheres, watched by a dark orb."""
    world = HittableList(
        (
            Sphere(GROUND_CENTER, GROUND_RADIUS, Lambertian((0.1, 0.8, 0.4))),
            HittableList(_spherion_face(-1.0)),
            Sphere((0.0, 0.45, 0.75), 0.5, Metal((0.2, 0.2, 0.2), fuzz=0.01)),
            Sphere((0.0, 0.45, 0.335), 0.175, Lambertian((0.95, 0.95, 0.95))),
        )
    )
    return world, main_camera(aspect_ratio)


def create_first_fractal_scene(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> Preset:
    """Create a raymarched sphere resting above diffuse ground."""
    world = HittableList(
        (
            Sphere(GROUND_CENTER, GROUND_RADIUS, Lambertian((0.1, 0.8, 0.4))),
            Raymarcher(
                SphereField((0.0, -0.1, -1.0), 0.4),
                max_steps=100,
                epsilon=0.0001,
                material=Lambertian((0.5, 0.4, 0.7)),
            ),
        )
    )
    return world, main_camera(aspect_ratio)


def create_spherion_meets_fractalius_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> Preset:
    """Create the spherion facing a Sierpinski tetrasphere on a metal floor."""
    world = HittableList(
        (
            Sphere(GROUND_CENTER, GROUND_RADIUS, Metal((0.1, 0.8, 0.4), fuzz=0.2)),
            # fractalius
            Raymarcher(
                SierpinskiTetrasphere((0.0, 0.52, 0.75), iterations=8),
                max_steps=100,
                epsilon=0.000005,
                material=Lambertian((0.5, 0.4, 0.7)),
            ),
            Sphere((0.0, 0.52, 0.75), 0.4, Metal((0.9, 0.2, 0.8), fuzz=0.01)),
            # spherion
            HittableList(_spherion_face(-2.0)),
            Sphere((0.0, 0.52, 0.435), 0.175, Lambertian((0.95, 0.95, 0.95))),
        )
    )
    return world, main_camera(aspect_ratio)


def create_two_spheres_scene(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> Preset:
    """Create the regression scene: a grey sphere resting on a grey ground sphere."""
    grey = Lambertian((0.5, 0.5, 0.5))
    world = HittableList(
        (
            Sphere((0.0, 0.0, -1.0), 0.5, grey),
            Sphere(GROUND_CENTER, GROUND_RADIUS, grey),
        )
    )
    camera = PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return world, camera


SCENES: dict[str, Callable[[float], Preset]] = {
    "three_spheres": create_three_spheres_scene,
    "spherion": create_spherion_scene,
    "first_fractal": create_first_fractal_scene,
    "spherion_meets_fractalius": create_spherion_meets_fractalius_scene,
    "two_spheres": create_two_spheres_scene,
}


def get_scene(name: str, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> Preset:
    """Build a preset scene by name.

    Args:
        name: One of the keys of SCENES.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        Tuple of (world, camera).

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(f"Unknown scene '{name}', expected one of {sorted(SCENES)}") from None
    return factory(aspect_ratio)
