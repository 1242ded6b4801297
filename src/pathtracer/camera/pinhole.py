"""Pinhole camera model for perspective projection ray generation.

The camera is positioned with look-at parameters and a vertical field of
view. It builds an orthonormal basis (u, v, w) from the view parameters:

- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

and places a viewport one unit in front of the origin. The derived frame
(origin, lower-left corner, horizontal and vertical spans) is computed once
in Python with NumPy and written to Taichi fields, where ``get_ray`` reads it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(-3.3, 2.0, 1.75),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=45.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> frame = setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray, real, to_tuple3

# Below this, vup is treated as parallel to the view direction
_PARALLEL_EPSILON = 1e-12

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraFrame:
    """The derived viewport of a camera.

    Attributes:
        origin: The ray origin (camera position).
        lower_left_corner: The lower-left corner of the viewport.
        horizontal: The full-width span of the viewport.
        vertical: The full-height span of the viewport.
    """

    origin: tuple[float, float, float]
    lower_left_corner: tuple[float, float, float]
    horizontal: tuple[float, float, float]
    vertical: tuple[float, float, float]


@dataclass(frozen=True)
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    A pinhole camera produces perfect perspective projection with no
    depth of field effects.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.

    Raises:
        ValueError: If lookfrom equals lookat, vup is parallel to the view
            direction, vfov is outside (0, 180), or aspect_ratio is not
            positive.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lookfrom", to_tuple3(self.lookfrom, "lookfrom"))
        object.__setattr__(self, "lookat", to_tuple3(self.lookat, "lookat"))
        object.__setattr__(self, "vup", to_tuple3(self.vup, "vup"))

        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")

        view = np.subtract(self.lookfrom, self.lookat)
        view_length = np.linalg.norm(view)
        if view_length == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(self.vup, view / view_length)) < _PARALLEL_EPSILON:
            raise ValueError("vup must not be parallel to the view direction")

    def compute_frame(self) -> CameraFrame:
        """Compute the camera's viewport frame.

        Returns:
            The CameraFrame of this camera.
        """
        theta = math.radians(self.vfov)
        h = math.tan(theta / 2.0)

        # Viewport dimensions at unit distance
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        w = lookfrom - lookat
        w = w / np.linalg.norm(w)
        u = np.cross(vup, w)
        u = u / np.linalg.norm(u)
        v = np.cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = lookfrom - w - horizontal / 2.0 - vertical / 2.0

        return CameraFrame(
            origin=tuple(float(x) for x in lookfrom),
            lower_left_corner=tuple(float(x) for x in lower_left),
            horizontal=tuple(float(x) for x in horizontal),
            vertical=tuple(float(x) for x in vertical),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=real, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=real, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=real, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=real, shape=())


def setup_camera(camera: PinholeCamera) -> CameraFrame:
    """Compute the camera frame and make it the active camera for rendering.

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Returns:
        The computed CameraFrame.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    frame = camera.compute_frame()
    _camera_origin[None] = list(frame.origin)
    _lower_left_corner[None] = list(frame.lower_left_corner)
    _viewport_horizontal[None] = list(frame.horizontal)
    _viewport_vertical[None] = list(frame.vertical)
    return frame


@ti.func
def get_ray(u: real, v: real) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    u = 0 is the left edge and v = 0 the bottom edge of the viewport;
    values outside [0, 1] extrapolate beyond it.

    Args:
        u: Horizontal coordinate (left to right).
        v: Vertical coordinate (bottom to top).

    Returns:
        A Ray from the camera origin through the viewport point, with
        normalized direction.
    """
    origin = _camera_origin[None]
    target = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    return make_ray(origin, target - origin)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, horizontal, vertical and lower_left.
    """
    origin_vec = _camera_origin[None]
    h_vec = _viewport_horizontal[None]
    vert_vec = _viewport_vertical[None]
    ll_vec = _lower_left_corner[None]

    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "horizontal": (float(h_vec[0]), float(h_vec[1]), float(h_vec[2])),
        "vertical": (float(vert_vec[0]), float(vert_vec[1]), float(vert_vec[2])),
        "lower_left": (float(ll_vec[0]), float(ll_vec[1]), float(ll_vec[2])),
    }
