"""Thin-lens camera model for perspective ray generation with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward origin (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed on the focal plane, focus_distance in front of the
camera. Ray origins are sampled over a disk of radius aperture / 2 around the
camera origin; all rays through a given viewport point converge on the focal
plane, so objects away from it blur in proportion to the aperture. An
aperture of zero collapses every ray onto the pinhole origin.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>>
    >>> camera = ThinLensCamera(
    ...     origin=(0.0, 0.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.1,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from crayfish.core.ray import Ray, make_ray, random_in_unit_disk, vec3

logger = logging.getLogger(__name__)

# Below this |cross(up, w)| the camera basis is considered degenerate
_DEGENERATE_BASIS_EPSILON = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        up: Up direction for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_distance: Distance to the plane in perfect focus. None uses
            the distance from origin to look_at.
    """

    origin: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float | None = None

    def resolved_focus_distance(self) -> float:
        """Return focus_distance, defaulting to |origin - look_at|."""
        if self.focus_distance is not None:
            return float(self.focus_distance)
        offset = np.asarray(self.origin, dtype=np.float64) - np.asarray(
            self.look_at, dtype=np.float64
        )
        return float(np.linalg.norm(offset))


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focal-plane viewport
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def validate_camera(camera: ThinLensCamera) -> None:
    """Reject camera configurations that cannot produce a valid basis.

    Raises:
        ValueError: If origin equals look_at, up is parallel to the view
            direction, vfov is outside (0, 180), aspect_ratio is not
            positive, aperture is negative or focus_distance is not positive.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"Vertical field of view {camera.vfov} must be in (0, 180) degrees")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio {camera.aspect_ratio} must be positive")
    if camera.aperture < 0.0:
        raise ValueError(f"Aperture {camera.aperture} must not be negative")

    view = np.asarray(camera.origin, dtype=np.float64) - np.asarray(camera.look_at, dtype=np.float64)
    view_length = np.linalg.norm(view)
    if view_length == 0.0:
        raise ValueError("Camera origin and look_at must differ")

    side = np.cross(np.asarray(camera.up, dtype=np.float64), view / view_length)
    if np.linalg.norm(side) < _DEGENERATE_BASIS_EPSILON:
        raise ValueError(
            f"Camera up vector {camera.up} is parallel to the view direction"
        )

    if camera.resolved_focus_distance() <= 0.0:
        raise ValueError(f"Focus distance {camera.focus_distance} must be positive")


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the orthonormal basis and focal-plane viewport and stores them
    in Taichi fields. Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the configuration is degenerate (see validate_camera).
    """
    validate_camera(camera)

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height
    focus_distance = camera.resolved_focus_distance()

    origin = np.array(camera.origin, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    up = np.array(camera.up, dtype=np.float64)

    w = origin - look_at
    w = w / np.linalg.norm(w)
    u = np.cross(up, w)
    u = u / np.linalg.norm(u)
    v = np.cross(w, u)

    horizontal = u * viewport_width * focus_distance
    vertical = v * viewport_height * focus_distance
    lower_left = origin - horizontal / 2.0 - vertical / 2.0 - w * focus_distance

    _camera_origin[None] = origin.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera at %s looking at %s (vfov=%.1f, aperture=%.3f, focus=%.3f)",
        camera.origin,
        camera.look_at,
        camera.vfov,
        camera.aperture,
        focus_distance,
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        A Ray starting at a random point on the lens and passing through the
        focal-plane point for (s, t). The direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, target - origin)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def as_tuple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": as_tuple(_camera_origin),
        "u": as_tuple(_camera_u),
        "v": as_tuple(_camera_v),
        "w": as_tuple(_camera_w),
        "horizontal": as_tuple(_viewport_horizontal),
        "vertical": as_tuple(_viewport_vertical),
        "lower_left": as_tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
