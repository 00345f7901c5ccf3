"""Path tracing integrator for Monte Carlo light transport.

This module implements the light transport estimator and the render kernel.

The estimator follows a ray through the scene, bouncing off surfaces
according to their material, for at most ``depth`` bounces:

    color(ray, 0)     = black
    color(ray, depth) = background(ray)                          on a miss
                      = black                                    if absorbed
                      = attenuation * color(scattered, depth-1)  otherwise

Taichi functions cannot recurse, so the recursion is unrolled into a loop
that carries the product of the attenuations seen so far. A single sample
is a noisy estimate; the render kernel averages samples_per_pixel jittered
samples per pixel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.core.integrator import setup_render_target, render_rows
    >>> setup_render_target(64, 48)
    >>> render_rows(0, 48, row_step=1, samples_per_pixel=10, max_depth=10)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from crayfish.camera.thin_lens import get_ray
from crayfish.materials.registry import scatter_material
from crayfish.scene.intersection import intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce limit for a path
MAX_DEPTH = 50

# Scattered rays start on the surface; ignoring hits closer than T_MIN
# keeps them from re-hitting it
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints: white at the horizon blending to sky blue overhead
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Accumulation Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of samples, indexed [x, y] with y = 0 at the bottom row
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the accumulation buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulation buffer to zero."""
    _color_sum.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_accumulated_numpy() -> npt.NDArray[np.float32]:
    """Get the active region of the accumulation buffer.

    Returns:
        Array of shape (width, height, 3) indexed [x, y] with y = 0 at the
        bottom row, holding the per-pixel sum of samples.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _color_sum.to_numpy()[:width, :height, :]


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a ray that escapes the scene.

    Linear blend from white to sky blue by the height of the unit direction.
    """
    interp = 0.5 * (tm.normalize(direction).y + 1.0)
    return HORIZON_COLOR * (1.0 - interp) + SKY_COLOR * interp


@ti.func
def color_at(origin: vec3, direction: vec3, depth: ti.i32) -> vec3:
    """Estimate the light arriving along a ray with at most depth bounces.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        depth: Remaining bounce budget. 0 returns black.

    Returns:
        A non-negative linear color (unclamped).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face
                )
                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    # Paths that exhaust the bounce budget contribute black
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    row_start: ti.i32,
    row_end: ti.i32,
    row_step: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render image rows [row_start, row_end) into the accumulation buffer.

    Rows are counted from the top of the image. Only rows whose index is a
    multiple of row_step are traced.
    """
    s_scale = 1.0 / ti.cast(ti.max(width - 1, 1), ti.f32)
    t_scale = 1.0 / ti.cast(ti.max(height - 1, 1), ti.f32)

    for i, row in ti.ndrange(width, (row_start, row_end)):
        if row % row_step == 0:
            # Render coordinates have y = 0 at the bottom
            j = height - 1 - row
            color = vec3(0.0, 0.0, 0.0)
            for _ in range(samples_per_pixel):
                s = (ti.cast(i, ti.f32) + ti.random(ti.f32)) * s_scale
                t = (ti.cast(j, ti.f32) + ti.random(ti.f32)) * t_scale
                ray = get_ray(s, t)
                color += color_at(ray.origin, ray.direction, max_depth)
            _color_sum[i, j] = color


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
) -> vec3:
    return color_at(vec3(ox, oy, oz), vec3(dx, dy, dz), depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    *,
    row_step: int = 1,
    samples_per_pixel: int = 1,
    max_depth: int = MAX_DEPTH,
) -> None:
    """Render a band of image rows into the accumulation buffer.

    Bands are independent units of work: each pixel is written once by the
    thread that owns it and reads only scene data.

    Args:
        row_start: First image row (0 = top).
        row_end: One past the last image row.
        row_step: Trace every row_step-th row; skipped rows stay black.
        samples_per_pixel: Number of jittered samples per pixel.
        max_depth: Bounce limit per path.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    row_end = min(row_end, height)
    if row_start >= row_end:
        return
    _render_rows(width, height, row_start, row_end, row_step, samples_per_pixel, max_depth)


def trace_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Evaluate color_at for a single ray from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction (non-zero).
        depth: Bounce limit.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], depth
    )
    return (float(color[0]), float(color[1]), float(color[2]))
