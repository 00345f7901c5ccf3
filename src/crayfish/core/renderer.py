"""Banded renderer producing a Canvas from the current scene and camera.

This module wraps the integrator kernels with:
- Row bands as independent units of work, with progress reported between them
- A generator variant for UI loops
- Timing logs

The scene and camera must already be uploaded (see crayfish.scene.world.World
and crayfish.camera.setup_camera) before a render starts; they are read-only
while bands are in flight.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from crayfish.core.canvas import RenderRequest
    >>> from crayfish.core.renderer import Renderer
    >>> renderer = Renderer(RenderRequest(width=64, height=36, samples_per_pixel=8))
    >>> canvas = renderer.render()
"""

import logging
import time
from collections.abc import Callable, Generator

from crayfish.core.canvas import Canvas, RenderRequest
from crayfish.core.integrator import (
    get_accumulated_numpy,
    render_rows,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows per kernel launch
DEFAULT_BAND_SIZE = 16


class Renderer:
    """Render a request band by band into the shared accumulation buffer.

    Attributes:
        request: The render parameters.
        band_size: Number of image rows traced per kernel launch.
    """

    def __init__(self, request: RenderRequest, band_size: int = DEFAULT_BAND_SIZE) -> None:
        """Set up the render target for the request.

        Raises:
            ValueError: If band_size is not positive or the image exceeds
                the maximum supported size.
        """
        if band_size <= 0:
            raise ValueError(f"band_size = {band_size} must be positive")
        self.request = request
        self.band_size = band_size
        setup_render_target(request.width, request.height)

    @property
    def width(self) -> int:
        return self.request.width

    @property
    def height(self) -> int:
        return self.request.height

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Trace the image band by band, yielding progress after each band.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        height = self.request.height
        for row_start in range(0, height, self.band_size):
            row_end = min(row_start + self.band_size, height)
            render_rows(
                row_start,
                row_end,
                row_step=self.request.row_step,
                samples_per_pixel=self.request.samples_per_pixel,
                max_depth=self.request.max_depth,
            )
            yield (row_end, height)

    def render(self, callback: ProgressCallback | None = None) -> Canvas:
        """Trace the whole image and tone map it.

        Args:
            callback: Optional function called after each band with
                (rows_done, total_rows).

        Returns:
            The finished canvas.
        """
        request = self.request
        logger.info(
            "Rendering %dx%d, %d spp, max depth %d, row step %d",
            request.width,
            request.height,
            request.samples_per_pixel,
            request.max_depth,
            request.row_step,
        )
        start = time.perf_counter()

        for rows_done, total_rows in self.render_progressive():
            if callback is not None:
                callback(rows_done, total_rows)

        canvas = self.get_canvas()
        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return canvas

    def get_canvas(self) -> Canvas:
        """Tone map the current contents of the accumulation buffer."""
        return Canvas.from_accumulated(get_accumulated_numpy(), self.request.samples_per_pixel)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.request.samples_per_pixel})"
        )


def render(
    request: RenderRequest,
    callback: ProgressCallback | None = None,
    band_size: int = DEFAULT_BAND_SIZE,
) -> Canvas:
    """Render the current scene with the current camera.

    Args:
        request: Image size and sampling parameters.
        callback: Optional progress callback, see Renderer.render.
        band_size: Number of image rows per kernel launch.

    Returns:
        The finished canvas.
    """
    return Renderer(request, band_size=band_size).render(callback)
