"""Interactive preview window using Taichi GGUI.

The window first shows a coarse pass (every few rows, few samples) so the
composition appears quickly, then refines it band by band with the full
render request. The window stays open on the finished image until closed.

Example:
    >>> from crayfish.preview.interactive import InteractivePreview, is_display_available
    >>> if is_display_available():
    ...     preview = InteractivePreview(request.width, request.height)
    ...     canvas = preview.run(world, request)
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from crayfish.camera.thin_lens import setup_camera
from crayfish.core.canvas import Canvas, RenderRequest
from crayfish.core.renderer import Renderer

if TYPE_CHECKING:
    from crayfish.scene.world import World

logger = logging.getLogger(__name__)

# Coarse pass settings
COARSE_ROW_STEP = 4
COARSE_SAMPLES_PER_PIXEL = 4


def is_display_available() -> bool:
    """Check if a display is available for GUI rendering.

    Returns:
        True if a display is available, False for headless environments.
    """
    display = os.environ.get("DISPLAY")
    wayland = os.environ.get("WAYLAND_DISPLAY")

    # On macOS, display is always available if not in SSH
    if os.uname().sysname == "Darwin":
        ssh_connection = os.environ.get("SSH_CONNECTION")
        if ssh_connection and not display:
            return False
        return True

    if display or wayland:
        return True

    # Windows generally always has display
    if os.name == "nt":
        return True

    return False


def coarse_request(request: RenderRequest) -> RenderRequest:
    """Derive the quick first-pass request from the full one."""
    return dataclasses.replace(
        request,
        samples_per_pixel=min(request.samples_per_pixel, COARSE_SAMPLES_PER_PIXEL),
        row_step=max(request.row_step, COARSE_ROW_STEP),
    )


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field holding the displayed image (RGB float).
    """

    def __init__(self, width: int, height: int, *, title: str = "crayfish") -> None:
        """Create the display buffer. The window opens on first use.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.
        """
        self.width = width
        self.height = height
        self._title = title

        # Defer window creation to support headless checks
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Shape is (width, height) for the Taichi field
        self.display_image = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(name=self._title, res=(self.width, self.height), vsync=True)
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    def update_canvas(self, canvas: Canvas) -> None:
        """Copy a rendered canvas into the display buffer.

        Raises:
            ValueError: If the canvas size doesn't match the window.
        """
        if (canvas.width, canvas.height) != (self.width, self.height):
            raise ValueError(
                f"Canvas size {canvas.width}x{canvas.height} doesn't match "
                f"window {self.width}x{self.height}"
            )

        image = canvas.to_numpy().astype(np.float32) / 255.0
        # Canvas rows run top-down; Taichi's image origin is bottom-left
        image_xy = np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))
        self.display_image.from_numpy(image_xy)

    def is_running(self) -> bool:
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display buffer."""
        self.window.get_canvas().set_image(self.display_image)
        self.window.show()

    def _render_pass(self, request: RenderRequest) -> Canvas | None:
        renderer = Renderer(request)
        for rows_done, total_rows in renderer.render_progressive():
            if not self.is_running():
                return None
            self.update_canvas(renderer.get_canvas())
            self.show_frame()
            logger.debug("Preview: %d/%d rows", rows_done, total_rows)
        return renderer.get_canvas()

    def run(self, world: World, request: RenderRequest) -> Canvas | None:
        """Render with a coarse pass then the full request, then wait for close.

        Args:
            world: The world to render. Its camera must be set.
            request: The full render request; its size must match the window.

        Returns:
            The full-quality canvas, or None if the window was closed first.
        """
        if world.camera is None:
            raise RuntimeError("No camera set. Call set_camera() before rendering.")

        world.activate()
        setup_camera(world.camera)
        self._initialize_window()

        logger.info("Preview: coarse pass")
        if self._render_pass(coarse_request(request)) is None:
            return None

        logger.info("Preview: full pass")
        canvas = self._render_pass(request)
        if canvas is None:
            return None

        while self.is_running():
            self.show_frame()
        return canvas

    def close(self) -> None:
        """Stop any active window loop."""
        if self._window is not None:
            self._window.running = False
