"""Preview module for output and visualization.

Components:
    export: PNG export via Pillow
    display: Matplotlib-based static preview
    interactive: Taichi GGUI window with coarse-then-full progressive preview

Example:
    >>> from crayfish.preview import save_png, show_preview
    >>> canvas = world.render(request)
    >>> save_png(canvas, "output.png")
    >>> show_preview(canvas)

Note: interactive declares Taichi fields through the renderer; import it
directly (crayfish.preview.interactive) after Taichi is initialized.
"""

from crayfish.preview.display import show_comparison, show_preview
from crayfish.preview.export import canvas_to_image, compute_rmse, load_png, save_png

__all__ = [
    # Display functions
    "show_preview",
    "show_comparison",
    # Export functions
    "save_png",
    "load_png",
    "canvas_to_image",
    "compute_rmse",
]
