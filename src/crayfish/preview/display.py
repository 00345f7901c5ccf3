"""Matplotlib-based preview display for rendered canvases.

Features:
    - Static preview window for a finished render
    - Side-by-side comparison of two renders with a difference view

Matplotlib is an optional dependency (the "preview" extra) and is imported
only when a window is shown.

Example:
    >>> from crayfish.preview.display import show_preview
    >>> canvas = world.render(request)
    >>> show_preview(canvas, title="Three spheres")
"""

from __future__ import annotations

import numpy as np

from crayfish.core.canvas import Canvas
from crayfish.preview.export import compute_rmse


def show_preview(
    canvas: Canvas,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a canvas as a Matplotlib figure.

    Args:
        canvas: The rendered canvas.
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(canvas.to_numpy())
    ax.axis("off")
    ax.set_title(title if title is not None else f"Render Preview - {canvas.width}x{canvas.height}")

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    canvas_a: Canvas,
    canvas_b: Canvas,
    *,
    labels: tuple[str, str] = ("A", "B"),
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Display two canvases side by side with their amplified difference.

    Args:
        canvas_a: First canvas.
        canvas_b: Second canvas (same size as canvas_a).
        labels: Labels for the two images.
        diff_scale: Scale factor for difference amplification.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        RMSE between the two images in [0, 1] intensity units.

    Raises:
        ValueError: If the canvases differ in size.
    """
    import matplotlib.pyplot as plt

    image_a = canvas_a.to_numpy().astype(np.float64) / 255.0
    image_b = canvas_b.to_numpy().astype(np.float64) / 255.0
    rmse = compute_rmse(image_a, image_b)

    diff_amplified = np.clip(np.abs(image_a - image_b) * diff_scale, 0.0, 1.0)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(image_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(image_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.6f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse
