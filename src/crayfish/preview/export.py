"""Image export utilities for rendered canvases.

Supported formats:
    - PNG (8-bit RGB via Pillow)

The canvas is already tone mapped, so export is a straight copy of its
interleaved RGB bytes into an image.

Example:
    >>> from crayfish.preview.export import save_png
    >>> canvas = world.render(request)
    >>> save_png(canvas, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from crayfish.core.canvas import Canvas

logger = logging.getLogger(__name__)


def canvas_to_image(canvas: Canvas) -> PILImage.Image:
    """Convert a canvas to a Pillow RGB image."""
    return PILImage.frombytes("RGB", (canvas.width, canvas.height), canvas.to_bytes())


def save_png(canvas: Canvas, filepath: str | Path) -> None:
    """Save a canvas as a PNG file.

    Args:
        canvas: The rendered canvas.
        filepath: Output file path (should end in .png). Missing parent
            directories are created.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    canvas_to_image(canvas).save(filepath, format="PNG")
    logger.info("Saved %dx%d image to %s", canvas.width, canvas.height, filepath)


def load_png(filepath: str | Path) -> Canvas:
    """Load a PNG written by save_png back into a canvas."""
    with PILImage.open(filepath) as image:
        return Canvas(np.asarray(image.convert("RGB"), dtype=np.uint8))


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
