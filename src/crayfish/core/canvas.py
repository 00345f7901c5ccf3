"""Render requests, tone mapping and the final 8-bit canvas.

The integrator accumulates a linear color sum per pixel. Converting it to
displayable bytes takes two steps:

1. gamma_correct: average the samples and apply gamma 2 (square root).
2. quantize: clamp to [0, 0.999], scale by 256 and truncate to a byte.

The Canvas stores the result top row first and exposes it either as
interleaved RGB bytes or as one packed 0xRRGGBB integer per pixel.

Example:
    >>> import numpy as np
    >>> from crayfish.core.canvas import Canvas
    >>> accumulated = np.ones((2, 2, 3), dtype=np.float32) * 4.0
    >>> canvas = Canvas.from_accumulated(accumulated, samples_per_pixel=4)
    >>> canvas.pixel(0, 0)
    (255, 255, 255)
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

# Upper clamp before scaling so 1.0 maps to 255 rather than 256
MAX_INTENSITY = 0.999


@dataclass(frozen=True)
class RenderRequest:
    """Parameters of a single render call.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Bounce limit per path.
        row_step: Trace every row_step-th row; the rest stay black.
    """

    width: int
    height: int
    samples_per_pixel: int = 50
    max_depth: int = 50
    row_step: int = 1

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions ({self.width}x{self.height}) must be positive")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must not be negative")
        if self.row_step < 1:
            raise ValueError(f"row_step = {self.row_step} must be at least 1")


def gamma_correct(
    accumulated: npt.NDArray[np.floating], samples_per_pixel: int
) -> npt.NDArray[np.float32]:
    """Average accumulated samples and apply gamma 2.

    Args:
        accumulated: Per-pixel sum of samples (any shape ending in 3).
        samples_per_pixel: Number of samples in each sum.

    Returns:
        sqrt(accumulated / samples_per_pixel) as float32.
    """
    scale = 1.0 / samples_per_pixel
    averaged = np.maximum(np.asarray(accumulated, dtype=np.float32) * scale, 0.0)
    return np.sqrt(averaged).astype(np.float32)


def quantize(color: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Map gamma-corrected intensities to bytes: clamp, scale by 256, truncate."""
    clamped = np.clip(np.asarray(color, dtype=np.float32), 0.0, MAX_INTENSITY)
    return (clamped * 256.0).astype(np.uint8)


class Canvas:
    """A width x height grid of 8-bit RGB pixels, top row first.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, pixels: npt.NDArray[np.uint8]) -> None:
        """Wrap an existing pixel array.

        Args:
            pixels: Array of shape (height, width, 3) with dtype uint8.

        Raises:
            ValueError: If the array does not have shape (height, width, 3).
        """
        pixels = np.asarray(pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Canvas pixels must have shape (height, width, 3), got {pixels.shape}")
        self._pixels = np.ascontiguousarray(pixels)

    @classmethod
    def blank(cls, width: int, height: int) -> "Canvas":
        """Create an all-black canvas."""
        return cls(np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def from_accumulated(
        cls, accumulated: npt.NDArray[np.floating], samples_per_pixel: int
    ) -> "Canvas":
        """Tone map an accumulation buffer into a canvas.

        Args:
            accumulated: Array of shape (width, height, 3) indexed [x, y]
                with y = 0 at the bottom row.
            samples_per_pixel: Number of samples in each sum.

        Returns:
            The tone-mapped canvas, top row first.
        """
        # [x, y] bottom-up -> [row, col] top-down
        image = np.flipud(np.transpose(np.asarray(accumulated), (1, 0, 2)))
        return cls(quantize(gamma_correct(image, samples_per_pixel)))

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        """Get the (R, G, B) bytes at column x of row y (row 0 is the top)."""
        r, g, b = self._pixels[y, x]
        return (int(r), int(g), int(b))

    def to_numpy(self) -> npt.NDArray[np.uint8]:
        """Get a copy of the pixels as a (height, width, 3) uint8 array."""
        return self._pixels.copy()

    def to_bytes(self) -> bytes:
        """Interleaved RGB bytes, row-major from the top row (3 * w * h bytes)."""
        return self._pixels.tobytes()

    def to_packed(self) -> npt.NDArray[np.uint32]:
        """One 0xRRGGBB integer per pixel, row-major from the top row."""
        channels = self._pixels.astype(np.uint32)
        packed = (channels[:, :, 0] << 16) | (channels[:, :, 1] << 8) | channels[:, :, 2]
        return packed.reshape(-1)

    def __repr__(self) -> str:
        return f"Canvas(width={self.width}, height={self.height})"
