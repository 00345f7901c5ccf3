"""Tests for image export and comparison.

Tests cover:
- Canvas to Pillow image conversion
- PNG save and reload
- RMSE between images
"""

import numpy as np
import pytest


def _gradient_canvas(width=6, height=4):
    from crayfish.core.canvas import Canvas

    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.arange(width, dtype=np.uint8) * 40
    pixels[:, :, 1] = (np.arange(height, dtype=np.uint8) * 60)[:, None]
    pixels[0, 0] = (1, 2, 3)
    return Canvas(pixels)


class TestCanvasToImage:
    """Tests for canvas_to_image."""

    def test_size_mode_and_pixels(self):
        """Test the image has the canvas size and the top-left pixel on top."""
        from crayfish.preview.export import canvas_to_image

        image = canvas_to_image(_gradient_canvas())
        assert image.mode == "RGB"
        assert image.size == (6, 4)
        assert image.getpixel((0, 0)) == (1, 2, 3)
        assert image.getpixel((5, 3)) == (200, 180, 0)


class TestPng:
    """Tests for save_png and load_png."""

    def test_save_and_load(self, tmp_path):
        """Test a PNG reloads to identical pixels."""
        from crayfish.preview.export import load_png, save_png

        canvas = _gradient_canvas()
        path = tmp_path / "image.png"
        save_png(canvas, path)

        assert path.exists()
        reloaded = load_png(path)
        assert (reloaded.width, reloaded.height) == (6, 4)
        np.testing.assert_array_equal(reloaded.to_numpy(), canvas.to_numpy())

    def test_save_creates_parent_directories(self, tmp_path):
        """Test missing output directories are created."""
        from crayfish.preview.export import save_png

        path = tmp_path / "renders" / "nested" / "image.png"
        save_png(_gradient_canvas(), path)
        assert path.exists()


class TestRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        """Test identical images have zero error."""
        from crayfish.preview.export import compute_rmse

        pixels = _gradient_canvas().to_numpy()
        assert compute_rmse(pixels, pixels) == 0.0

    def test_constant_offset(self):
        """Test a uniform difference of 3 gives RMSE 3."""
        from crayfish.preview.export import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 3, dtype=np.uint8)
        assert compute_rmse(a, b) == pytest.approx(3.0)

    def test_shape_mismatch_raises(self):
        """Test images of different sizes are rejected."""
        from crayfish.preview.export import compute_rmse

        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
