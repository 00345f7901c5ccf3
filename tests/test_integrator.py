"""Tests for the path tracing integrator.

This module tests:
- Render target setup and validation
- The sky background
- color_at evaluated inside a kernel and from Python
- Row bands, row_step and jittered sampling

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest
import taichi as ti


def _setup_front_camera():
    from crayfish.camera import ThinLensCamera, setup_camera

    setup_camera(
        ThinLensCamera(
            origin=(0.0, 0.0, 0.0),
            look_at=(0.0, 0.0, -1.0),
            up=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=2.0,
        )
    )


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_sets_dimensions_and_clears(self):
        """Test dimensions are stored and the buffer starts at zero."""
        from crayfish.core.integrator import (
            get_accumulated_numpy,
            get_image_dimensions,
            setup_render_target,
        )

        setup_render_target(32, 16)
        assert get_image_dimensions() == (32, 16)

        accumulated = get_accumulated_numpy()
        assert accumulated.shape == (32, 16, 3)
        assert (accumulated == 0.0).all()

    @pytest.mark.parametrize(("width", "height"), [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_invalid_dimensions_raise(self, width, height):
        """Test non-positive or oversized dimensions are rejected."""
        from crayfish.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)


class TestBackground:
    """Test the sky gradient."""

    def test_gradient_endpoints(self):
        """Test straight down is white and straight up is sky blue."""
        from crayfish.core.integrator import background, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = background(vec3(0.0, -2.0, 0.0))
            result[1] = background(vec3(0.0, 3.0, 0.0))
            result[2] = background(vec3(1.0, 1.0, 0.0))

        test_kernel()
        colors = result.to_numpy()
        np.testing.assert_allclose(colors[0], [1.0, 1.0, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[1], [0.5, 0.7, 1.0], atol=1e-6)
        # y = 1/sqrt(2): interp ~ 0.854
        interp = 0.5 * (1.0 / np.sqrt(2.0) + 1.0)
        np.testing.assert_allclose(
            colors[2], [1.0 - 0.5 * interp, 1.0 - 0.3 * interp, 1.0], atol=1e-5
        )


class TestColorAt:
    """Test the light transport estimator."""

    def test_in_kernel_matches_background_on_miss(self):
        """Test an empty scene returns the sky for any positive depth."""
        from crayfish.core.integrator import color_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = color_at(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 1)
            result[1] = color_at(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0)

        test_kernel()
        colors = result.to_numpy()
        np.testing.assert_allclose(colors[0], [0.5, 0.7, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[1], [0.0, 0.0, 0.0])

    def test_trace_color_between_facing_mirrors(self):
        """Test a path trapped between two mirrors returns black."""
        from crayfish.core.integrator import trace_color
        from crayfish.materials import Metal, add_material
        from crayfish.scene.intersection import add_sphere, vec3

        front = add_material(Metal((0.5, 0.5, 0.5), fuzz=0.0))
        back = add_material(Metal((0.8, 0.8, 0.8), fuzz=0.0))
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, front)
        add_sphere(vec3(0.0, 0.0, 3.0), 1.0, back)

        # The ray bounces along the z axis between the two spheres forever
        assert trace_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 6) == (0.0, 0.0, 0.0)

    def test_trace_color_single_mirror(self):
        """Test a mirror tints the reflected sky by its color."""
        from crayfish.core.integrator import trace_color
        from crayfish.materials import Metal, add_material
        from crayfish.scene.intersection import add_sphere, vec3

        handle = add_material(Metal((0.2, 0.4, 0.8), fuzz=0.0))
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, handle)

        color = trace_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 3)
        assert color == pytest.approx((0.2 * 0.75, 0.4 * 0.85, 0.8 * 1.0), abs=1e-4)

    def test_one_bounce_budget_is_black_after_hit(self):
        """Test a hit with depth 1 has no budget left to reach the sky."""
        from crayfish.core.integrator import trace_color
        from crayfish.materials import Metal, add_material
        from crayfish.scene.intersection import add_sphere, vec3

        handle = add_material(Metal((0.9, 0.9, 0.9), fuzz=0.0))
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, handle)

        assert trace_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1) == (0.0, 0.0, 0.0)


class TestRenderRows:
    """Test the banded render kernel."""

    def test_band_only_writes_its_rows(self):
        """Test rows outside [row_start, row_end) are left untouched."""
        from crayfish.core.integrator import get_accumulated_numpy, render_rows, setup_render_target

        _setup_front_camera()
        setup_render_target(8, 6)
        render_rows(0, 2, samples_per_pixel=1, max_depth=2)

        accumulated = get_accumulated_numpy()
        # Top two image rows are y = 5 and y = 4 in bottom-up storage
        assert (accumulated[:, 4:, :] > 0.0).all()
        assert (accumulated[:, :4, :] == 0.0).all()

    def test_row_step_skips_rows(self):
        """Test only rows that are a multiple of row_step are traced."""
        from crayfish.core.integrator import get_accumulated_numpy, render_rows, setup_render_target

        _setup_front_camera()
        setup_render_target(4, 9)
        render_rows(0, 9, row_step=3, samples_per_pixel=1, max_depth=2)

        accumulated = get_accumulated_numpy()
        for row in range(9):
            y = 9 - 1 - row
            if row % 3 == 0:
                assert accumulated[:, y, :].min() > 0.0
            else:
                assert accumulated[:, y, :].max() == 0.0

    def test_sum_scales_with_samples(self):
        """Test the buffer holds a sum: blue is exactly one per sample in the sky."""
        from crayfish.core.integrator import get_accumulated_numpy, render_rows, setup_render_target

        _setup_front_camera()
        setup_render_target(4, 2)
        render_rows(0, 2, samples_per_pixel=5, max_depth=3)

        blue = get_accumulated_numpy()[:, :, 2]
        np.testing.assert_allclose(blue, 5.0, atol=1e-4)

    def test_row_end_clamped_to_height(self):
        """Test a band reaching past the last row is clipped."""
        from crayfish.core.integrator import get_accumulated_numpy, render_rows, setup_render_target

        _setup_front_camera()
        setup_render_target(4, 3)
        render_rows(2, 100, samples_per_pixel=1, max_depth=1)

        accumulated = get_accumulated_numpy()
        assert (accumulated[:, 0, :] > 0.0).all()
        assert (accumulated[:, 1:, :] == 0.0).all()

    def test_single_pixel_image(self):
        """Test a 1x1 image renders without dividing by zero."""
        from crayfish.core.integrator import get_accumulated_numpy, render_rows, setup_render_target

        _setup_front_camera()
        setup_render_target(1, 1)
        render_rows(0, 1, samples_per_pixel=4, max_depth=2)

        accumulated = get_accumulated_numpy()
        assert np.isfinite(accumulated).all()
        assert accumulated[0, 0, 2] == pytest.approx(4.0, abs=1e-4)
