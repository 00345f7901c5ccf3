"""Integration tests for the end-to-end rendering pipeline.

This module tests the complete pipeline from a scene file through the final
image output. Tests are designed to be fast (low resolution, few samples)
while still exercising every material family.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import numpy as np

SCENE_FILE = Path(__file__).parent.parent / "examples" / "scene.json"


class TestSceneFileRender:
    """Render the bundled scene file at low resolution."""

    def test_scene_file_end_to_end(self, tmp_path) -> None:
        """Test loading, building, rendering and saving the sample scene."""
        from crayfish.preview.export import load_png, save_png
        from crayfish.scene.config import build_world, load_config

        config = dataclasses.replace(
            load_config(SCENE_FILE), width=64, samples_per_pixel=4, max_depth=8
        )
        world = build_world(config)
        assert world.get_sphere_count() == len(config.shapes)

        canvas = world.render(config.render_request())
        assert (canvas.width, canvas.height) == (64, config.height)

        pixels = canvas.to_numpy()
        assert pixels.max() > 100
        # Several materials in view give many distinct colors
        assert len(np.unique(pixels.reshape(-1, 3), axis=0)) > 20

        output = tmp_path / "spheres.png"
        save_png(canvas, output)
        np.testing.assert_array_equal(load_png(output).to_numpy(), pixels)

    def test_row_step_preview(self) -> None:
        """Test a coarse preview leaves skipped rows black."""
        from crayfish.scene.config import build_world, load_config

        config = dataclasses.replace(
            load_config(SCENE_FILE), width=32, samples_per_pixel=1, max_depth=4, row_step=4
        )
        canvas = build_world(config).render(config.render_request())

        pixels = canvas.to_numpy()
        for row in range(canvas.height):
            if row % 4 != 0:
                assert pixels[row].max() == 0
        assert pixels[0].max() > 0


class TestThreeSphereScene:
    """Hand-built scene with one sphere of each material family."""

    def _build(self):
        from crayfish.camera import ThinLensCamera
        from crayfish.materials import Dielectric, Lambertian, Metal
        from crayfish.scene.world import World

        world = World()
        world.add_sphere_with_material((0.0, -100.5, -1.0), 100.0, Lambertian((0.8, 0.8, 0.0)))
        world.add_sphere_with_material((0.0, 0.0, -1.0), 0.5, Lambertian((0.1, 0.2, 0.5)))
        world.add_sphere_with_material((-1.0, 0.0, -1.0), 0.5, Dielectric(1.5))
        world.add_sphere_with_material((1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.0))
        world.set_camera(
            ThinLensCamera(
                origin=(0.0, 0.0, 1.0),
                look_at=(0.0, 0.0, -1.0),
                up=(0.0, 1.0, 0.0),
                vfov=60.0,
                aspect_ratio=2.0,
            )
        )
        return world

    def test_renders_expected_regions(self) -> None:
        """Test sky above, yellow ground below and the blue sphere in the middle."""
        from crayfish.core.canvas import RenderRequest

        world = self._build()
        canvas = world.render(RenderRequest(width=40, height=20, samples_per_pixel=16, max_depth=10))

        # Upper rows look at the sky: blue channel saturates
        r, g, b = canvas.pixel(20, 0)
        assert b == 255
        assert r < 255

        # Bottom rows look at the yellow ground: little blue
        r, g, b = canvas.pixel(20, 19)
        assert r > b
        assert g > b

        # The image center looks at the blue diffuse sphere
        r, g, b = canvas.pixel(20, 10)
        assert b > r

    def test_hit_queries_match_layout(self) -> None:
        """Test World.hit finds each sphere along its axis."""
        world = self._build()

        center = world.hit((0.0, 0.0, 1.0), (0.0, 0.0, -1.0))
        assert center is not None
        assert center.material_id == 1
        assert abs(center.t - 1.5) < 1e-4

        ground = world.hit((0.0, 0.0, 1.0), (0.0, -1.0, 0.0))
        assert ground is not None
        assert ground.material_id == 0

        assert world.hit((0.0, 0.0, 1.0), (0.0, 1.0, 0.0)) is None
