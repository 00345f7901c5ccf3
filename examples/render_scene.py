#!/usr/bin/env python3
"""Render a JSON scene file.

Loads the scene, builds the world, renders it with a progress line per row
band and writes a PNG. Command-line options override the image settings of
the scene file.

Usage:
    python examples/render_scene.py [options]

Options:
    --config PATH       Scene file (default: examples/scene.json)
    --output PATH       Output file path (default: the scene's outputPath)
    --samples N         Samples per pixel
    --max-depth N       Bounce limit per path
    --row-step N        Trace every N-th row
    --width N           Image width in pixels (height follows the aspect ratio)
    --seed N            Random seed (default: 0)
    --cpu               Force the CPU backend
    --preview           Show the render in an interactive window
    --quiet             Suppress progress output
    --verbose           Enable debug logging

Example:
    python examples/render_scene.py --width 200 --samples 20 --output spheres.png
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

DEFAULT_CONFIG = Path(__file__).with_name("scene.json")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a JSON scene file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Scene file (default: {DEFAULT_CONFIG.name})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file path (default: the scene's outputPath)",
    )
    parser.add_argument("--samples", type=int, default=None, help="Samples per pixel")
    parser.add_argument("--max-depth", type=int, default=None, help="Bounce limit per path")
    parser.add_argument("--row-step", type=int, default=None, help="Trace every N-th row")
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (height follows the aspect ratio)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the render in an interactive window",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def apply_overrides(config, args: argparse.Namespace):
    """Return a copy of the scene config with command-line overrides applied."""
    overrides = {}
    if args.width is not None:
        overrides["width"] = args.width
    if args.samples is not None:
        overrides["samples_per_pixel"] = args.samples
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.row_step is not None:
        overrides["row_step"] = args.row_step
    if args.output is not None:
        overrides["output_path"] = args.output
    return dataclasses.replace(config, **overrides)


def render_scene(args: argparse.Namespace) -> Path:
    """Render the configured scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any field is declared
    from crayfish.preview.export import save_png
    from crayfish.scene.config import build_world, load_config

    config = apply_overrides(load_config(args.config), args)
    request = config.render_request()

    if not args.quiet:
        print(f"Building scene from {args.config} ({len(config.shapes)} shapes)...")
    world = build_world(config)

    if args.preview:
        from crayfish.preview.interactive import InteractivePreview, is_display_available

        if is_display_available():
            canvas = InteractivePreview(request.width, request.height).run(world, request)
            if canvas is None:
                raise RuntimeError("Preview closed before the render finished")
        else:
            print("No display available, rendering without preview", file=sys.stderr)
            args.preview = False

    if not args.preview:
        if not args.quiet:
            print(
                f"Rendering {request.width}x{request.height} at "
                f"{request.samples_per_pixel} samples per pixel..."
            )

        start_time = time.time()

        def progress_callback(rows_done: int, total_rows: int) -> None:
            if not args.quiet:
                elapsed = time.time() - start_time
                progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
                print(
                    f"\r  Progress: {rows_done}/{total_rows} rows "
                    f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                    end="",
                    flush=True,
                )

        canvas = world.render(request, callback=progress_callback)
        if not args.quiet:
            print()  # Newline after progress
            print(f"Total time: {time.time() - start_time:.2f}s")

    output_file = Path(config.output_path)
    save_png(canvas, output_file)
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from crayfish.core.backend import init_backend

    backend = init_backend(prefer_gpu=not args.cpu, seed=args.seed)
    if not args.quiet:
        print(f"Using {backend.upper()} backend")

    try:
        render_scene(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
