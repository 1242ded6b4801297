#!/usr/bin/env python3
"""Render a preset scene to an image file.

This script renders one of the preset scenes end to end: it builds the scene
tree and camera, uploads them, accumulates samples with progress output and
saves the gamma corrected, 8-bit quantized image.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene NAME        Preset scene (default: spherion_meets_fractalius)
    --width WIDTH       Image width in pixels (default: 100)
    --height HEIGHT     Image height in pixels (default: width / (16/9))
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --max-depth DEPTH   Maximum number of bounces (default: 5)
    --seed SEED         Seed of the per-pixel random streams (default: 0)
    --arch ARCH         Taichi backend: cpu, gpu, cuda or vulkan (default: cpu)
    --output OUTPUT     Output file path, PNG or JPEG (default: render.png)
    --batch-size SIZE   Samples per progress update (default: 10)
    --quiet             Suppress progress output

Example:
    python -m examples.render_scene --scene three_spheres --width 400 --samples 50
"""

from __future__ import annotations

import argparse
import math
import sys
import time
from pathlib import Path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Preset scene (default: spherion_meets_fractalius)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=100,
        help="Image width in pixels (default: 100)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Image height in pixels (default: width / (16/9))",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=5,
        help="Maximum number of bounces (default: 5)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed of the per-pixel random streams (default: 0)",
    )
    parser.add_argument(
        "--arch",
        type=str,
        default="cpu",
        choices=["cpu", "gpu", "cuda", "vulkan"],
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_preset(
    scene_name: str | None = None,
    width: int = 100,
    height: int | None = None,
    num_samples: int = 100,
    max_depth: int = 5,
    seed: int = 0,
    output_path: str = "render.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it to a file.

    Args:
        scene_name: Name of the preset scene. Defaults to the presets'
            DEFAULT_SCENE.
        width: Image width in pixels.
        height: Image height in pixels. Derived from a 16:9 aspect ratio
            when omitted.
        num_samples: Number of samples per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Seed of the per-pixel random streams.
        output_path: Output file path (PNG or JPEG).
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.config import RenderConfig
    from src.pathtracer.core.progressive import render_scene
    from src.pathtracer.preview.export import save_image
    from src.pathtracer.scene.presets import DEFAULT_ASPECT_RATIO, DEFAULT_SCENE, get_scene

    if scene_name is None:
        scene_name = DEFAULT_SCENE

    if height is None:
        height = max(1, math.floor(width / DEFAULT_ASPECT_RATIO))

    config = RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    world, camera = get_scene(scene_name, aspect_ratio=config.aspect_ratio)

    if not quiet:
        print(f"Rendering '{scene_name}' ({width}x{height}), {num_samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    image = render_scene(world, camera, config, batch_size=batch_size, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_image(image, str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    from src.pathtracer.config import init_taichi

    try:
        init_taichi(arch=args.arch, seed=args.seed)
        if not args.quiet:
            print(f"Using {args.arch} backend")

        render_preset(
            scene_name=args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
