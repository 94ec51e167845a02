#!/usr/bin/env python3
"""Render the demo room with photon-mapped indirect lighting.

Builds the room scene, traces photons, renders one frame and saves it as a
PNG.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH             Image width in pixels (default: 160)
    --height HEIGHT           Image height in pixels (default: 120)
    --photons COUNT           Photon paths to trace, 0 for direct light only
                              (default: 20000)
    --photon-map {grid,hilbert}
                              Photon map backend (default: grid)
    --radius RADIUS           Grid search radius (default: 0.3)
    --neighbors COUNT         Hilbert neighbor count (default: 10)
    --filter {flat,epanechnikov}
                              Grid density filter (default: flat)
    --sphere {diffuse,mirror,glass}
                              Sphere material (default: diffuse)
    --exposure STRENGTH       Tone mapping strength (default: 1.0)
    --single-threaded         Render on the calling thread only
    --seed SEED               Random seed for reproducible output
    --output OUTPUT           Output file path (default: cornell_box.png)
    --log-level LEVEL         Logging level (default: INFO)

Example:
    python -m examples.render_cornell_box --photons 50000 --sphere glass
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from src.photonmapper.core.renderer import RenderConfig, Renderer
from src.photonmapper.logging_config import setup_logging
from src.photonmapper.preview.export import save_png_from_array
from src.photonmapper.preview.tonemap import ExponentialToneMapper
from src.photonmapper.scene.cornell_box import SPHERE_MATERIALS, CornellBoxParams, create_cornell_box_scene

logger = logging.getLogger("examples.render_cornell_box")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo room with a photon-mapping ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=160, help="Image width in pixels (default: 160)")
    parser.add_argument("--height", type=int, default=120, help="Image height in pixels (default: 120)")
    parser.add_argument(
        "--photons",
        type=int,
        default=20_000,
        help="Photon paths to trace, 0 for direct light only (default: 20000)",
    )
    parser.add_argument(
        "--photon-map",
        choices=("grid", "hilbert"),
        default="grid",
        help="Photon map backend (default: grid)",
    )
    parser.add_argument("--radius", type=float, default=0.3, help="Grid search radius (default: 0.3)")
    parser.add_argument("--neighbors", type=int, default=10, help="Hilbert neighbor count (default: 10)")
    parser.add_argument(
        "--filter",
        choices=("flat", "epanechnikov"),
        default="flat",
        help="Grid density filter (default: flat)",
    )
    parser.add_argument(
        "--sphere",
        choices=SPHERE_MATERIALS,
        default="diffuse",
        help="Sphere material (default: diffuse)",
    )
    parser.add_argument("--exposure", type=float, default=1.0, help="Tone mapping strength (default: 1.0)")
    parser.add_argument("--single-threaded", action="store_true", help="Render on the calling thread only")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser.parse_args(argv)


def render_cornell_box(args: argparse.Namespace) -> Path:
    """Render the scene described by ``args`` and save it.

    Returns:
        Path to the saved image file.
    """
    config = RenderConfig(
        width=args.width,
        height=args.height,
        photon_count=args.photons,
        photon_map=args.photon_map,
        search_radius=args.radius,
        neighbor_count=args.neighbors,
        filter=args.filter,
        use_multithreading=not args.single_threaded,
        seed=args.seed,
    )
    scene, camera = create_cornell_box_scene(
        CornellBoxParams(sphere_material=args.sphere),
        aspect_ratio=config.aspect_ratio,
    )

    with Renderer(
        config,
        scene=scene.traceable(),
        light=scene.light(),
        camera=camera,
        tone_mapper=ExponentialToneMapper(strength=args.exposure),
    ) as renderer:
        logger.info("Rendering %r", renderer)
        image = renderer.render()

    output_file = Path(args.output)
    save_png_from_array(image, output_file)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    setup_logging(args.log_level, name="examples")

    try:
        output_file = render_cornell_box(args)
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return 1

    logger.info("Saved to: %s", output_file.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
