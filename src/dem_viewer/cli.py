"""
Command-line entry point for rendering DEM files.

Usage:
    dem-viewer INPUT [OPTIONS]
    python -m src.dem_viewer INPUT [OPTIONS]

Options:
    --mode, -m {grayscale,color,hillshade,color+hillshade}  Render mode (default: grayscale)
    --output, -o FILE      Save the rendered image as PNG
    --show                 Display the rendered image in a window
    --azimuth DEG          Light azimuth, compass degrees (default: 315)
    --altitude DEG         Light altitude above horizon (default: 45)
    --z-factor FLOAT       Vertical exaggeration for shading (default: 1.0)
    --cmap NAME            Matplotlib colormap for color modes (default: turbo)
    --verbose, -v / --quiet, -q

Examples:
    dem-viewer data/dem/ridge.asc --mode color+hillshade -o ridge.png
    dem-viewer data/dem/ridge.asc --mode hillshade --azimuth 270 --altitude 30 --show

Exit status is 0 on success, 1 for I/O failures and 2 for parse or
configuration errors.
"""

import argparse
import logging
import sys
from pathlib import Path

import matplotlib.pyplot as plt

from src import config
from src.dem_viewer.exceptions import ConfigError, DEMViewerError, IoError, ParseError
from src.dem_viewer.hillshade import LightSource
from src.dem_viewer.rendering import PixelBuffer, RenderMode, render

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_IO_ERROR = 1
EXIT_USAGE_ERROR = 2


def save_image(buffer: PixelBuffer, output_path) -> Path:
    """Write the buffer to a PNG file at native resolution."""
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        plt.imsave(output_path, buffer.pixels, format="png")
    except OSError as e:
        raise IoError(f"Cannot write image ({e.strerror})", path=output_path) from e
    logger.info(f"Saved {buffer.width}x{buffer.height} image to {output_path}")
    return output_path


def show_image(buffer: PixelBuffer, title: str = "DEM Viewer") -> None:
    """Display the buffer in a matplotlib window (blocks until closed)."""
    fig, ax = plt.subplots()
    ax.imshow(buffer.pixels, interpolation="nearest")
    ax.set_title(title)
    ax.set_axis_off()
    plt.show()
    plt.close(fig)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dem-viewer",
        description="Render an ASCII Grid DEM as grayscale, color, hillshade or color+hillshade",
    )
    parser.add_argument("input_file", type=Path, help="Path to .asc DEM file")
    parser.add_argument(
        "--mode",
        "-m",
        default=config.DEFAULT_MODE,
        help="Mode: grayscale | color | hillshade | color+hillshade (default: %(default)s)",
    )
    parser.add_argument("--output", "-o", type=Path, help="Save the rendered image as PNG")
    parser.add_argument("--show", action="store_true", help="Display the rendered image")
    parser.add_argument("--azimuth", type=float, default=config.DEFAULT_AZIMUTH)
    parser.add_argument("--altitude", type=float, default=config.DEFAULT_ALTITUDE)
    parser.add_argument("--z-factor", type=float, default=config.DEFAULT_Z_FACTOR)
    parser.add_argument("--cmap", default=config.DEFAULT_COLORMAP)

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    return parser


def _configure_logging(args) -> None:
    level = config.DEFAULT_LOG_LEVEL
    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        mode = RenderMode.parse(args.mode)
        light = LightSource(azimuth=args.azimuth, altitude=args.altitude, z_factor=args.z_factor)
        buffer = render(args.input_file, mode, light=light, cmap_name=args.cmap)

        if args.output:
            save_image(buffer, args.output)
        if args.show:
            show_image(buffer, title=f"{args.input_file.name} ({mode.value})")
        if not args.output and not args.show:
            logger.info(f"Rendered {buffer.width}x{buffer.height} buffer (no --output or --show given)")
    except (ParseError, ConfigError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_USAGE_ERROR
    except DEMViewerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_IO_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
