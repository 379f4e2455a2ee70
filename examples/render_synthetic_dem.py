#!/usr/bin/env python3
"""
Synthetic DEM Rendering - dem-viewer Example

Builds a small synthetic ridge-and-peak DEM, writes it as an ASCII Grid with
a few no-data holes, and renders it in all four modes.

Output:
    - examples/output/synthetic.asc
    - examples/output/synthetic_{mode}.png

Usage:
    python examples/render_synthetic_dem.py [--size N] [--azimuth DEG] [--altitude DEG]
"""

import sys
import argparse
import logging
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src import config
from src.dem_viewer.cli import save_image
from src.dem_viewer.hillshade import LightSource
from src.dem_viewer.rendering import RenderMode, render

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

OUTPUT_DIR = Path(__file__).parent / "output"


def make_synthetic_dem(size: int) -> np.ndarray:
    """Gaussian peak on a diagonal ridge, with no-data holes."""
    y, x = np.mgrid[-1:1:complex(0, size), -1:1:complex(0, size)]
    peak = 800 * np.exp(-((x - 0.3) ** 2 + (y + 0.2) ** 2) / 0.08)
    ridge = 300 * np.exp(-((x + y) ** 2) / 0.05)
    dem = 200 + peak + ridge + 20 * np.sin(6 * x) * np.cos(4 * y)

    holes = np.zeros_like(dem, dtype=bool)
    holes[size // 5 : size // 5 + 3, size // 2 : size // 2 + 4] = True
    dem[holes] = config.CONVENTIONAL_NODATA_VALUE
    return dem


def write_ascii_grid(path: Path, dem: np.ndarray, cell_size: float = 30.0) -> Path:
    header = (
        f"ncols {dem.shape[1]}\n"
        f"nrows {dem.shape[0]}\n"
        "xllcorner 500000.0\n"
        "yllcorner 4100000.0\n"
        f"cellsize {cell_size}\n"
        f"NODATA_value {config.CONVENTIONAL_NODATA_VALUE}\n"
    )
    with open(path, "w") as f:
        f.write(header)
        np.savetxt(f, dem, fmt="%.2f")
    return path


def main():
    parser = argparse.ArgumentParser(description="Render a synthetic DEM in every mode")
    parser.add_argument("--size", type=int, default=200, help="Grid size in cells (default: 200)")
    parser.add_argument("--azimuth", type=float, default=config.DEFAULT_AZIMUTH)
    parser.add_argument("--altitude", type=float, default=config.DEFAULT_ALTITUDE)
    args = parser.parse_args()

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    asc_path = write_ascii_grid(OUTPUT_DIR / "synthetic.asc", make_synthetic_dem(args.size))
    logger.info(f"Wrote synthetic DEM to {asc_path}")

    light = LightSource(azimuth=args.azimuth, altitude=args.altitude)
    for mode in RenderMode:
        buffer = render(asc_path, mode, light=light)
        name = mode.value.replace("+", "_")
        save_image(buffer, OUTPUT_DIR / f"synthetic_{name}.png")

    logger.info("Done!")


if __name__ == "__main__":
    main()
