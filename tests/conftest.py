"""Pytest configuration and fixtures for dem-viewer tests."""
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import matplotlib

matplotlib.use("Agg")

import pytest
import numpy as np

from src.dem_viewer.field import ElevationField

NODATA = -99999.0

SAMPLE_ASC = """ncols        4
nrows        3
xllcorner    500000.0
yllcorner    4100000.0
cellsize     30.0
NODATA_value -99999.0
10.0 20.0 30.0 40.0
15.0 25.0 -99999.0 45.0
20.0 30.0 40.0 50.0
"""


def make_field(data, cell_size=1.0, no_data_value=NODATA):
    """Build an ElevationField from a nested list or array."""
    return ElevationField(data=np.asarray(data, dtype=np.float64), cell_size=cell_size, no_data_value=no_data_value)


def write_asc(path, data, cell_size=1.0, nodata=NODATA, xll=0.0, yll=0.0):
    """Write a 2D array as an ASCII Grid file."""
    data = np.asarray(data, dtype=np.float64)
    lines = [
        f"ncols {data.shape[1]}",
        f"nrows {data.shape[0]}",
        f"xllcorner {xll}",
        f"yllcorner {yll}",
        f"cellsize {cell_size}",
        f"NODATA_value {nodata}",
    ]
    lines.extend(" ".join(repr(float(v)) for v in row) for row in data)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def sample_asc_text():
    """Small 4x3 grid with one no-data cell."""
    return SAMPLE_ASC


@pytest.fixture
def sample_asc_file(tmp_path):
    """Path to the small sample grid on disk."""
    path = tmp_path / "sample.asc"
    path.write_text(SAMPLE_ASC)
    return path


@pytest.fixture
def sample_dem():
    """Create a small synthetic DEM with a peak in the center."""
    x = np.linspace(-10, 10, 20)
    y = np.linspace(-10, 10, 16)
    X, Y = np.meshgrid(x, y)
    Z = 1000 + 100 * np.exp(-(X**2 + Y**2) / 50)
    return Z


@pytest.fixture
def sample_field(sample_dem):
    """Peak DEM with a few no-data holes."""
    data = sample_dem.copy()
    data[5, 7] = NODATA
    data[10, 12] = NODATA
    return make_field(data, cell_size=10.0)


@pytest.fixture
def project_root():
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def field_factory():
    """Factory fixture: build an ElevationField from nested lists."""
    return make_field


@pytest.fixture
def asc_writer(tmp_path):
    """Factory fixture: write an array to <tmp_path>/<name> as ASCII Grid."""

    def _write(data, name="grid.asc", **kwargs):
        return write_asc(tmp_path / name, data, **kwargs)

    return _write
