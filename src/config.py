"""Configuration module for dem-viewer project.

Centralizes default rendering and parsing settings.
"""
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# ASCII Grid defaults
DEFAULT_NODATA_VALUE = -9999.0  # Used when the header omits NODATA_value
CONVENTIONAL_NODATA_VALUE = -99999.0  # What our DEM exports usually declare
ASCII_GRID_SUFFIXES = (".asc",)

# Light source (compass degrees, 0=N, 90=E, 315=NW)
DEFAULT_AZIMUTH = 315.0
DEFAULT_ALTITUDE = 45.0
DEFAULT_Z_FACTOR = 1.0

# Rendering
DEFAULT_COLORMAP = "turbo"
DEFAULT_MODE = "grayscale"

# Default settings
DEFAULT_LOG_LEVEL = "INFO"
