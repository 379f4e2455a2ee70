"""
DEM rendering package.

Core functionality:
- ASCII Grid parsing into an immutable ElevationField
- Hillshade using Horn's method (ESRI formulation)
- Elevation color mapping through matplotlib colormaps (turbo by default)
- Compositing into an RGB PixelBuffer in one of four modes
"""

from .exceptions import ConfigError, DEMViewerError, IoError, ParseError
from .field import ElevationField
from .data_loading import load_ascii_grid, load_dem_raster, load_elevation_field, parse_ascii_grid
from .hillshade import LightSource, compute_hillshade
from .color_mapping import elevation_colormap, gradient_color, grayscale_levels
from .rendering import PixelBuffer, RenderMode, compose, render

__all__ = [
    "ConfigError",
    "DEMViewerError",
    "IoError",
    "ParseError",
    "ElevationField",
    "load_ascii_grid",
    "load_dem_raster",
    "load_elevation_field",
    "parse_ascii_grid",
    "LightSource",
    "compute_hillshade",
    "elevation_colormap",
    "gradient_color",
    "grayscale_levels",
    "PixelBuffer",
    "RenderMode",
    "compose",
    "render",
]
