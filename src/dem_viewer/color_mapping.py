"""
Color mapping functions for DEM visualization.

This module maps normalized elevation to colors using matplotlib colormaps.
The default ramp is matplotlib's "turbo" (dark blue -> cyan -> green ->
yellow -> red), a 256-entry lookup table, so the same input always yields
the same RGB.

Normalization is a global stretch over the valid samples of the whole field
(see ``ElevationField.normalized``). No-data cells are black.
"""

import logging

import matplotlib
import numpy as np

from src import config
from src.dem_viewer.exceptions import ConfigError
from src.dem_viewer.field import ElevationField

logger = logging.getLogger(__name__)


def get_colormap(cmap_name: str = config.DEFAULT_COLORMAP):
    """
    Look up a registered matplotlib colormap.

    Raises:
        ConfigError: If no colormap with that name is registered
    """
    try:
        return matplotlib.colormaps[cmap_name]
    except KeyError:
        raise ConfigError(f"Unknown colormap: {cmap_name!r}") from None


def gradient_color(t, cmap_name: str = config.DEFAULT_COLORMAP) -> np.ndarray:
    """
    Sample the color ramp at t in [0, 1].

    Values outside [0, 1] are clamped to the ramp ends. Only t == 0 and t == 1
    hit the first and last lookup-table entries; everything strictly between
    stays on the interior entries.

    Args:
        t: Scalar or array of normalized values
        cmap_name: Matplotlib colormap name

    Returns:
        uint8 array of shape ``(*np.shape(t), 3)``
    """
    cmap = get_colormap(cmap_name)
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    index = np.clip((t * cmap.N).astype(np.int64), 1, cmap.N - 2)
    index = np.where(t <= 0.0, 0, np.where(t >= 1.0, cmap.N - 1, index))
    return np.asarray(cmap(index, bytes=True), dtype=np.uint8)[..., :3]


def grayscale_levels(field: ElevationField) -> np.ndarray:
    """
    Stretch valid elevations linearly onto 0-255.

    The lowest valid elevation maps to 0 and the highest to 255; every other
    valid elevation lands on 1-254. Flat fields map to the mid level. No-data
    cells are 0.

    Returns:
        2D uint8 array with the field's shape
    """
    normalized = field.normalized()
    valid = ~np.isnan(normalized)
    levels = np.zeros(field.shape, dtype=np.uint8)
    t = normalized[valid]
    stretched = np.clip(np.rint(t * 255.0), 1, 254)
    stretched[t <= 0.0] = 0
    stretched[t >= 1.0] = 255
    levels[valid] = stretched.astype(np.uint8)
    return levels


def elevation_colormap(field: ElevationField, cmap_name: str = config.DEFAULT_COLORMAP) -> np.ndarray:
    """
    Create RGB colors from elevation values.

    Low elevations map to the start of the colormap, high elevations to the end.

    Args:
        field: Elevation field
        cmap_name: Matplotlib colormap name (default: 'turbo')

    Returns:
        Array of RGB colors with shape (height, width, 3) as uint8,
        black where the field has no data
    """
    logger.info(f"Creating elevation colormap using {cmap_name}")

    value_range = field.elevation_range
    colors = np.zeros((field.height, field.width, 3), dtype=np.uint8)
    if value_range is None:
        return colors

    logger.info(f"Elevation range: {value_range[0]:.1f} to {value_range[1]:.1f}")

    normalized = field.normalized()
    valid = field.valid_mask
    colors[valid] = gradient_color(normalized[valid], cmap_name)

    logger.debug(f"Applied colormap to {np.count_nonzero(valid)} valid pixels")
    return colors
