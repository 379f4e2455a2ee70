"""
Compositing of elevation, color and shade layers into an RGB pixel buffer.

Four mutually exclusive modes are supported:

- ``grayscale``: linear elevation stretch, R=G=B
- ``color``: elevation through the color ramp
- ``hillshade``: Horn hillshade intensity, R=G=B
- ``color+hillshade``: color ramp scaled per channel by ``intensity / 255``

The mode is resolved once before any work starts and only the layers it needs
are computed. Every no-data cell (and, in shaded modes, every cell without a
shade estimate) renders black.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from src import config
from src.dem_viewer.color_mapping import elevation_colormap, get_colormap, grayscale_levels
from src.dem_viewer.data_loading import load_elevation_field
from src.dem_viewer.exceptions import ConfigError
from src.dem_viewer.field import ElevationField
from src.dem_viewer.hillshade import LightSource, compute_hillshade

logger = logging.getLogger(__name__)


class RenderMode(str, Enum):
    GRAYSCALE = "grayscale"
    COLOR = "color"
    HILLSHADE = "hillshade"
    COLOR_HILLSHADE = "color+hillshade"

    @classmethod
    def parse(cls, value) -> "RenderMode":
        """
        Resolve a mode name (case-insensitive) or pass through a RenderMode.

        Raises:
            ConfigError: For any unsupported mode
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        choices = ", ".join(mode.value for mode in cls)
        raise ConfigError(f"Unknown render mode {value!r}; expected one of: {choices}")

    @property
    def needs_color(self) -> bool:
        return self in (RenderMode.COLOR, RenderMode.COLOR_HILLSHADE)

    @property
    def needs_shade(self) -> bool:
        return self in (RenderMode.HILLSHADE, RenderMode.COLOR_HILLSHADE)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Final RGB image, one pixel per elevation cell in the same row-major order.

    Attributes:
        pixels: Read-only uint8 array of shape (height, width, 3)
        mode: Mode the buffer was rendered with
    """

    pixels: np.ndarray
    mode: Optional[RenderMode] = None

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.dtype != np.uint8:
            raise ValueError(f"Expected (height, width, 3) uint8 pixels, got {pixels.shape} {pixels.dtype}")
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def __len__(self):
        return self.width * self.height

    def to_rows(self) -> Iterator[Tuple[int, int, int]]:
        """Yield RGB triples in row-major order."""
        for r, g, b in self.pixels.reshape(-1, 3):
            yield int(r), int(g), int(b)


def _gray_to_rgb(levels: np.ndarray) -> np.ndarray:
    return np.repeat(levels[:, :, np.newaxis], 3, axis=2)


def blend_with_hillshade(colors: np.ndarray, shade: np.ndarray) -> np.ndarray:
    """
    Multiply each color channel by ``shade / 255``.

    Args:
        colors: (H, W, 3) uint8 colors
        shade: (H, W) intensities in [0, 255], NaN where unshaded

    Returns:
        (H, W, 3) uint8, black where ``shade`` is NaN
    """
    valid = ~np.isnan(shade)
    factor = np.where(valid, shade, 0.0) / 255.0
    blended = np.rint(colors.astype(np.float64) * factor[:, :, np.newaxis])
    blended[~valid] = 0
    return np.clip(blended, 0, 255).astype(np.uint8)


def compose(
    field: ElevationField,
    mode: Union[str, RenderMode],
    light: Optional[LightSource] = None,
    cmap_name: str = config.DEFAULT_COLORMAP,
) -> PixelBuffer:
    """
    Render an elevation field into a PixelBuffer.

    Args:
        field: Elevation field (not modified)
        mode: One of grayscale, color, hillshade, color+hillshade
        light: Light source for the shaded modes (default: 315/45)
        cmap_name: Matplotlib colormap for the color modes

    Returns:
        PixelBuffer with the field's width and height

    Raises:
        ConfigError: If the mode is not supported
    """
    mode = RenderMode.parse(mode)
    logger.info(f"Compositing {field.width}x{field.height} grid in '{mode.value}' mode")

    colors = elevation_colormap(field, cmap_name) if mode.needs_color else None
    shade = compute_hillshade(field, light) if mode.needs_shade else None

    if mode is RenderMode.GRAYSCALE:
        pixels = _gray_to_rgb(grayscale_levels(field))
    elif mode is RenderMode.COLOR:
        pixels = colors
    elif mode is RenderMode.HILLSHADE:
        levels = np.where(np.isnan(shade), 0.0, shade).astype(np.uint8)
        pixels = _gray_to_rgb(levels)
    else:
        pixels = blend_with_hillshade(colors, shade)

    # No-data cells are black in every mode
    pixels = np.where(field.valid_mask[:, :, np.newaxis], pixels, 0).astype(np.uint8)
    return PixelBuffer(pixels=pixels, mode=mode)


def render(
    path: Union[str, Path],
    mode: Union[str, RenderMode] = config.DEFAULT_MODE,
    light: Optional[LightSource] = None,
    cmap_name: str = config.DEFAULT_COLORMAP,
) -> PixelBuffer:
    """
    Load a DEM file and render it.

    The mode and colormap are validated before the file is read.

    Raises:
        ConfigError: Unsupported mode or colormap
        IoError: File missing or unreadable
        ParseError: Malformed grid
    """
    mode = RenderMode.parse(mode)
    if mode.needs_color:
        get_colormap(cmap_name)

    field = load_elevation_field(path)
    return compose(field, mode, light=light, cmap_name=cmap_name)
