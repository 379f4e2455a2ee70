"""
Hillshade computation using Horn's method.

Implements the ESRI hillshade formulation: slope and aspect come from the
3x3 Horn finite-difference kernels, and illumination is computed for a single
light source given by compass azimuth and altitude (default 315/45, i.e. the
sun in the north-west, 45 degrees above the horizon).

Cells without a full valid 3x3 neighbourhood (the grid border and anything
touching a no-data sample) have no gradient estimate and are returned as NaN.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import ndimage

from src import config
from src.dem_viewer.exceptions import ConfigError
from src.dem_viewer.field import ElevationField

logger = logging.getLogger(__name__)

# Horn's method kernels, applied by correlation (no kernel flip):
# east minus west, and south minus north (rows grow southwards).
HORN_DX_KERNEL = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
HORN_DY_KERNEL = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)


@dataclass(frozen=True)
class LightSource:
    """
    Sun position and vertical exaggeration used for shading.

    Attributes:
        azimuth: Compass direction of the light in degrees, [0, 360). 315 = north-west.
        altitude: Angle above the horizon in degrees, [0, 90]
        z_factor: Multiplier applied to elevations before computing gradients
    """

    azimuth: float = config.DEFAULT_AZIMUTH
    altitude: float = config.DEFAULT_ALTITUDE
    z_factor: float = config.DEFAULT_Z_FACTOR

    def __post_init__(self):
        for name in ("azimuth", "altitude", "z_factor"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise ConfigError(f"Light {name} must be a finite number, got {value!r}")
        if not 0.0 <= self.azimuth < 360.0:
            raise ConfigError(f"Light azimuth must be in [0, 360), got {self.azimuth}")
        if not 0.0 <= self.altitude <= 90.0:
            raise ConfigError(f"Light altitude must be in [0, 90], got {self.altitude}")
        if self.z_factor <= 0:
            raise ConfigError(f"z_factor must be positive, got {self.z_factor}")

    @property
    def zenith_rad(self) -> float:
        return math.radians(90.0 - self.altitude)

    @property
    def azimuth_rad(self) -> float:
        """Azimuth converted from compass bearing to the math convention (counter-clockwise from east)."""
        azimuth_math = (360.0 - self.azimuth + 90.0) % 360.0
        return math.radians(azimuth_math)


def shade_mask(field: ElevationField) -> np.ndarray:
    """
    Cells that have a complete, valid 3x3 neighbourhood.

    The grid border is always excluded.
    """
    return ndimage.binary_erosion(
        field.valid_mask, structure=np.ones((3, 3), dtype=bool), border_value=0
    )


def horn_gradients(field: ElevationField, z_factor: float = 1.0):
    """
    Compute dz/dx and dz/dy with Horn's 3x3 weighted differences.

    dz/dx is positive when elevation rises to the east, dz/dy when it rises to
    the south. Values are only meaningful where ``shade_mask`` is True; no-data
    cells are zero-filled before filtering.

    Args:
        field: Elevation field
        z_factor: Vertical exaggeration

    Returns:
        tuple: (dzdx, dzdy) float64 arrays with the field's shape
    """
    z = np.where(field.valid_mask, field.data, 0.0) * z_factor
    denominator = 8.0 * field.cell_size

    dzdx = ndimage.correlate(z, HORN_DX_KERNEL, mode="nearest") / denominator
    dzdy = ndimage.correlate(z, HORN_DY_KERNEL, mode="nearest") / denominator

    logger.debug(f"Gradient ranges - dx: {dzdx.min():.4f} to {dzdx.max():.4f}")
    logger.debug(f"Gradient ranges - dy: {dzdy.min():.4f} to {dzdy.max():.4f}")
    return dzdx, dzdy


def slope_aspect(dzdx: np.ndarray, dzdy: np.ndarray):
    """
    Slope and aspect in radians from Horn gradients.

    Aspect follows the ESRI convention ``atan2(dz/dy, -dz/dx)`` wrapped into [0, 2*pi).
    """
    slope = np.arctan(np.hypot(dzdx, dzdy))
    aspect = np.arctan2(dzdy, -dzdx)
    aspect = np.where(aspect < 0, aspect + 2 * np.pi, aspect)
    return slope, aspect


def compute_hillshade(field: ElevationField, light: Optional[LightSource] = None) -> np.ndarray:
    """
    Compute per-cell illumination intensity.

    ``255 * (cos(zenith) * cos(slope) + sin(zenith) * sin(slope) * cos(azimuth - aspect))``
    clamped to [0, 255] and rounded to whole intensities.

    Args:
        field: Elevation field
        light: Light source (default: north-west sun at 45 degrees)

    Returns:
        np.ndarray: float64 intensities in [0, 255], NaN where no gradient
        estimate exists (border cells and cells next to no-data)
    """
    if light is None:
        light = LightSource()

    logger.info(
        f"Computing hillshade for {field.width}x{field.height} grid "
        f"(azimuth {light.azimuth}, altitude {light.altitude}, z_factor {light.z_factor})"
    )

    mask = shade_mask(field)
    dzdx, dzdy = horn_gradients(field, light.z_factor)
    slope, aspect = slope_aspect(dzdx, dzdy)

    zenith = light.zenith_rad
    shade = 255.0 * (
        np.cos(zenith) * np.cos(slope)
        + np.sin(zenith) * np.sin(slope) * np.cos(light.azimuth_rad - aspect)
    )
    shade = np.rint(np.clip(shade, 0.0, 255.0))
    shade[~mask] = np.nan

    logger.info(f"Hillshade: {np.count_nonzero(mask)} shaded cells, {np.count_nonzero(~mask)} masked")
    return shade
