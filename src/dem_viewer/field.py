"""
Elevation field data model.

An ``ElevationField`` is the immutable in-memory form of a parsed DEM: a dense
2D array of samples plus the georeferencing metadata from the grid header.
Cells equal to the declared no-data sentinel are masked out of every
statistic and render black downstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Tuple

import numpy as np
from rasterio import Affine

logger = logging.getLogger(__name__)

REGISTRATIONS = ("corner", "center")


@dataclass(frozen=True, eq=False)
class ElevationField:
    """
    Rectangular grid of elevation samples with no-data masking.

    Attributes:
        data: 2D float64 array of shape (height, width), row 0 is the northernmost row.
              Stored read-only.
        cell_size: Ground distance per (square) cell
        no_data_value: Sentinel marking missing samples
        xll: X coordinate of the lower-left corner or lower-left cell centre
        yll: Y coordinate of the lower-left corner or lower-left cell centre
        registration: "corner" or "center", how xll/yll were declared
    """

    data: np.ndarray
    cell_size: float
    no_data_value: float
    xll: float = 0.0
    yll: float = 0.0
    registration: str = "corner"
    source: Optional[str] = None

    def __post_init__(self):
        data = np.array(self.data, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError(f"Elevation data must be 2D, got shape {data.shape}")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise ValueError(f"Elevation grid must be non-empty, got shape {data.shape}")
        if not np.isfinite(self.cell_size) or self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.registration not in REGISTRATIONS:
            raise ValueError(f"registration must be one of {REGISTRATIONS}, got {self.registration!r}")

        data.setflags(write=False)
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "cell_size", float(self.cell_size))
        object.__setattr__(self, "no_data_value", float(self.no_data_value))

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def samples(self) -> np.ndarray:
        """Row-major flat view of the samples (``width * height`` values)."""
        return self.data.ravel()

    @cached_property
    def valid_mask(self) -> np.ndarray:
        """Boolean mask, True where the cell holds a real elevation."""
        mask = (self.data != self.no_data_value) & np.isfinite(self.data)
        mask.setflags(write=False)
        return mask

    @property
    def valid_count(self) -> int:
        return int(np.count_nonzero(self.valid_mask))

    @cached_property
    def elevation_range(self) -> Optional[Tuple[float, float]]:
        """
        (min, max) over valid samples, computed once.

        Returns None when every cell is no-data.
        """
        if not self.valid_mask.any():
            logger.warning("Elevation field has no valid samples")
            return None
        valid = self.data[self.valid_mask]
        return float(valid.min()), float(valid.max())

    def normalized(self) -> np.ndarray:
        """
        Normalize valid elevations to [0, 1] using the global valid min/max.

        Flat fields (min == max) map every valid cell to 0.5. No-data cells
        are NaN.

        Returns:
            2D float64 array with the same shape as the field
        """
        result = np.full(self.shape, np.nan, dtype=np.float64)
        value_range = self.elevation_range
        if value_range is None:
            return result

        min_elev, max_elev = value_range
        mask = self.valid_mask
        if max_elev == min_elev:
            logger.info(f"Flat elevation field ({min_elev:.2f}), using midpoint for all cells")
            result[mask] = 0.5
        else:
            result[mask] = (self.data[mask] - min_elev) / (max_elev - min_elev)
        return result

    @property
    def transform(self) -> Affine:
        """North-up affine transform from (col, row) to map coordinates of the top-left corner."""
        left, _, _, top = self.bounds
        return Affine.translation(left, top) * Affine.scale(self.cell_size, -self.cell_size)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, bottom, right, top) extent of the grid in map units."""
        left = self.xll
        bottom = self.yll
        if self.registration == "center":
            left -= self.cell_size / 2.0
            bottom -= self.cell_size / 2.0
        right = left + self.width * self.cell_size
        top = bottom + self.height * self.cell_size
        return left, bottom, right, top

    def summary(self) -> str:
        value_range = self.elevation_range
        range_text = "no valid samples"
        if value_range is not None:
            range_text = f"{value_range[0]:.2f} to {value_range[1]:.2f}"
        return (
            f"{self.width}x{self.height} cells @ {self.cell_size:g}, "
            f"{self.valid_count} valid, range {range_text}"
        )
