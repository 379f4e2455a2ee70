"""
Data loading operations for DEM rendering.

This module decodes ESRI ASCII Grid (``.asc``) text into an ``ElevationField``
and, for convenience, reads single-band rasters (GeoTIFF, HGT, ...) through
rasterio into the same model.

ASCII Grid layout::

    ncols         4
    nrows         3
    xllcorner     500000.0
    yllcorner     4100000.0
    cellsize      30.0
    NODATA_value  -99999.0
    12.5 13.0 14.2 -99999.0
    ...

Parsing is all-or-nothing: any malformed header line, dimension mismatch or
non-numeric token raises ``ParseError`` naming the offending line and token.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError

from src import config
from src.dem_viewer.exceptions import IoError, ParseError
from src.dem_viewer.field import ElevationField

logger = logging.getLogger(__name__)

# Header key -> canonical name
HEADER_KEYS = {
    "ncols": "ncols",
    "nrows": "nrows",
    "xllcorner": "xll",
    "xllcenter": "xll",
    "yllcorner": "yll",
    "yllcenter": "yll",
    "cellsize": "cellsize",
    "nodata_value": "nodata",
}
REQUIRED_HEADER = ("ncols", "nrows", "xll", "yll", "cellsize")


def _parse_number(token: str, line_no: int, key: str) -> float:
    try:
        value = float(token)
    except ValueError:
        raise ParseError(f"Non-numeric value for header '{key}'", line=line_no, token=token) from None
    if not np.isfinite(value):
        raise ParseError(f"Non-finite value for header '{key}'", line=line_no, token=token)
    return value


def _parse_dimension(token: str, line_no: int, key: str) -> int:
    value = _parse_number(token, line_no, key)
    if not value.is_integer() or value < 1:
        raise ParseError(f"Header '{key}' must be a positive integer", line=line_no, token=token)
    return int(value)


def _is_numeric(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _parse_header(lines: List[str]) -> tuple:
    """
    Read header lines until the first data line.

    Returns:
        tuple: (header dict, registration, index of first data line)
    """
    header: Dict[str, float] = {}
    registration = {}
    index = 0

    while index < len(lines):
        line_no = index + 1
        tokens = lines[index].split()
        if not tokens:
            index += 1
            continue

        key = tokens[0].lower()
        if key not in HEADER_KEYS:
            if _is_numeric(tokens[0]):
                break
            raise ParseError("Unknown header key", line=line_no, token=tokens[0])
        if len(tokens) != 2:
            raise ParseError(
                f"Header line must be '<key> <value>', got {len(tokens)} tokens", line=line_no
            )

        name = HEADER_KEYS[key]
        if name in header:
            raise ParseError("Duplicate header key", line=line_no, token=tokens[0])

        if name in ("ncols", "nrows"):
            header[name] = _parse_dimension(tokens[1], line_no, key)
        else:
            header[name] = _parse_number(tokens[1], line_no, key)

        if name in ("xll", "yll"):
            registration[name] = "center" if key.endswith("center") else "corner"

        index += 1

    missing = [name for name in REQUIRED_HEADER if name not in header]
    if missing:
        raise ParseError(
            f"Missing required header field(s): {', '.join(missing)}",
            line=min(index + 1, len(lines)) if lines else None,
        )
    if registration["xll"] != registration["yll"]:
        raise ParseError("Mixed corner/center registration in xll/yll header fields")
    if header["cellsize"] <= 0:
        raise ParseError("Header 'cellsize' must be positive", token=str(header["cellsize"]))

    return header, registration["xll"], index


def _parse_row(tokens: List[str], line_no: int) -> np.ndarray:
    try:
        row = np.asarray(tokens, dtype=np.float64)
    except ValueError:
        for token in tokens:
            if not _is_numeric(token):
                raise ParseError("Non-numeric sample", line=line_no, token=token) from None
        raise
    if not np.all(np.isfinite(row)):
        bad = tokens[int(np.flatnonzero(~np.isfinite(row))[0])]
        raise ParseError("Non-finite sample", line=line_no, token=bad)
    return row


def parse_ascii_grid(text: Union[str, bytes], source: Optional[str] = None) -> ElevationField:
    """
    Parse ESRI ASCII Grid text into an ElevationField.

    Header keys are case-insensitive. ``NODATA_value`` is optional and falls back
    to ``config.DEFAULT_NODATA_VALUE`` when absent; when present it is authoritative.
    The first data row is the northernmost row of the grid.

    Args:
        text: Grid file contents, as text or raw bytes
        source: Optional name of the input (used in log messages)

    Returns:
        ElevationField: The parsed grid

    Raises:
        ParseError: On malformed header, dimension mismatch or non-numeric token
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Input is not valid text ({e.reason} at byte {e.start})") from e

    lines = text.splitlines()
    header, registration, index = _parse_header(lines)
    ncols = header["ncols"]
    nrows = header["nrows"]

    nodata = header.get("nodata")
    if nodata is None:
        nodata = config.DEFAULT_NODATA_VALUE
        logger.debug(f"No NODATA_value in header, using default {nodata}")

    logger.info(f"Parsing ASCII grid {source or '<text>'}: {ncols}x{nrows}, cellsize {header['cellsize']}")

    data = np.empty((nrows, ncols), dtype=np.float64)
    rows_read = 0
    last_line_no = index
    for offset, line in enumerate(lines[index:]):
        line_no = index + offset + 1
        tokens = line.split()
        if not tokens:
            continue
        if rows_read >= nrows:
            raise ParseError(
                f"Row count mismatch: header declares {nrows} rows but more data follows",
                line=line_no,
            )
        if len(tokens) != ncols:
            raise ParseError(
                f"Column count mismatch: expected {ncols} values, found {len(tokens)}",
                line=line_no,
            )
        data[rows_read] = _parse_row(tokens, line_no)
        rows_read += 1
        last_line_no = line_no

    if rows_read != nrows:
        raise ParseError(
            f"Row count mismatch: header declares {nrows} rows, found {rows_read}",
            line=last_line_no,
        )

    field = ElevationField(
        data=data,
        cell_size=header["cellsize"],
        no_data_value=nodata,
        xll=header["xll"],
        yll=header["yll"],
        registration=registration,
        source=source,
    )
    logger.info(f"Loaded elevation field: {field.summary()}")
    return field


def load_ascii_grid(path: Union[str, Path]) -> ElevationField:
    """
    Read and parse an ``.asc`` file.

    Raises:
        IoError: If the file cannot be read
        ParseError: If its contents are not a valid ASCII Grid
    """
    path = Path(path)
    logger.info(f"Reading ASCII grid: {path}")
    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise IoError("File not found", path=path) from e
    except IsADirectoryError as e:
        raise IoError("Path is a directory", path=path) from e
    except OSError as e:
        raise IoError(f"Cannot read file ({e.strerror})", path=path) from e

    return parse_ascii_grid(raw, source=str(path))


def load_dem_raster(path: Union[str, Path]) -> ElevationField:
    """
    Load band 1 of a rasterio-readable DEM into an ElevationField.

    Only north-up rasters with square pixels are accepted. Missing nodata
    falls back to ``config.DEFAULT_NODATA_VALUE``.

    Raises:
        IoError: If rasterio cannot open the file
        ParseError: If the raster is multi-band, rotated or has non-square pixels
    """
    path = Path(path)
    logger.info(f"Reading raster DEM: {path}")
    if not path.exists():
        raise IoError("File not found", path=path)

    try:
        with rasterio.open(path) as ds:
            if ds.count != 1:
                raise ParseError(f"Expected a single-band raster, found {ds.count} bands")
            transform = ds.transform
            if transform.b != 0 or transform.d != 0 or transform.e >= 0:
                raise ParseError(f"Only north-up rasters are supported, got transform {tuple(transform)[:6]}")
            if not np.isclose(abs(transform.a), abs(transform.e)):
                raise ParseError(
                    f"Cells must be square, got {abs(transform.a)} x {abs(transform.e)}"
                )
            data = ds.read(1).astype(np.float64)
            nodata = ds.nodata if ds.nodata is not None else config.DEFAULT_NODATA_VALUE
    except RasterioIOError as e:
        raise IoError(f"Cannot open raster ({e})", path=path) from e

    height = data.shape[0]
    field = ElevationField(
        data=data,
        cell_size=abs(transform.a),
        no_data_value=nodata,
        xll=transform.c,
        yll=transform.f + height * transform.e,
        registration="corner",
        source=str(path),
    )
    logger.info(f"Loaded elevation field: {field.summary()}")
    return field


def load_elevation_field(path: Union[str, Path]) -> ElevationField:
    """Load a DEM, dispatching on file suffix (``.asc`` -> ASCII parser, else rasterio)."""
    path = Path(path)
    if path.suffix.lower() in config.ASCII_GRID_SUFFIXES:
        return load_ascii_grid(path)
    return load_dem_raster(path)
