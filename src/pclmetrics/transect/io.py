# src/pclmetrics/transect/io.py

"""
This module handles disk-based input for PCL transects.

The instrument writes one row per pulse with the return distance and intensity.
Rows whose distance is the marker sentinel (-9999) record the operator passing a
transect marker; rows with an empty (or NaN) distance are pulses without a return.
"""

import logging
from pathlib import Path
from typing import Union, Optional

import polars as pl

from pclmetrics.errors import ConfigurationError

from .layer import PulseRecord, Transect

log = logging.getLogger(__name__)

__all__ = [
    "MARKER_SENTINEL",
    "read_pcl",
    "pulses_from_raw"
]

MARKER_SENTINEL = -9999.0

def _parse_distances(column: pl.Series, name: str) -> pl.Series:
    """
    Parses the distance column to Float64 with null for pulses without a return.

    Empty cells and NaN mean no return. Any other text that is not a number, such as a
    stray header line, and infinite values are rejected.
    """
    if column.dtype == pl.String:
        text = column.str.strip_chars()
        parsed = text.cast(pl.Float64, strict=False)
        bad = (text.is_not_null() & (text != "") & parsed.is_null()).arg_true()
        if len(bad):
            rows = [i + 1 for i in bad.head(5).to_list()]
            raise ConfigurationError(
                f"Transect '{name}': {len(bad)} rows with a non-numeric return distance (rows {rows})"
            )
    elif column.dtype.is_numeric() or column.dtype == pl.Null:
        parsed = column.cast(pl.Float64)
    else:
        raise ConfigurationError(f"Column 'return_distance' must be numeric or text, got {column.dtype}")

    parsed = parsed.fill_nan(None)
    infinite = parsed.is_infinite().arg_true()
    if len(infinite):
        rows = [i + 1 for i in infinite.head(5).to_list()]
        raise ConfigurationError(
            f"Transect '{name}': {len(infinite)} rows with an infinite return distance (rows {rows})"
        )
    return parsed.alias("return_distance")

def pulses_from_raw(raw: pl.DataFrame, name: str) -> Transect:
    """
    Converts a raw instrument table into a Transect with marker indices assigned.

    Pulses between marker k and marker k + 1 belong to marker interval k. Pulses recorded
    before the first marker or after the last one lie outside the transect and are kept
    without a marker index.

    Args:
        raw (pl.DataFrame): Table with a 'return_distance' column in acquisition order.
        name (str): Transect identifier.

    Returns:
        Transect: The parsed transect (marker rows removed).

    Raises:
        ConfigurationError: If a distance is not a number or is infinite, or fewer than
            two markers were recorded.
    """
    if "return_distance" not in raw.columns:
        raise ConfigurationError(f"Raw table for '{name}' has no 'return_distance' column")

    df = pl.DataFrame(
        _parse_distances(raw["return_distance"], name)
    ).with_row_index("order")

    df = df.with_columns(
        (pl.col("return_distance") <= MARKER_SENTINEL).fill_null(False).alias("is_marker")
    ).with_columns(
        pl.col("is_marker").cast(pl.Int64).cum_sum().alias("markers_seen")
    )

    n_markers = int(df["is_marker"].sum())
    if n_markers < 2:
        raise ConfigurationError(f"Transect '{name}' needs at least two markers, found {n_markers}")

    pulses_df = df.filter(~pl.col("is_marker"))

    negative = pulses_df.filter(pl.col("return_distance") < 0).height
    if negative:
        log.warning(f"{name}: {negative} pulses with negative return distance treated as no return")

    pulses = []
    for order, distance, seen in pulses_df.select("order", "return_distance", "markers_seen").iter_rows():
        if distance is not None and distance < 0:
            distance = None
        marker_index = seen if 1 <= seen < n_markers else None
        pulses.append(PulseRecord(return_distance=distance, marker_index=marker_index, order=int(order)))

    log.info(f"{name}: read {len(pulses)} pulses across {n_markers - 1} marker intervals")
    return Transect.from_pulses(name, pulses)

def read_pcl(path: Union[str, Path], name: Optional[str] = None) -> Transect:
    """
    Reads a raw PCL csv export into a Transect.

    Args:
        path (Union[str, Path]): Csv file without header; first column is the return distance,
            second (optional) the intensity.
        name (Optional[str]): Transect identifier. Defaults to the file name.

    Returns:
        Transect: The parsed transect.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file cannot be parsed as a PCL table.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"PCL file not found: {path}")

    try:
        raw = pl.read_csv(path, has_header=False, infer_schema_length=0)
    except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as e:
        raise ConfigurationError(f"Could not read PCL file {path}: {e}") from e

    raw = raw.rename({raw.columns[0]: "return_distance"})
    if raw.width > 1:
        raw = raw.rename({raw.columns[1]: "intensity"})

    return pulses_from_raw(raw, name or path.name)
