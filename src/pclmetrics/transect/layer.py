# src/pclmetrics/transect/layer.py

"""
This module defines the core data structures for a PCL transect: individual laser pulses
and the ordered transect they belong to.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Iterable

import polars as pl

from pclmetrics.errors import ConfigurationError

log = logging.getLogger(__name__)

__all__ = [
    "PulseRecord",
    "Transect"
]

@dataclass(frozen=True)
class PulseRecord:
    """
    One laser pulse as recorded by the instrument.

    Attributes:
        return_distance (Optional[float]): Distance to the return in metres. None means the pulse
            never came back (open sky).
        marker_index (Optional[int]): 1-based index of the marker interval the pulse was recorded in.
            None for pulses that cannot be placed along the transect.
        order (int): Acquisition order of the pulse within the transect.
    """
    return_distance: Optional[float]
    marker_index: Optional[int]
    order: int

    def __post_init__(self):
        if self.return_distance is not None:
            if not math.isfinite(self.return_distance) or self.return_distance < 0:
                raise ConfigurationError(
                    f"Pulse {self.order}: return_distance must be finite and >= 0 when present, "
                    f"got {self.return_distance}"
                )
        if self.marker_index is not None and self.marker_index < 1:
            raise ConfigurationError(
                f"Pulse {self.order}: marker_index must be >= 1 when present, got {self.marker_index}"
            )

def _as_distance(value) -> Optional[float]:
    # NaN and null both mean no return
    if value is None or math.isnan(value):
        return None
    return float(value)

@dataclass(frozen=True)
class Transect:
    """
    Ordered collection of pulses recorded along one transect.

    Attributes:
        name (str): Identifier of the transect, usually the source filename.
        pulses (Tuple[PulseRecord, ...]): Pulses in acquisition order.
    """
    name: str
    pulses: Tuple[PulseRecord, ...]

    def __len__(self) -> int:
        return len(self.pulses)

    @classmethod
    def from_pulses(cls, name: str, pulses: Iterable[PulseRecord]) -> "Transect":
        """
        Builds a transect from pulse records, sorted by acquisition order.

        Raises:
            ConfigurationError: If two pulses share the same acquisition order.
        """
        ordered = tuple(sorted(pulses, key=lambda p: p.order))
        orders = [p.order for p in ordered]
        if len(set(orders)) != len(orders):
            raise ConfigurationError(f"Transect '{name}' has duplicate pulse acquisition orders")
        return cls(name=name, pulses=ordered)

    @classmethod
    def from_frame(cls, df: pl.DataFrame, name: str = "transect") -> "Transect":
        """
        Builds a transect from an in-memory polars table.

        Args:
            df (pl.DataFrame): Table with a numeric 'return_distance' column (null = sky hit),
                an integer 'marker_index' column (null = unplaced) and an optional integer
                'order' column. Without 'order', row position is used.
            name (str): Transect identifier.

        Returns:
            Transect: Transect holding one PulseRecord per row.

        Raises:
            ConfigurationError: If required columns are missing or have the wrong type.
        """
        missing = {"return_distance", "marker_index"} - set(df.columns)
        if missing:
            raise ConfigurationError(
                f"Input table for '{name}' is missing columns {sorted(missing)}. "
                f"Available columns: {df.columns}"
            )

        schema = df.schema
        if not (schema["return_distance"].is_numeric() or schema["return_distance"] == pl.Null):
            raise ConfigurationError(f"Column 'return_distance' must be numeric, got {schema['return_distance']}")
        if not (schema["marker_index"].is_integer() or schema["marker_index"] == pl.Null):
            raise ConfigurationError(f"Column 'marker_index' must be integer, got {schema['marker_index']}")

        if "order" not in df.columns:
            df = df.with_row_index("order")
        elif not schema["order"].is_integer():
            raise ConfigurationError(f"Column 'order' must be integer, got {schema['order']}")

        pulses = [
            PulseRecord(
                return_distance=_as_distance(row["return_distance"]),
                marker_index=None if row["marker_index"] is None else int(row["marker_index"]),
                order=int(row["order"])
            )
            for row in df.select("return_distance", "marker_index", "order").iter_rows(named=True)
        ]
        log.debug(f"Built transect '{name}' from table with {len(pulses)} pulses")
        return cls.from_pulses(name, pulses)
