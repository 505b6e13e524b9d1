# src/pclmetrics/grid/layer.py

"""
This module defines the hit grid: a dense two-dimensional structure of 1 m x 1 m cells
indexed by (xbin, zbin), where xbin is the metre along the transect and zbin the metre
above ground.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, NamedTuple

import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "Cell",
    "HitGrid"
]

class Cell(NamedTuple):
    """Snapshot of a single grid cell."""
    xbin: int
    zbin: int
    canopy_hits: int
    sky_hits: int
    available: int
    density: float
    vai: float

@dataclass(frozen=True, eq=False)
class HitGrid:
    """
    Dense grid of per-cell counts and derived values for one transect.

    All arrays share the shape (length_m, z_max + 1) and are indexed [xbin, zbin].
    Sky hits carry no height and sit in the top bin of their column.

    Attributes:
        canopy_hits (np.ndarray): Canopy returns per cell.
        sky_hits (np.ndarray): Pulses without a return per cell.
        available (np.ndarray): Pulses still travelling when they reach the cell from above.
            Filled by the normalizer.
        density (np.ndarray): Share of available pulses intercepted in the cell. Filled by the normalizer.
        vai (np.ndarray): Vegetation area index of the cell. Filled by the VAI calculator.
        max_vai (Optional[float]): Column VAI ceiling applied to `vai`, None before VAI is computed.
    """
    canopy_hits: np.ndarray
    sky_hits: np.ndarray
    available: np.ndarray
    density: np.ndarray
    vai: np.ndarray
    max_vai: Optional[float] = None

    @classmethod
    def empty(cls, length_m: int, z_max: int) -> "HitGrid":
        """Creates a grid of zeroed cells covering [0, length_m) x [0, z_max]."""
        shape = (int(length_m), int(z_max) + 1)
        return cls(
            canopy_hits=np.zeros(shape, dtype=np.int64),
            sky_hits=np.zeros(shape, dtype=np.int64),
            available=np.zeros(shape, dtype=np.int64),
            density=np.zeros(shape, dtype=np.float64),
            vai=np.zeros(shape, dtype=np.float64)
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.canopy_hits.shape

    @property
    def length_m(self) -> int:
        return self.canopy_hits.shape[0]

    @property
    def z_max(self) -> int:
        return self.canopy_hits.shape[1] - 1

    @property
    def pulses(self) -> np.ndarray:
        """Pulses assigned to each cell."""
        return self.canopy_hits + self.sky_hits

    @property
    def column_vai(self) -> np.ndarray:
        """Cumulative VAI of each column."""
        return self.vai.sum(axis=1)

    def cell(self, xbin: int, zbin: int) -> Cell:
        """Returns the cell at (xbin, zbin)."""
        return Cell(
            xbin=xbin,
            zbin=zbin,
            canopy_hits=int(self.canopy_hits[xbin, zbin]),
            sky_hits=int(self.sky_hits[xbin, zbin]),
            available=int(self.available[xbin, zbin]),
            density=float(self.density[xbin, zbin]),
            vai=float(self.vai[xbin, zbin])
        )

    def copy(self, **changes) -> "HitGrid":
        """Returns a deep copy of the grid, replacing the given fields."""
        copied = {
            "canopy_hits": self.canopy_hits.copy(),
            "sky_hits": self.sky_hits.copy(),
            "available": self.available.copy(),
            "density": self.density.copy(),
            "vai": self.vai.copy()
        }
        copied.update(changes)
        return replace(self, **copied)

    def equals(self, other: "HitGrid") -> bool:
        """True if both grids hold identical values in every cell."""
        return (
            self.shape == other.shape
            and self.max_vai == other.max_vai
            and np.array_equal(self.canopy_hits, other.canopy_hits)
            and np.array_equal(self.sky_hits, other.sky_hits)
            and np.array_equal(self.available, other.available)
            and np.array_equal(self.density, other.density)
            and np.array_equal(self.vai, other.vai)
        )
