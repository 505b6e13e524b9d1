# src/pclmetrics/metrics/summary.py

"""
This module builds the summary matrix: one row of aggregates per metre along the transect.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from pclmetrics.grid.layer import HitGrid

log = logging.getLogger(__name__)

__all__ = [
    "SummaryRow",
    "make_summary_matrix"
]

@dataclass(frozen=True)
class SummaryRow:
    """
    Aggregates of a single grid column.

    Attributes:
        xbin (int): Metre along the transect.
        max_ht (int): Highest height bin holding a canopy hit (0 if none).
        canopy_hits (int): Canopy hits in the column.
        sky_hits (int): Sky hits in the column.
        sum_vai (float): Cumulative VAI of the column.
        max_vai (float): Largest single-cell VAI in the column.
        filled_bins (int): Height bins holding at least one canopy hit.
        mean_ht (float): VAI-weighted mean height.
        sd_ht (float): VAI-weighted standard deviation of height.
        mode_ht (int): Height bin with the largest VAI.
        sd_vai (float): Standard deviation of VAI over the column's nonzero cells
            (0 with fewer than two such cells).
        enl (Optional[float]): Effective number of layers, None when the column has no VAI.
    """
    xbin: int
    max_ht: int
    canopy_hits: int
    sky_hits: int
    sum_vai: float
    max_vai: float
    filled_bins: int
    mean_ht: float
    sd_ht: float
    mode_ht: int
    sd_vai: float
    enl: Optional[float]

def _summarize_column(xbin: int, canopy: np.ndarray, sky: np.ndarray, vai: np.ndarray) -> SummaryRow:
    heights = np.arange(vai.size)
    hit_bins = np.flatnonzero(canopy)
    sum_vai = float(vai.sum())

    if sum_vai > 0:
        p = vai / sum_vai
        mean_ht = float(np.sum(heights * p))
        sd_ht = float(np.sqrt(np.sum(p * (heights - mean_ht) ** 2)))
        mode_ht = int(np.argmax(vai))
        enl = float(1.0 / np.sum(p ** 2))
    else:
        mean_ht = sd_ht = 0.0
        mode_ht = 0
        enl = None

    nonzero = vai[vai > 0]
    sd_vai = float(np.std(nonzero, ddof=1)) if nonzero.size > 1 else 0.0

    return SummaryRow(
        xbin=xbin,
        max_ht=int(hit_bins.max()) if hit_bins.size else 0,
        canopy_hits=int(canopy.sum()),
        sky_hits=int(sky.sum()),
        sum_vai=sum_vai,
        max_vai=float(vai.max()) if vai.size else 0.0,
        filled_bins=int(hit_bins.size),
        mean_ht=mean_ht,
        sd_ht=sd_ht,
        mode_ht=mode_ht,
        sd_vai=sd_vai,
        enl=enl
    )

def make_summary_matrix(grid: HitGrid) -> Tuple[SummaryRow, ...]:
    """
    Summarizes each column of a VAI grid.

    Args:
        grid (HitGrid): Grid returned by calc_vai.

    Returns:
        Tuple[SummaryRow, ...]: One row per xbin in ascending order, including empty columns.
    """
    rows = tuple(
        _summarize_column(x, grid.canopy_hits[x], grid.sky_hits[x], grid.vai[x])
        for x in range(grid.length_m)
    )
    log.debug(f"Summary matrix with {len(rows)} columns")
    return rows
