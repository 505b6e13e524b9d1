# src/pclmetrics/metrics/structure.py

"""
This module implements the canopy structural complexity metrics computed from the
summary matrix and the VAI grid: rumple, gap fraction and clumping index, rugosity
and the effective number of layers (ENL).
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pclmetrics.grid.layer import HitGrid

from .summary import SummaryRow

log = logging.getLogger(__name__)

__all__ = [
    "GapMetrics",
    "RugosityMetrics",
    "EnlMetrics",
    "calc_rumple",
    "calc_gap_fraction",
    "calc_rugosity",
    "calc_enl"
]

@dataclass(frozen=True)
class GapMetrics:
    gap_fraction: float
    clumping_index: float

@dataclass(frozen=True)
class RugosityMetrics:
    """
    Canopy height and VAI heterogeneity statistics of a transect.

    Attributes:
        mean_height (float): Mean of the VAI-weighted column heights.
        height_2 (float): Standard deviation of the VAI-weighted column heights.
        mode_el (float): Mean height of the densest bin across vegetated columns.
        max_el (float): Height bin with the largest mean VAI over the transect.
        max_can_ht (float): Tallest canopy top.
        mean_max_ht (float): Mean canopy top height over all columns.
        mean_vai (float): Mean cumulative column VAI.
        max_vai (float): Largest cumulative column VAI.
        deep_gaps (int): Columns without any canopy return.
        deep_gap_fraction (float): deep_gaps over transect length.
        porosity (float): Share of empty cells beneath the canopy top.
        mean_std (float): Mean within-column VAI standard deviation.
        std_std (float): Standard deviation of the within-column VAI standard deviations.
        rugosity (float): Canopy rugosity, sqrt(std_std^2 + mean_std^2).
        top_rugosity (float): Standard deviation of canopy top height.
    """
    mean_height: float
    height_2: float
    mode_el: float
    max_el: float
    max_can_ht: float
    mean_max_ht: float
    mean_vai: float
    max_vai: float
    deep_gaps: int
    deep_gap_fraction: float
    porosity: float
    mean_std: float
    std_std: float
    rugosity: float
    top_rugosity: float

@dataclass(frozen=True)
class EnlMetrics:
    """
    Attributes:
        enl (float): Mean ENL over columns holding VAI; NaN if there are none.
        enl_columns (int): Number of columns contributing to `enl`.
        enl_transect (float): ENL of the transect-summed VAI profile; NaN without VAI.
    """
    enl: float
    enl_columns: int
    enl_transect: float

def _sd(values: np.ndarray) -> float:
    """Sample standard deviation; 0 for fewer than two values."""
    return float(np.std(values, ddof=1)) if values.size > 1 else 0.0

def calc_rumple(summary: Sequence[SummaryRow], length_m: int) -> float:
    """
    Ratio of the canopy-top profile length to the transect length.

    Each column top is a 1 m plateau at max_ht; neighbouring plateaus are joined by
    a riser of |max_ht[i + 1] - max_ht[i]|. A flat canopy gives exactly 1.
    """
    tops = np.array([row.max_ht for row in summary], dtype=np.float64)
    rise = float(np.abs(np.diff(tops)).sum()) if tops.size > 1 else 0.0
    return (length_m + rise) / length_m

def calc_gap_fraction(
    summary: Sequence[SummaryRow],
    length_m: int,
    extinction_coef: float = 1.0
) -> GapMetrics:
    """
    Computes the gap fraction and the clumping index of a transect.

    gap_fraction is the share of columns without VAI. The clumping index compares
    log-averaged and linearly averaged column transmittance T = exp(-k * sum_vai):
    ln(mean(T)) / mean(ln(T)). An entirely open transect has no clumping (1.0).
    """
    sums = np.array([row.sum_vai for row in summary], dtype=np.float64)
    open_columns = int(np.count_nonzero(sums == 0))
    gap_fraction = open_columns / length_m

    log_t = -extinction_coef * sums
    mean_log_t = float(np.mean(log_t)) if log_t.size else 0.0
    if mean_log_t == 0.0:
        clumping = 1.0
    else:
        clumping = float(np.log(np.mean(np.exp(log_t)))) / mean_log_t

    return GapMetrics(gap_fraction=gap_fraction, clumping_index=clumping)

def calc_rugosity(summary: Sequence[SummaryRow], grid: HitGrid) -> RugosityMetrics:
    """
    Computes vertical and horizontal heterogeneity of canopy structure.

    Canopy rugosity combines the mean and spread of the within-column VAI standard
    deviations, sqrt(std_std^2 + mean_std^2). Columns with fewer than two vegetated
    bins contribute 0. Top rugosity is the standard deviation of canopy top height.

    Args:
        summary (Sequence[SummaryRow]): Rows from make_summary_matrix.
        grid (HitGrid): The VAI grid the summary was built from.

    Returns:
        RugosityMetrics: All height and heterogeneity statistics.
    """
    length_m = len(summary)
    sd_vai = np.array([row.sd_vai for row in summary], dtype=np.float64)
    tops = np.array([row.max_ht for row in summary], dtype=np.float64)
    sums = np.array([row.sum_vai for row in summary], dtype=np.float64)
    vegetated = [row for row in summary if row.sum_vai > 0]

    mean_std = float(np.mean(sd_vai)) if sd_vai.size else 0.0
    std_std = _sd(sd_vai)

    if vegetated:
        col_heights = np.array([row.mean_ht for row in vegetated])
        mean_height = float(np.mean(col_heights))
        height_2 = _sd(col_heights)
        mode_el = float(np.mean([row.mode_ht for row in vegetated]))
    else:
        mean_height = height_2 = mode_el = 0.0

    profile = grid.vai.mean(axis=0)
    max_el = float(np.argmax(profile)) if profile.sum() > 0 else 0.0

    deep_gaps = sum(1 for row in summary if row.canopy_hits == 0)

    # cells at or below the canopy top of columns that have one
    below_top = 0
    empty_below_top = 0
    for row in summary:
        if row.canopy_hits == 0:
            continue
        column = grid.vai[row.xbin, :row.max_ht + 1]
        below_top += column.size
        empty_below_top += int(np.count_nonzero(column == 0))
    porosity = empty_below_top / below_top if below_top else 0.0

    return RugosityMetrics(
        mean_height=mean_height,
        height_2=height_2,
        mode_el=mode_el,
        max_el=max_el,
        max_can_ht=float(tops.max()) if tops.size else 0.0,
        mean_max_ht=float(tops.mean()) if tops.size else 0.0,
        mean_vai=float(sums.mean()) if sums.size else 0.0,
        max_vai=float(sums.max()) if sums.size else 0.0,
        deep_gaps=deep_gaps,
        deep_gap_fraction=deep_gaps / length_m if length_m else 0.0,
        porosity=porosity,
        mean_std=mean_std,
        std_std=std_std,
        rugosity=math.sqrt(std_std ** 2 + mean_std ** 2),
        top_rugosity=_sd(tops)
    )

def calc_enl(summary: Sequence[SummaryRow], grid: HitGrid) -> EnlMetrics:
    """
    Computes the effective number of layers, 1 / sum(p_i^2) with p_i the share of VAI in bin i.

    Columns without VAI have no defined ENL and are left out of the mean rather than
    counted as 0.
    """
    values = [row.enl for row in summary if row.enl is not None]
    enl = float(np.mean(values)) if values else math.nan
    if not values:
        log.info("No column holds VAI; ENL is undefined")

    profile = grid.vai.sum(axis=0)
    total = float(profile.sum())
    if total > 0:
        p = profile / total
        enl_transect = float(1.0 / np.sum(p ** 2))
    else:
        enl_transect = math.nan

    return EnlMetrics(enl=enl, enl_columns=len(values), enl_transect=enl_transect)
