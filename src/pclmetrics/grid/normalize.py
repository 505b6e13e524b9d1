# src/pclmetrics/grid/normalize.py

"""
This module implements the light-extinction normalization of the hit grid and the
conversion of normalized density to vegetation area index (VAI).

Both stages walk each column from the top bin down, following the Beer-Lambert law:
a pulse intercepted at some height never reaches the cells below it.
"""

import logging

import numpy as np
from numba import jit

from .layer import HitGrid

log = logging.getLogger(__name__)

__all__ = [
    "normalize_pcl",
    "calc_vai"
]

@jit(nopython=True, cache=True)
def _normalize_columns(
    canopy: np.ndarray,
    sky: np.ndarray,
    available: np.ndarray,
    density: np.ndarray
):
    """
    Top-down pulse accounting for every column.

    The pulse budget of a column starts at its total pulse count. Each cell's density is
    its canopy hits over the budget left when reaching it; those hits are then removed
    from the budget before moving one bin down. Once the budget is spent, density is 0.

    Returns:
        None (available and density are filled in place).
    """
    n_x, n_z = canopy.shape
    for x in range(n_x):
        remaining = 0
        for z in range(n_z):
            remaining += canopy[x, z] + sky[x, z]

        for z in range(n_z - 1, -1, -1):
            available[x, z] = remaining
            if remaining > 0:
                density[x, z] = canopy[x, z] / remaining
            else:
                density[x, z] = 0.0
            remaining -= canopy[x, z]

@jit(nopython=True, cache=True)
def _vai_columns(
    canopy: np.ndarray,
    density: np.ndarray,
    max_vai: float,
    k: float,
    vai: np.ndarray
):
    """
    Converts density to VAI column by column and applies the column cap.

    Steps:
        1. Walking top-down, a cell with density < 1 gets -ln(1 - density) / k.
        2. A saturated cell (density == 1, every remaining pulse stopped there) gets the
           VAI still missing to reach max_vai, never less than 0.
        3. If the column total exceeds max_vai, every cell of the column is scaled by
           max_vai / total, so the total equals max_vai and the vertical shape is kept.

    Returns:
        None (vai is filled in place).
    """
    n_x, n_z = canopy.shape
    for x in range(n_x):
        total = 0.0
        for z in range(n_z - 1, -1, -1):
            d = density[x, z]
            if canopy[x, z] == 0 or d <= 0.0:
                v = 0.0
            elif d < 1.0:
                v = -np.log(1.0 - d) / k
            else:
                v = max(0.0, max_vai - total)
            vai[x, z] = v
            total += v

        if total > max_vai:
            scale = max_vai / total
            for z in range(n_z):
                vai[x, z] = min(vai[x, z] * scale, max_vai)

def normalize_pcl(grid: HitGrid) -> HitGrid:
    """
    Normalizes canopy hits by the pulses still available at each height.

    Args:
        grid (HitGrid): Grid holding raw canopy and sky counts.

    Returns:
        HitGrid: New grid with `available` and `density` filled.
    """
    out = grid.copy(
        available=np.zeros(grid.shape, dtype=np.int64),
        density=np.zeros(grid.shape, dtype=np.float64)
    )
    _normalize_columns(out.canopy_hits, out.sky_hits, out.available, out.density)

    saturated = int(np.count_nonzero(out.density >= 1.0))
    if saturated:
        log.debug(f"{saturated} cells intercepted every remaining pulse of their column")
    return out

def calc_vai(grid: HitGrid, max_vai: float = 8.0, extinction_coef: float = 1.0) -> HitGrid:
    """
    Derives vegetation area index for every cell of a normalized grid.

    Args:
        grid (HitGrid): Grid returned by normalize_pcl.
        max_vai (float): Ceiling on cumulative column VAI.
        extinction_coef (float): Beer-Lambert extinction coefficient k.

    Returns:
        HitGrid: New grid with `vai` filled and `max_vai` recorded.
    """
    vai = np.zeros(grid.shape, dtype=np.float64)
    _vai_columns(grid.canopy_hits, grid.density, float(max_vai), float(extinction_coef), vai)

    capped = int(np.count_nonzero(np.isclose(vai.sum(axis=1), max_vai)))
    log.debug(f"VAI computed; {capped} columns at the {max_vai} ceiling")
    return grid.copy(vai=vai, max_vai=float(max_vai))
