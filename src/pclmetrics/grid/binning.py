# src/pclmetrics/grid/binning.py

"""
This module assigns classified pulses to 1 m cells and builds the dense hit grid.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numba import jit

from pclmetrics.config import PCLConfig
from pclmetrics.transect.classify import ClassifiedPulse

from .layer import HitGrid

log = logging.getLogger(__name__)

__all__ = [
    "BinnedPulses",
    "bin_pulses",
    "make_matrix"
]

@dataclass(frozen=True, eq=False)
class BinnedPulses:
    """
    Cell coordinates of every pulse that made it into the grid.

    Attributes:
        xbin (np.ndarray): Metre along the transect for each binned pulse.
        zbin (np.ndarray): Height bin for each binned pulse (z_max for sky hits).
        canopy (np.ndarray): True for canopy hits, False for sky hits.
        along_track (np.ndarray): Interpolated along-track distance in metres.
        n_unplaced (int): Pulses skipped because they carry no marker index.
        n_discarded (int): Pulses skipped by the below-ground policy.
        n_above_ceiling (int): Canopy returns clamped into the top bin.
    """
    xbin: np.ndarray
    zbin: np.ndarray
    canopy: np.ndarray
    along_track: np.ndarray
    n_unplaced: int = 0
    n_discarded: int = 0
    n_above_ceiling: int = 0

    def __len__(self) -> int:
        return len(self.xbin)

def bin_pulses(
    pulses: Sequence[ClassifiedPulse],
    length_m: int,
    config: PCLConfig
) -> BinnedPulses:
    """
    Maps height-adjusted pulses to (xbin, zbin) cells.

    Steps:
        1. Groups placeable pulses by marker interval and sorts each group by acquisition order.
        2. Spreads each group evenly over its interval:
           along = (interval - 1) * marker_spacing + marker_spacing * rank / group_size.
        3. xbin = floor(along); zbin = floor(height) clamped to [0, z_max].
           Sky hits travel through the whole column and are placed in the top bin.

    Args:
        pulses (Sequence[ClassifiedPulse]): Classified and height-adjusted pulses.
        length_m (int): Transect length in metres.
        config (PCLConfig): Processing configuration (marker_spacing, z_max).

    Returns:
        BinnedPulses: Cell coordinates plus counts of skipped and clamped pulses.
    """
    spacing = config.marker_spacing
    z_max = int(config.z_max)

    groups = defaultdict(list)
    n_unplaced = 0
    n_discarded = 0
    for c in pulses:
        if not c.valid:
            n_discarded += 1
        elif c.pulse.marker_index is None:
            n_unplaced += 1
        else:
            groups[c.pulse.marker_index].append(c)

    xbins, zbins, canopy, along = [], [], [], []
    n_above = 0
    for interval in sorted(groups):
        group = sorted(groups[interval], key=lambda c: c.pulse.order)
        n = len(group)
        start = (interval - 1) * spacing
        for rank, c in enumerate(group):
            distance = start + spacing * rank / n
            # guard against float round-off at the far edge
            xbin = min(int(np.floor(distance)), length_m - 1)
            if c.canopy_hit:
                zbin = int(np.floor(c.height))
                if zbin > z_max:
                    n_above += 1
                    zbin = z_max
                zbin = max(zbin, 0)
            else:
                zbin = z_max
            xbins.append(xbin)
            zbins.append(zbin)
            canopy.append(c.canopy_hit)
            along.append(distance)

    if n_unplaced:
        log.warning(f"{n_unplaced} pulses outside the marked transect were not binned")
    if n_above:
        log.warning(f"{n_above} canopy returns above {z_max} m placed in the top bin")

    return BinnedPulses(
        xbin=np.array(xbins, dtype=np.int64),
        zbin=np.array(zbins, dtype=np.int64),
        canopy=np.array(canopy, dtype=np.bool_),
        along_track=np.array(along, dtype=np.float64),
        n_unplaced=n_unplaced,
        n_discarded=n_discarded,
        n_above_ceiling=n_above
    )

@jit(nopython=True, cache=True)
def _accumulate_hits(
    canopy_grid: np.ndarray,
    sky_grid: np.ndarray,
    xbins: np.ndarray,
    zbins: np.ndarray,
    canopy: np.ndarray
):
    """
    Counts pulses into the grid using explicit loops for numba optimization.

    Returns:
        None (the grids are modified in place).
    """
    for i in range(len(xbins)):
        if canopy[i]:
            canopy_grid[xbins[i], zbins[i]] += 1
        else:
            sky_grid[xbins[i], zbins[i]] += 1

def make_matrix(binned: BinnedPulses, length_m: int, z_max: int) -> HitGrid:
    """
    Builds the dense hit grid covering every xbin in [0, length_m) and zbin in [0, z_max].

    Cells without observations are present with zero counts, so every column is complete
    for the top-down normalizer.
    """
    grid = HitGrid.empty(length_m, z_max)
    if len(binned):
        _accumulate_hits(grid.canopy_hits, grid.sky_hits, binned.xbin, binned.zbin, binned.canopy)

    log.debug(
        f"Hit grid {grid.shape}: {int(grid.canopy_hits.sum())} canopy hits, "
        f"{int(grid.sky_hits.sum())} sky hits"
    )
    return grid
