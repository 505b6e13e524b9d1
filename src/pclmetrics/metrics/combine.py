# src/pclmetrics/metrics/combine.py

"""
This module merges the scalar outputs of every stage into one flat record per transect.
"""

import logging
from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, Optional

from pclmetrics.errors import IncompleteResultError
from pclmetrics.transect.classify import CoverMetrics
from pclmetrics.grid.binning import BinnedPulses

from .structure import GapMetrics, RugosityMetrics, EnlMetrics

log = logging.getLogger(__name__)

__all__ = [
    "OutputRecord",
    "combine_variables"
]

@dataclass(frozen=True)
class OutputRecord:
    """
    Canopy structural complexity variables of one transect.

    Heights are in metres above ground, lengths in metres along the transect and VAI
    in m^2 m^-2. enl and enl_transect are NaN when the transect holds no VAI.
    """
    name: str
    transect_length: int

    # raw counts
    n_pulses: int
    n_canopy_hits: int
    n_sky_hits: int
    n_binned: int
    n_unplaced: int
    n_below_ground: int
    n_above_ceiling: int

    # first-order cover metrics
    sky_fraction: float
    cover_fraction: float
    mean_return_ht: float
    sd_return_ht: float
    max_return_ht: float
    scan_density: float

    # height and VAI statistics
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

    # structural complexity
    mean_std: float
    std_std: float
    rugosity: float
    top_rugosity: float
    rumple: float
    gap_fraction: float
    clumping_index: float
    enl: float
    enl_transect: float
    enl_columns: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

def combine_variables(
    name: str,
    transect_length: int,
    cover: Optional[CoverMetrics],
    binned: Optional[BinnedPulses],
    n_below_ground: Optional[int],
    rugosity: Optional[RugosityMetrics],
    rumple: Optional[float],
    gaps: Optional[GapMetrics],
    enl: Optional[EnlMetrics]
) -> OutputRecord:
    """
    Merges upstream results into an OutputRecord without recomputing anything.

    Raises:
        IncompleteResultError: If any stage result, or any field within one, is missing.
    """
    merged = {"name": name, "transect_length": transect_length, "rumple": rumple,
              "n_below_ground": n_below_ground}

    missing = [key for key, value in merged.items() if value is None]
    for label, part in (("cover", cover), ("binned", binned), ("rugosity", rugosity),
                        ("gaps", gaps), ("enl", enl)):
        if part is None:
            missing.append(label)

    if binned is not None:
        merged.update(
            n_binned=len(binned),
            n_unplaced=binned.n_unplaced,
            n_above_ceiling=binned.n_above_ceiling
        )
    for part in (cover, rugosity, gaps, enl):
        if part is not None:
            merged.update(asdict(part))

    if not missing:
        missing = [f.name for f in fields(OutputRecord) if merged.get(f.name) is None]
    if missing:
        log.error(f"{name}: incomplete result, missing {missing}")
        raise IncompleteResultError(missing)

    return OutputRecord(**{f.name: merged[f.name] for f in fields(OutputRecord)})
