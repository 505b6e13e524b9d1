# src/pclmetrics/pipeline.py

"""
This module runs the full processing chain for a single PCL transect.

Every stage is a pure function of its input; the pipeline performs no I/O and can be
rerun or abandoned at any point without side effects.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import PCLConfig
from .transect.layer import Transect
from .transect.classify import get_transect_length, code_hits, adjust_by_user, csc_metrics
from .grid.layer import HitGrid
from .grid.binning import bin_pulses, make_matrix
from .grid.normalize import normalize_pcl, calc_vai
from .metrics.summary import SummaryRow, make_summary_matrix
from .metrics.structure import calc_rumple, calc_gap_fraction, calc_rugosity, calc_enl
from .metrics.combine import OutputRecord, combine_variables

log = logging.getLogger(__name__)

__all__ = [
    "PipelineResult",
    "process_transect"
]

@dataclass(frozen=True, eq=False)
class PipelineResult:
    """
    Everything produced for one transect.

    Attributes:
        name (str): Transect identifier.
        config (PCLConfig): Configuration the transect was processed with.
        grid (HitGrid): Cell grid with counts, density and VAI.
        summary (Tuple[SummaryRow, ...]): One row per metre along the transect.
        record (OutputRecord): Combined structural complexity variables.
    """
    name: str
    config: PCLConfig
    grid: HitGrid
    summary: Tuple[SummaryRow, ...]
    record: OutputRecord

def process_transect(transect: Transect, config: Optional[PCLConfig] = None) -> PipelineResult:
    """
    Processes a single PCL transect into a VAI grid, summary matrix and output record.

    Steps:
        1. Validates the configuration and derives transect length from the markers.
        2. Classifies pulses as canopy or sky hits and converts distances to heights.
        3. Computes first-order cover metrics.
        4. Bins pulses into 1 m cells and builds the dense hit grid.
        5. Normalizes each column top-down (Beer-Lambert) and derives capped VAI.
        6. Summarizes columns and computes rumple, gap fraction, rugosity and ENL.
        7. Combines all variables into one OutputRecord.

    Args:
        transect (Transect): The pulses of the transect.
        config (Optional[PCLConfig]): Processing configuration. Defaults to PCLConfig().

    Returns:
        PipelineResult: Grid, summary matrix and output record.

    Raises:
        ConfigurationError: If the configuration is invalid or the transect has no usable length.
        IncompleteResultError: If a stage failed to produce a required field.
    """
    config = (config or PCLConfig()).validate()
    log.info(f"Processing transect '{transect.name}' ({len(transect)} pulses)")

    length_m = get_transect_length(transect.pulses, config.marker_spacing)

    classified = code_hits(transect.pulses, config)
    adjusted = adjust_by_user(classified, config)
    cover = csc_metrics(adjusted, length_m)
    n_below = sum(1 for c in adjusted if c.below_ground)

    binned = bin_pulses(adjusted, length_m, config)
    grid = make_matrix(binned, length_m, config.z_max)
    grid = normalize_pcl(grid)
    grid = calc_vai(grid, config.max_vai, config.extinction_coef)

    summary = make_summary_matrix(grid)
    rumple = calc_rumple(summary, length_m)
    gaps = calc_gap_fraction(summary, length_m, config.extinction_coef)
    rugosity = calc_rugosity(summary, grid)
    enl = calc_enl(summary, grid)

    record = combine_variables(
        name=transect.name,
        transect_length=length_m,
        cover=cover,
        binned=binned,
        n_below_ground=n_below,
        rugosity=rugosity,
        rumple=rumple,
        gaps=gaps,
        enl=enl
    )
    log.info(
        f"{transect.name}: cover={record.cover_fraction:.3f}, rugosity={record.rugosity:.3f}, "
        f"rumple={record.rumple:.3f}, enl={record.enl:.3f}"
    )
    return PipelineResult(name=transect.name, config=config, grid=grid, summary=summary, record=record)
