# src/pclmetrics/export.py

"""
This module converts pipeline results into polars DataFrames and writes them to disk.

The frames are the hand-off to downstream collaborators: tabular writers, the hit-grid
renderer and the plant area volume density (PAVD) plotter.
"""

import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Union, Sequence, Optional, Dict

import numpy as np
import polars as pl

from .grid.layer import HitGrid
from .metrics.summary import SummaryRow
from .metrics.combine import OutputRecord
from .pipeline import PipelineResult

log = logging.getLogger(__name__)

__all__ = [
    "PavdProfile",
    "output_frame",
    "summary_frame",
    "hit_grid_frame",
    "pavd_profile",
    "write_outputs"
]

HIST_BINS = 10

@dataclass(frozen=True, eq=False)
class PavdProfile:
    """
    Vertical VAI profile of a transect.

    Attributes:
        profile (pl.DataFrame): Per height bin: mean VAI per metre of transect ('pavd'),
            summed VAI and the number of vegetated cells.
        histogram (Optional[pl.DataFrame]): Distribution of nonzero cell VAI, if requested.
    """
    profile: pl.DataFrame
    histogram: Optional[pl.DataFrame] = None

def output_frame(records: Sequence[OutputRecord]) -> pl.DataFrame:
    """One row per transect."""
    return pl.DataFrame([r.as_dict() for r in records])

def summary_frame(summary: Sequence[SummaryRow]) -> pl.DataFrame:
    """One row per metre along the transect; ENL of empty columns is null."""
    return pl.DataFrame(
        [asdict(row) for row in summary],
        schema_overrides={"enl": pl.Float64}
    )

def hit_grid_frame(grid: HitGrid) -> pl.DataFrame:
    """One row per (xbin, zbin) cell with counts, density and VAI."""
    xbins, zbins = np.indices(grid.shape)
    return pl.DataFrame({
        "xbin": xbins.ravel(),
        "zbin": zbins.ravel(),
        "canopy_hits": grid.canopy_hits.ravel(),
        "sky_hits": grid.sky_hits.ravel(),
        "available": grid.available.ravel(),
        "density": grid.density.ravel(),
        "vai": grid.vai.ravel()
    })

def pavd_profile(grid: HitGrid, hist: bool = False) -> PavdProfile:
    """
    Builds the PAVD profile (VAI by height) of a transect.

    Args:
        grid (HitGrid): VAI grid.
        hist (bool): Also compute a histogram of nonzero cell VAI values.

    Returns:
        PavdProfile: The profile and, if requested, the histogram.
    """
    profile = pl.DataFrame({
        "zbin": np.arange(grid.shape[1]),
        "pavd": grid.vai.mean(axis=0),
        "sum_vai": grid.vai.sum(axis=0),
        "vegetated_cells": np.count_nonzero(grid.vai > 0, axis=0)
    })

    histogram = None
    if hist:
        upper = grid.max_vai if grid.max_vai else max(float(grid.vai.max()), 1.0)
        values = grid.vai[grid.vai > 0]
        counts, edges = np.histogram(values, bins=HIST_BINS, range=(0.0, upper))
        histogram = pl.DataFrame({
            "bin_start": edges[:-1],
            "bin_end": edges[1:],
            "count": counts
        })

    return PavdProfile(profile=profile, histogram=histogram)

def write_outputs(result: PipelineResult, directory: Union[str, Path]) -> Dict[str, Path]:
    """
    Writes the output variables, summary matrix, hit matrix and optional PAVD profile as csv.

    Files are named after the transect: '<stem>_output.csv', '<stem>_summary_matrix.csv',
    '<stem>_hit_matrix.csv' and, with config.pavd, '<stem>_pavd.csv' (plus
    '<stem>_pavd_hist.csv' with config.hist).

    Args:
        result (PipelineResult): Output of process_transect.
        directory (Union[str, Path]): Output directory, created if missing.

    Returns:
        Dict[str, Path]: Written file paths keyed by artifact name.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(result.name).stem

    written = {
        "output": out_dir / f"{stem}_output.csv",
        "summary_matrix": out_dir / f"{stem}_summary_matrix.csv",
        "hit_matrix": out_dir / f"{stem}_hit_matrix.csv"
    }
    output_frame([result.record]).write_csv(written["output"])
    summary_frame(result.summary).write_csv(written["summary_matrix"])
    hit_grid_frame(result.grid).write_csv(written["hit_matrix"])

    if result.config.pavd:
        pavd = pavd_profile(result.grid, hist=result.config.hist)
        written["pavd"] = out_dir / f"{stem}_pavd.csv"
        pavd.profile.write_csv(written["pavd"])
        if pavd.histogram is not None:
            written["pavd_hist"] = out_dir / f"{stem}_pavd_hist.csv"
            pavd.histogram.write_csv(written["pavd_hist"])

    log.info(f"Wrote {len(written)} files for '{result.name}' to {out_dir}")
    return written
