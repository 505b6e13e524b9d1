# tests/helpers.py

import math

import numpy as np
from pclmetrics import PulseRecord, Transect
from pclmetrics.grid import HitGrid, calc_vai
from pclmetrics.metrics import OutputRecord

def build_transect(name, rows) -> Transect:
    """Builds a transect from (marker_index, return_distance) tuples in acquisition order."""
    pulses = [
        PulseRecord(return_distance=distance, marker_index=marker, order=i)
        for i, (marker, distance) in enumerate(rows)
    ]
    return Transect.from_pulses(name, pulses)

def grid_from_vai(vai: np.ndarray, max_vai: float = 8.0) -> HitGrid:
    """Builds a grid whose canopy hits mark exactly the cells holding VAI."""
    vai = np.asarray(vai, dtype=np.float64)
    grid = HitGrid.empty(vai.shape[0], vai.shape[1] - 1)
    grid.canopy_hits[vai > 0] = 1
    return grid.copy(vai=vai, max_vai=max_vai)

def grid_from_density(density: np.ndarray, max_vai: float = 8.0, k: float = 1.0) -> HitGrid:
    """Runs the VAI calculator on a grid with the given densities."""
    density = np.asarray(density, dtype=np.float64)
    grid = HitGrid.empty(density.shape[0], density.shape[1] - 1)
    grid.canopy_hits[density > 0] = 1
    return calc_vai(grid.copy(density=density), max_vai, k)

def assert_grid_invariants(grid: HitGrid, max_vai: float):
    """Checks the cell-level invariants every processed grid must satisfy."""
    assert np.all(grid.vai >= 0), "Negative VAI found"
    assert np.all(grid.vai <= max_vai + 1e-9), "Cell VAI above ceiling"
    assert np.all(grid.column_vai <= max_vai + 1e-9), "Column VAI above ceiling"
    # pulse budget never grows going down a column
    assert np.all(np.diff(grid.available, axis=1) >= 0), "Available pulses increase downward"

def assert_records_equal(a: OutputRecord, b: OutputRecord):
    """Field-by-field comparison treating NaN as equal to NaN."""
    for key, va in a.as_dict().items():
        vb = b.as_dict()[key]
        if isinstance(va, float) and math.isnan(va):
            assert isinstance(vb, float) and math.isnan(vb), f"{key}: {va} != {vb}"
        else:
            assert va == vb, f"{key}: {va} != {vb}"
