# tests/unit/test_metrics.py

import math

import numpy as np
import pytest
from pclmetrics import IncompleteResultError
from pclmetrics.metrics import (
    make_summary_matrix,
    calc_rumple,
    calc_gap_fraction,
    calc_rugosity,
    calc_enl,
    combine_variables
)

from helpers import grid_from_vai

@pytest.fixture
def two_column_grid():
    """
    Column 0 holds VAI 1 at 1 m and 3 at 2 m; column 1 holds VAI 2 at 3 m.
    """
    vai = np.zeros((2, 4))
    vai[0, 1] = 1.0
    vai[0, 2] = 3.0
    vai[1, 3] = 2.0
    return grid_from_vai(vai)

def test_summary_rows(two_column_grid):
    rows = make_summary_matrix(two_column_grid)

    assert [r.xbin for r in rows] == [0, 1]
    first, second = rows
    assert first.max_ht == 2
    assert first.sum_vai == pytest.approx(4.0)
    assert first.filled_bins == 2
    assert first.mean_ht == pytest.approx(1.75)
    assert first.mode_ht == 2
    assert first.sd_vai == pytest.approx(math.sqrt(2))
    assert first.enl == pytest.approx(1 / (0.25 ** 2 + 0.75 ** 2))
    assert second.max_ht == 3
    assert second.sd_vai == 0.0
    assert second.enl == pytest.approx(1.0)

def test_summary_empty_column_row():
    rows = make_summary_matrix(grid_from_vai(np.zeros((3, 5))))

    assert len(rows) == 3
    assert all(r.sum_vai == 0 and r.max_ht == 0 and r.enl is None for r in rows)

def test_rumple_flat_canopy_is_one():
    vai = np.zeros((5, 6))
    vai[:, 4] = 1.0
    summary = make_summary_matrix(grid_from_vai(vai))

    assert calc_rumple(summary, 5) == pytest.approx(1.0)

def test_rumple_stepped_canopy():
    vai = np.zeros((4, 6))
    for x, top in enumerate([0, 2, 2, 5]):
        if top:
            vai[x, top] = 1.0
    summary = make_summary_matrix(grid_from_vai(vai))

    assert calc_rumple(summary, 4) == pytest.approx((4 + 2 + 0 + 3) / 4)

def test_gap_fraction_and_clumping():
    vai = np.zeros((4, 3))
    vai[1, 2] = 1.0
    vai[3, 2] = 2.0
    summary = make_summary_matrix(grid_from_vai(vai))

    gaps = calc_gap_fraction(summary, 4, extinction_coef=1.0)

    expected = math.log((2 + math.exp(-1) + math.exp(-2)) / 4) / -0.75
    assert gaps.gap_fraction == pytest.approx(0.5)
    assert gaps.clumping_index == pytest.approx(expected)
    assert 0 < gaps.clumping_index <= 1

def test_gap_fraction_open_transect():
    summary = make_summary_matrix(grid_from_vai(np.zeros((6, 3))))
    gaps = calc_gap_fraction(summary, 6)

    assert gaps.gap_fraction == 1.0
    assert gaps.clumping_index == 1.0

def test_rugosity(two_column_grid):
    summary = make_summary_matrix(two_column_grid)
    rug = calc_rugosity(summary, two_column_grid)

    assert rug.mean_std == pytest.approx(math.sqrt(2) / 2)
    assert rug.std_std == pytest.approx(1.0)
    assert rug.rugosity == pytest.approx(math.sqrt(1.5))
    assert rug.top_rugosity == pytest.approx(math.sqrt(0.5))
    assert rug.porosity == pytest.approx(4 / 7)
    assert rug.mean_vai == pytest.approx(3.0)
    assert rug.max_vai == pytest.approx(4.0)
    assert rug.max_el == 2.0
    assert rug.mean_height == pytest.approx(2.375)
    assert rug.mode_el == pytest.approx(2.5)
    assert rug.max_can_ht == 3.0
    assert rug.deep_gaps == 0

def test_rugosity_single_layer_columns_are_zero():
    vai = np.zeros((3, 5))
    vai[0, 2] = 1.0
    vai[1, 2] = 4.0
    vai[2, 2] = 2.0
    grid = grid_from_vai(vai)
    rug = calc_rugosity(make_summary_matrix(grid), grid)

    assert rug.rugosity == 0.0
    assert not math.isnan(rug.rugosity)
    assert rug.top_rugosity == 0.0

def test_rugosity_single_column_transect():
    vai = np.zeros((1, 4))
    vai[0, 1] = 1.0
    vai[0, 3] = 2.0
    grid = grid_from_vai(vai)
    rug = calc_rugosity(make_summary_matrix(grid), grid)

    assert rug.std_std == 0.0
    assert rug.top_rugosity == 0.0
    assert rug.rugosity == pytest.approx(math.sqrt(0.5))

def test_rugosity_measures_density_spread_not_layer_distance():
    vai = np.zeros((1, 21))
    vai[0, 2] = 1.0
    vai[0, 20] = 1.0
    grid = grid_from_vai(vai)
    summary = make_summary_matrix(grid)
    rug = calc_rugosity(summary, grid)

    assert summary[0].sd_vai == 0.0
    assert summary[0].sd_ht == pytest.approx(9.0)
    assert rug.rugosity == 0.0

def test_enl(two_column_grid):
    enl = calc_enl(make_summary_matrix(two_column_grid), two_column_grid)

    first = 1 / (0.25 ** 2 + 0.75 ** 2)
    assert enl.enl == pytest.approx((first + 1.0) / 2)
    assert enl.enl_columns == 2
    # transect profile: 1, 3, 2 over heights 1-3
    assert enl.enl_transect == pytest.approx(1 / ((1 / 6) ** 2 + 0.5 ** 2 + (1 / 3) ** 2))

def test_enl_excludes_empty_columns():
    vai = np.zeros((4, 4))
    vai[0, 1] = 1.0
    vai[0, 2] = 1.0
    grid = grid_from_vai(vai)
    enl = calc_enl(make_summary_matrix(grid), grid)

    assert enl.enl == pytest.approx(2.0)
    assert enl.enl_columns == 1

def test_enl_undefined_without_vai():
    grid = grid_from_vai(np.zeros((4, 4)))
    enl = calc_enl(make_summary_matrix(grid), grid)

    assert math.isnan(enl.enl)
    assert math.isnan(enl.enl_transect)
    assert enl.enl_columns == 0

def test_combine_variables_missing_stage(two_column_grid):
    summary = make_summary_matrix(two_column_grid)

    with pytest.raises(IncompleteResultError) as excinfo:
        combine_variables(
            name="t",
            transect_length=2,
            cover=None,
            binned=None,
            n_below_ground=0,
            rugosity=calc_rugosity(summary, two_column_grid),
            rumple=None,
            gaps=calc_gap_fraction(summary, 2),
            enl=calc_enl(summary, two_column_grid)
        )

    assert "rumple" in excinfo.value.missing
    assert "cover" in excinfo.value.missing
