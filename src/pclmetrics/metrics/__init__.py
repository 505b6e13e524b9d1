# src/pclmetrics/metrics/__init__.py
#
# Copyright (c) The pclmetrics project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The metrics subpackage builds the per-column summary matrix, computes canopy structural
complexity metrics and merges everything into one output record per transect.
"""

# Summary matrix
from .summary import (
    SummaryRow,
    make_summary_matrix
)

# Structural complexity metrics
from .structure import (
    GapMetrics,
    RugosityMetrics,
    EnlMetrics,
    calc_rumple,
    calc_gap_fraction,
    calc_rugosity,
    calc_enl
)

# Output record
from .combine import (
    OutputRecord,
    combine_variables
)

__all__ = [
    # Summary matrix
    "SummaryRow",
    "make_summary_matrix",

    # Structural complexity metrics
    "GapMetrics",
    "RugosityMetrics",
    "EnlMetrics",
    "calc_rumple",
    "calc_gap_fraction",
    "calc_rugosity",
    "calc_enl",

    # Output record
    "OutputRecord",
    "combine_variables",
]
