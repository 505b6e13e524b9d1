# src/pclmetrics/transect/__init__.py
#
# Copyright (c) The pclmetrics project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The transect subpackage holds the pulse-level data structures, input adapters and
the stages that act on individual pulses: length estimation, hit classification,
height adjustment and first-order cover metrics.
"""

# Data structures
from .layer import (
    PulseRecord,
    Transect
)

# I/O operations
from .io import (
    MARKER_SENTINEL,
    read_pcl,
    pulses_from_raw
)

# Pulse-level stages
from .classify import (
    ClassifiedPulse,
    CoverMetrics,
    get_transect_length,
    code_hits,
    adjust_by_user,
    csc_metrics
)

__all__ = [
    # Data structures
    "PulseRecord",
    "Transect",

    # I/O
    "MARKER_SENTINEL",
    "read_pcl",
    "pulses_from_raw",

    # Pulse-level stages
    "ClassifiedPulse",
    "CoverMetrics",
    "get_transect_length",
    "code_hits",
    "adjust_by_user",
    "csc_metrics",
]
