# src/pclmetrics/grid/__init__.py
#
# Copyright (c) The pclmetrics project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The grid subpackage provides the dense (xbin, zbin) hit grid, spatial binning of
pulses, Beer-Lambert normalization and VAI derivation.
"""

# Data structure
from .layer import (
    Cell,
    HitGrid
)

# Binning and grid construction
from .binning import (
    BinnedPulses,
    bin_pulses,
    make_matrix
)

# Light extinction and VAI
from .normalize import (
    normalize_pcl,
    calc_vai
)

__all__ = [
    # Data structure
    "Cell",
    "HitGrid",

    # Binning
    "BinnedPulses",
    "bin_pulses",
    "make_matrix",

    # Light extinction and VAI
    "normalize_pcl",
    "calc_vai",
]
