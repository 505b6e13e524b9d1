# src/pclmetrics/__init__.py
#
# Copyright (c) The pclmetrics project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
pclmetrics converts portable canopy LiDAR (PCL) transects into a vegetation area
index grid and canopy structural complexity metrics.
"""

from .errors import (
    PCLError,
    ConfigurationError,
    IncompleteResultError
)

from .config import (
    BelowGroundPolicy,
    PCLConfig
)

from .transect import (
    PulseRecord,
    Transect,
    read_pcl
)

from .grid import HitGrid

from .metrics import (
    SummaryRow,
    OutputRecord
)

from .pipeline import (
    PipelineResult,
    process_transect
)

from .batch import (
    BatchResult,
    process_batch
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "PCLError",
    "ConfigurationError",
    "IncompleteResultError",

    # Configuration
    "BelowGroundPolicy",
    "PCLConfig",

    # Data structures
    "PulseRecord",
    "Transect",
    "HitGrid",
    "SummaryRow",
    "OutputRecord",

    # Processing
    "read_pcl",
    "PipelineResult",
    "process_transect",
    "BatchResult",
    "process_batch",
]
