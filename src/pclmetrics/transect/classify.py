# src/pclmetrics/transect/classify.py

"""
This module implements the pulse-level stages of the pipeline: transect length estimation,
hit classification, height adjustment and first-order cover metrics.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

import numpy as np

from pclmetrics.config import PCLConfig, BelowGroundPolicy
from pclmetrics.errors import ConfigurationError

from .layer import PulseRecord

log = logging.getLogger(__name__)

__all__ = [
    "ClassifiedPulse",
    "CoverMetrics",
    "get_transect_length",
    "code_hits",
    "adjust_by_user",
    "csc_metrics"
]

@dataclass(frozen=True)
class ClassifiedPulse:
    """
    A pulse labelled as canopy or sky hit.

    Attributes:
        pulse (PulseRecord): The source pulse.
        canopy_hit (bool): True if the pulse returned from vegetation.
        height (Optional[float]): Height above ground in metres once adjusted; None for sky hits
            and before adjustment.
        below_ground (bool): True if the adjusted height came out negative.
        valid (bool): False if the pulse must be kept out of the grid.
    """
    pulse: PulseRecord
    canopy_hit: bool
    height: Optional[float] = None
    below_ground: bool = False
    valid: bool = True

    @property
    def sky_hit(self) -> bool:
        return not self.canopy_hit

@dataclass(frozen=True)
class CoverMetrics:
    """
    Transect-level first-order metrics, independent of spatial binning.
    """
    n_pulses: int
    n_canopy_hits: int
    n_sky_hits: int
    sky_fraction: float
    cover_fraction: float
    mean_return_ht: float
    sd_return_ht: float
    max_return_ht: float
    scan_density: float

def get_transect_length(pulses: Sequence[PulseRecord], marker_spacing: float) -> int:
    """
    Derives the along-track length of a transect from its marker intervals.

    Args:
        pulses (Sequence[PulseRecord]): Pulses of the transect.
        marker_spacing (float): Distance between markers in metres.

    Returns:
        int: marker_spacing x highest marker index, in whole metres.

    Raises:
        ConfigurationError: If no pulse carries a marker index, or the length is not
            a positive whole number of metres.
    """
    indices = [p.marker_index for p in pulses if p.marker_index is not None]
    if not indices:
        raise ConfigurationError("No marker indices found; cannot determine transect length")

    length = marker_spacing * max(indices)
    if length <= 0:
        raise ConfigurationError(f"Transect length must be positive, got {length}")
    if not float(length).is_integer():
        raise ConfigurationError(
            f"Transect length {length} m is not a whole number of metres (marker_spacing={marker_spacing})"
        )

    log.info(f"Transect length: {int(length)} m")
    return int(length)

def code_hits(pulses: Sequence[PulseRecord], config: PCLConfig) -> Tuple[ClassifiedPulse, ...]:
    """
    Labels each pulse as canopy hit or sky hit.

    A pulse is a canopy hit when it has a return distance within sensor range. Every pulse
    is labelled exactly once and the input order is kept.
    """
    max_range = config.max_return_distance
    out_of_range = 0
    classified = []
    for p in pulses:
        hit = p.return_distance is not None
        if hit and max_range is not None and p.return_distance > max_range:
            hit = False
            out_of_range += 1
        classified.append(ClassifiedPulse(pulse=p, canopy_hit=hit))

    if out_of_range:
        log.warning(f"{out_of_range} returns beyond {max_range} m reclassified as sky hits")

    n_canopy = sum(c.canopy_hit for c in classified)
    log.info(f"Hit table: canopy={n_canopy}, sky={len(classified) - n_canopy}")
    return tuple(classified)

def adjust_by_user(pulses: Sequence[ClassifiedPulse], config: PCLConfig) -> Tuple[ClassifiedPulse, ...]:
    """
    Converts return distances of canopy hits to heights above ground.

    The laser mounting height (config.user_height) is subtracted so that 0 is ground level.
    Negative results follow config.below_ground: CLAMP moves them to 0, DISCARD marks
    them invalid so they stay out of the grid.
    """
    adjusted = []
    n_below = 0
    for c in pulses:
        if not c.canopy_hit:
            adjusted.append(c)
            continue

        height = c.pulse.return_distance - config.user_height
        if height < 0:
            n_below += 1
            if config.below_ground == BelowGroundPolicy.CLAMP:
                adjusted.append(replace(c, height=0.0, below_ground=True))
            else:
                adjusted.append(replace(c, height=height, below_ground=True, valid=False))
        else:
            adjusted.append(replace(c, height=height))

    if n_below:
        log.warning(
            f"{n_below} canopy returns below ground after removing user height "
            f"({config.below_ground.value})"
        )
    return tuple(adjusted)

def csc_metrics(pulses: Sequence[ClassifiedPulse], length_m: int) -> CoverMetrics:
    """
    Computes sky and cover fraction plus return height statistics for a transect.

    Heights of discarded returns are excluded from the height statistics but the pulses
    still count towards the cover fractions.
    """
    n = len(pulses)
    n_canopy = sum(c.canopy_hit for c in pulses)
    n_sky = n - n_canopy
    sky_fraction = n_sky / n if n else 1.0

    heights = np.array([c.height for c in pulses if c.canopy_hit and c.valid and c.height is not None])
    if heights.size:
        mean_ht = float(np.mean(heights))
        sd_ht = float(np.std(heights, ddof=1)) if heights.size > 1 else 0.0
        max_ht = float(np.max(heights))
    else:
        mean_ht = sd_ht = max_ht = 0.0

    return CoverMetrics(
        n_pulses=n,
        n_canopy_hits=n_canopy,
        n_sky_hits=n_sky,
        sky_fraction=sky_fraction,
        cover_fraction=1.0 - sky_fraction,
        mean_return_ht=mean_ht,
        sd_return_ht=sd_ht,
        max_return_ht=max_ht,
        scan_density=n / length_m
    )
