# src/pclmetrics/config.py

"""
This module defines the configuration structure for PCL transect processing.

All defaults live here and the configuration is validated once, at pipeline entry,
rather than inside each processing stage.
"""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Mapping, Any

from .errors import ConfigurationError

log = logging.getLogger(__name__)

__all__ = [
    "BelowGroundPolicy",
    "PCLConfig"
]

class BelowGroundPolicy(Enum):
    """
    Policy applied to canopy returns whose adjusted height falls below ground level.

    Options:
        CLAMP: Keep the return and place it at height 0 (lowest bin).
        DISCARD: Treat the return as sensor noise and exclude it from the grid.
    """
    CLAMP = "clamp"
    DISCARD = "discard"

@dataclass(frozen=True)
class PCLConfig:
    """
    Parameters controlling PCL transect processing.

    Args:
        user_height (float): Height of the laser above the ground as carried by the operator, in metres.
        marker_spacing (float): Distance between transect markers, in metres.
        max_vai (float): Maximum cumulative VAI of a single column. Should be a maximum, not a mean.
        extinction_coef (float): Beer-Lambert extinction coefficient (k) used to convert density to VAI.
        z_max (int): Top height bin of the grid, in metres. Returns above it are placed in this bin.
        max_return_distance (Optional[float]): Sensor range. Returns farther than this are treated
            as sky hits. None disables the filter.
        below_ground (BelowGroundPolicy): Handling of returns whose adjusted height is negative.
        pavd (bool): Request a plant area volume density (PAVD) profile from the output adapters.
        hist (bool): Add a VAI histogram to the PAVD artifact.
    """
    user_height: float = 1.0
    marker_spacing: float = 10.0
    max_vai: float = 8.0
    extinction_coef: float = 1.0
    z_max: int = 40
    max_return_distance: Optional[float] = None
    below_ground: BelowGroundPolicy = BelowGroundPolicy.CLAMP
    pavd: bool = False
    hist: bool = False

    def validate(self) -> "PCLConfig":
        """
        Checks every field and returns the configuration unchanged.

        Raises:
            ConfigurationError: If any value is outside its valid domain.
        """
        if self.user_height < 0:
            raise ConfigurationError(f"user_height must be >= 0, got {self.user_height}")
        if self.marker_spacing <= 0:
            raise ConfigurationError(f"marker_spacing must be > 0, got {self.marker_spacing}")
        if self.max_vai <= 0:
            raise ConfigurationError(f"max_vai must be > 0, got {self.max_vai}")
        if self.extinction_coef <= 0:
            raise ConfigurationError(f"extinction_coef must be > 0, got {self.extinction_coef}")
        if int(self.z_max) != self.z_max or self.z_max < 1:
            raise ConfigurationError(f"z_max must be a positive integer, got {self.z_max}")
        if self.max_return_distance is not None and self.max_return_distance <= 0:
            raise ConfigurationError(
                f"max_return_distance must be > 0 or None, got {self.max_return_distance}"
            )
        if not isinstance(self.below_ground, BelowGroundPolicy):
            raise ConfigurationError(f"Unknown below_ground policy: {self.below_ground!r}")
        if self.hist and not self.pavd:
            log.warning("hist=True has no effect unless pavd=True")
        return self

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "PCLConfig":
        """
        Builds a configuration from a plain mapping, e.g. parsed CLI options.

        Keys left out keep their defaults. The below_ground policy may be given by name.

        Raises:
            ConfigurationError: If the mapping holds unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {sorted(unknown)}")

        values = dict(options)
        policy = values.get("below_ground")
        if isinstance(policy, str):
            try:
                values["below_ground"] = BelowGroundPolicy(policy.lower())
            except ValueError:
                valid = [p.value for p in BelowGroundPolicy]
                raise ConfigurationError(f"Invalid below_ground policy '{policy}'. Must be one of: {valid}")

        return cls(**values).validate()
