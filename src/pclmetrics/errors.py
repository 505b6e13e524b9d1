# src/pclmetrics/errors.py

"""
This module defines the exception hierarchy raised by the transect processing pipeline.
"""

from typing import Iterable

__all__ = [
    "PCLError",
    "ConfigurationError",
    "IncompleteResultError"
]

class PCLError(Exception):
    """Base class for all errors raised while processing a PCL transect."""

class ConfigurationError(PCLError, ValueError):
    """
    Raised when a transect cannot be processed with the supplied input or settings.

    Covers invalid configuration values, untyped or unreadable input tables,
    transects without markers and non-positive transect lengths.
    Fatal for the affected transect only.
    """

class IncompleteResultError(PCLError):
    """
    Raised when an upstream stage left a required output field unset.

    Args:
        missing: Names of the fields that were missing.
    """
    def __init__(self, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(f"Missing required result fields: {', '.join(self.missing)}")
