"""
Error taxonomy.

Exceptions are raised by the geometry layer and the elevation provider. The walker
converts provider failures and cancellation into a `Failed` outcome carrying an
`ErrorKind`; everything else propagates to the caller.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Reason attached to a failed search outcome."""

    CANCELLED = "cancelled"
    ELEVATION_UNAVAILABLE = "elevation_unavailable"
    INTERNAL = "internal"


class SightLineError(Exception):
    """Base class for all errors raised by this package."""


class InvalidCoordinate(SightLineError, ValueError):
    """A latitude/longitude pair outside the valid range (or not a finite number)."""

    def __init__(self, lat: float, lon: float):
        super().__init__(f"Invalid coordinate lat={lat!r} lon={lon!r}")
        self.lat = lat
        self.lon = lon


class PathTooLong(SightLineError, ValueError):
    """A path query would request more samples than the provider protocol allows."""

    def __init__(self, samples: int, limit: int):
        super().__init__(f"Path query requests {samples} samples; the limit is {limit}.")
        self.samples = samples
        self.limit = limit


class ElevationError(SightLineError):
    """Elevation data could not be obtained."""


class ProviderUnavailable(ElevationError):
    """Transport failure, rejected request, or retry budget exhausted."""


class NoData(ElevationError):
    """The provider answered but returned no samples."""
