"""
Search outcomes.

A search ends in exactly one of three ways: a terrain intersection, a fallback
point (no clean intersection within range), or a failure with a reason. Callers
should treat `Fallback` as low confidence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from sightline.core.errors import ErrorKind
from sightline.core.geo import GeoPoint


@dataclass(frozen=True)
class Intersection:
    point: GeoPoint
    distance_m: float
    kind: Literal["intersection"] = "intersection"


@dataclass(frozen=True)
class Fallback:
    """Sample closest to the sight line when nothing met the intersection test."""

    point: GeoPoint
    distance_m: float
    kind: Literal["fallback"] = "fallback"


@dataclass(frozen=True)
class Failed:
    reason: ErrorKind
    message: str = ""
    kind: Literal["failed"] = "failed"


SearchOutcome = Union[Intersection, Fallback, Failed]
