"""
Domain models (Pydantic).

These types are the JSON contract shared by the CLI and the API:
- inputs (`SightLineRequest`)
- outputs (`SightLineResponse`, `ElevationResponse`, `SearchJobStatus`)

Angles are degrees here; the walker works in radians.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from sightline.core.errors import ErrorKind
from sightline.search.outcome import Failed, SearchOutcome
from sightline.search.walker import Observer


class GeoPointModel(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class SightLineRequest(BaseModel):
    """Observer position and viewing direction for one search."""

    position: GeoPointModel
    altitude_m: float
    vertical_uncertainty_m: float = 0.0
    pitch_deg: float = Field(..., gt=-90, lt=90)
    bearing_deg: float = Field(..., ge=0, lt=360)

    def to_observer(self) -> Observer:
        return Observer.from_degrees(
            lat=self.position.lat,
            lon=self.position.lon,
            altitude_m=self.altitude_m,
            pitch_deg=self.pitch_deg,
            bearing_deg=self.bearing_deg,
            vertical_uncertainty_m=self.vertical_uncertainty_m,
        )


class SightLineResponse(BaseModel):
    """Search outcome; `point` is set for intersections and fallbacks only."""

    kind: Literal["intersection", "fallback", "failed"]
    point: GeoPointModel | None = None
    distance_m: float | None = None
    reason: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def from_outcome(cls, outcome: SearchOutcome) -> "SightLineResponse":
        if isinstance(outcome, Failed):
            return cls(kind=outcome.kind, reason=outcome.reason, message=outcome.message or None)
        return cls(
            kind=outcome.kind,
            point=GeoPointModel(lat=outcome.point.lat, lon=outcome.point.lon),
            distance_m=round(outcome.distance_m, 1),
        )


class ElevationResponse(BaseModel):
    lat: float
    lon: float
    elevation_m: float


class SearchJobStatus(BaseModel):
    job_id: str
    status: str
    created_at_unix: int
    finished_at_unix: int | None = None
    result: SightLineResponse | None = None
