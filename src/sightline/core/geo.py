from __future__ import annotations
from dataclasses import dataclass
from math import asin, atan2, cos, degrees, isfinite, pi, radians, sin, sqrt

from sightline.core.errors import InvalidCoordinate

"""
Geodesy helpers.

A spherical Earth is accurate enough at sight-line ranges (tens of kilometers), so we
keep this layer dependency-free. `destination_point` and `surface_distance` share
the same radius; the walker compares distances produced by both.
"""

EARTH_RADIUS_M = 6_367_444.7


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        lat = self.lat
        lon = self.lon
        if not (isinstance(lat, (int, float)) and isinstance(lon, (int, float))):
            raise InvalidCoordinate(lat, lon)
        if not (isfinite(lat) and isfinite(lon)):
            raise InvalidCoordinate(lat, lon)
        if abs(lat) > 90 or abs(lon) > 180:
            raise InvalidCoordinate(lat, lon)


def to_radians(value_degrees: float) -> float:
    return value_degrees * (pi / 180)


def to_degrees(value_radians: float) -> float:
    return value_radians * (180 / pi)


def _normalize_lon(lon_deg: float) -> float:
    if -180 <= lon_deg <= 180:
        return lon_deg
    return (lon_deg + 540) % 360 - 180


def destination_point(origin: GeoPoint, distance_m: float, bearing_rad: float) -> GeoPoint:
    """Return the point reached by travelling `distance_m` along a great circle.

    Args:
        origin: Start point.
        distance_m: Distance along the surface in meters.
        bearing_rad: Initial bearing in radians, clockwise from north.

    Raises:
        ValueError: If `distance_m` or `bearing_rad` is not finite.
    """
    if not (isfinite(distance_m) and isfinite(bearing_rad)):
        raise ValueError(f"distance_m and bearing_rad must be finite (got {distance_m!r}, {bearing_rad!r})")

    lat1 = radians(origin.lat)
    lon1 = radians(origin.lon)
    delta = distance_m / EARTH_RADIUS_M

    sin_lat1 = sin(lat1)
    cos_lat1 = cos(lat1)

    lat2 = asin(sin_lat1 * cos(delta) + cos_lat1 * sin(delta) * cos(bearing_rad))
    lon2 = lon1 + atan2(
        sin(bearing_rad) * sin(delta) * cos_lat1,
        cos(delta) - sin_lat1 * sin(lat2),
    )

    return GeoPoint(lat=degrees(lat2), lon=_normalize_lon(degrees(lon2)))


def surface_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(min(1.0, sqrt(h)))
