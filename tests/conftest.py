from __future__ import annotations

from typing import Callable

import pytest

from sightline.core.errors import PathTooLong
from sightline.core.geo import GeoPoint, destination_point, surface_distance
from sightline.ingestion.elevation_client import MAX_PATH_SAMPLES, ElevationSample, path_sample_count


class ProfileProvider:
    """Offline provider: terrain elevation is a function of distance from `origin`.

    Samples are spread evenly from `start` to `end` inclusive (like the real API), and
    every call is recorded so tests can inspect what the walker asked for.
    """

    def __init__(self, origin: GeoPoint, bearing_rad: float, profile: Callable[[float], float]):
        self.origin = origin
        self.bearing_rad = bearing_rad
        self.profile = profile
        self.calls: list[tuple[float, float, int]] = []
        self.samples: list[ElevationSample] = []
        self.on_call: Callable[[int], None] | None = None

    def point_elevation(self, point: GeoPoint) -> float:
        return self.profile(surface_distance(self.origin, point))

    def path_elevation(self, start: GeoPoint, end: GeoPoint, sample_spacing_m: float) -> list[ElevationSample]:
        requested = path_sample_count(start, end, sample_spacing_m)
        if requested > MAX_PATH_SAMPLES:
            raise PathTooLong(requested, MAX_PATH_SAMPLES)

        near = surface_distance(self.origin, start)
        far = surface_distance(self.origin, end)
        self.calls.append((near, far, requested))
        if self.on_call is not None:
            self.on_call(len(self.calls))

        n = max(requested, 2)
        out = []
        for i in range(n):
            d = near + i * (far - near) / (n - 1)
            out.append(
                ElevationSample(
                    coordinate=destination_point(self.origin, d, self.bearing_rad),
                    elevation_m=self.profile(d),
                )
            )
        self.samples.extend(out)
        return out


@pytest.fixture
def equator_origin() -> GeoPoint:
    return GeoPoint(lat=0.0, lon=0.0)


@pytest.fixture
def make_provider():
    def factory(origin: GeoPoint, bearing_rad: float, profile: Callable[[float], float]) -> ProfileProvider:
        return ProfileProvider(origin, bearing_rad, profile)

    return factory
