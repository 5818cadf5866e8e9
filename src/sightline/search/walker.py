"""
Sight-line walker.

Walks outward from the observer along a great circle in chunks of evenly spaced
elevation samples and compares the projected sight-line elevation against the
terrain. The first sample that passes the intersection test wins; if none does, the
sample closest to the sight line is returned as a fallback.

Looking out at something in the distance, you are often looking along ground that
runs nearly parallel to your pitch. Elevation data is noisy, so a sample only counts
as an intersection when the terrain there is steeper than the pitch or sits well
above the sight line.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from math import inf, tan

from sightline.core.errors import ElevationError, ErrorKind
from sightline.core.geo import GeoPoint, destination_point, surface_distance, to_radians
from sightline.ingestion.elevation_client import ElevationProvider, ElevationSample
from sightline.search.outcome import Failed, Fallback, Intersection, SearchOutcome

logger = logging.getLogger(__name__)

HEIGHT_TOLERANCE = -10.0
MAX_DISTANCE = 50_000.0
MIN_DISTANCE = 20.0
DISTANCE_STEP = 10.0
SLOPE_FACTOR = 0.02
CHUNK_SAMPLES = 512
CHUNK_LENGTH = DISTANCE_STEP * CHUNK_SAMPLES


@dataclass(frozen=True)
class Observer:
    """Where the observer stands and where they are looking.

    Attributes:
        position: Observer location.
        altitude_m: Observer altitude in meters.
        vertical_uncertainty_m: Altitude uncertainty; its magnitude is added to the altitude.
        pitch_rad: Line-of-sight elevation angle, positive upward.
        bearing_rad: Compass direction, clockwise from north.
    """

    position: GeoPoint
    altitude_m: float
    vertical_uncertainty_m: float
    pitch_rad: float
    bearing_rad: float

    @classmethod
    def from_degrees(
        cls,
        *,
        lat: float,
        lon: float,
        altitude_m: float,
        pitch_deg: float,
        bearing_deg: float,
        vertical_uncertainty_m: float = 0.0,
    ) -> "Observer":
        return cls(
            position=GeoPoint(lat=lat, lon=lon),
            altitude_m=altitude_m,
            vertical_uncertainty_m=vertical_uncertainty_m,
            pitch_rad=to_radians(pitch_deg),
            bearing_rad=to_radians(bearing_deg),
        )

    @property
    def adjusted_altitude_m(self) -> float:
        return self.altitude_m + abs(self.vertical_uncertainty_m)


@dataclass
class SearchState:
    last_elevation: float
    last_distance: float
    min_abs_diff: float
    fallback_point: GeoPoint
    fallback_distance: float

    @classmethod
    def start(cls, observer: Observer) -> "SearchState":
        return cls(
            last_elevation=observer.altitude_m,
            last_distance=-inf,
            min_abs_diff=inf,
            fallback_point=observer.position,
            fallback_distance=0.0,
        )


def estimate_elevation(distance_m: float, start_altitude_m: float, pitch_rad: float) -> float:
    """Sight-line elevation at `distance_m` from the observer."""
    return start_altitude_m + distance_m * tan(pitch_rad)


def is_intersection(elevation_m: float, diff_m: float, slope: float, pitch_rad: float) -> bool:
    if elevation_m < 0 or diff_m >= HEIGHT_TOLERANCE:
        return False
    return (slope - pitch_rad > SLOPE_FACTOR) or (diff_m < 4 * HEIGHT_TOLERANCE)


def chunk_edges() -> list[tuple[float, float]]:
    """(near, far) distances of every chunk the walk fetches, nearest first."""
    edges = []
    near, far = MIN_DISTANCE, CHUNK_LENGTH
    while far < MAX_DISTANCE:
        edges.append((near, far))
        near, far = far, far + CHUNK_LENGTH
    return edges


class SightLineWalker:
    """Runs sight-line searches against an elevation provider.

    The walker holds no per-search state, so one instance can serve concurrent
    searches as long as the provider can.
    """

    def __init__(self, provider: ElevationProvider):
        self._provider = provider

    def _process_sample(
        self, observer: Observer, state: SearchState, sample: ElevationSample
    ) -> Intersection | None:
        distance = surface_distance(observer.position, sample.coordinate)
        if distance <= state.last_distance:
            logger.debug("Skipping sample at %.1fm (not beyond %.1fm)", distance, state.last_distance)
            return None
        state.last_distance = distance

        actual = sample.elevation_m
        estimate = estimate_elevation(distance, observer.adjusted_altitude_m, observer.pitch_rad)
        diff = estimate - actual
        # tan of rise/run (not atan); SLOPE_FACTOR is calibrated against this form.
        slope = tan((actual - state.last_elevation) / DISTANCE_STEP)

        logger.debug(
            "distance=%.1f estimate=%.2f actual=%.2f diff=%.2f slope=%.4f",
            distance,
            estimate,
            actual,
            diff,
            slope,
        )

        if is_intersection(actual, diff, slope, observer.pitch_rad):
            return Intersection(point=sample.coordinate, distance_m=distance)

        state.last_elevation = actual
        if abs(diff) < state.min_abs_diff:
            state.min_abs_diff = abs(diff)
            state.fallback_point = sample.coordinate
            state.fallback_distance = distance
        return None

    def search(self, observer: Observer, cancel_token: threading.Event | None = None) -> SearchOutcome:
        """Find where the observer's line of sight first meets the terrain.

        Cancellation is checked once per chunk, before its elevation fetch. Provider
        failures abort the search with `Failed(ELEVATION_UNAVAILABLE)`.

        Raises:
            PathTooLong: If a chunk ever exceeds the provider's sample limit (a bug).
        """
        logger.info(
            "Starting sight-line search at %.5f,%.5f altitude=%.1f pitch=%.4f bearing=%.4f",
            observer.position.lat,
            observer.position.lon,
            observer.altitude_m,
            observer.pitch_rad,
            observer.bearing_rad,
        )
        state = SearchState.start(observer)

        for near, far in chunk_edges():
            start = destination_point(observer.position, near, observer.bearing_rad)
            end = destination_point(observer.position, far, observer.bearing_rad)

            if cancel_token is not None and cancel_token.is_set():
                logger.info("Sight-line search cancelled before fetching %.0fm-%.0fm", near, far)
                return Failed(reason=ErrorKind.CANCELLED, message="Search was cancelled.")

            try:
                samples = self._provider.path_elevation(start, end, DISTANCE_STEP)
            except ElevationError as exc:
                logger.warning("Elevation fetch failed for %.0fm-%.0fm: %s", near, far, exc)
                return Failed(reason=ErrorKind.ELEVATION_UNAVAILABLE, message=str(exc))

            for sample in samples:
                hit = self._process_sample(observer, state, sample)
                if hit is not None:
                    logger.info(
                        "Intersection at %.5f,%.5f (%.0fm)", hit.point.lat, hit.point.lon, hit.distance_m
                    )
                    return hit

        logger.info(
            "No intersection within %.0fm; falling back to %.5f,%.5f (|diff|=%.2f)",
            MAX_DISTANCE,
            state.fallback_point.lat,
            state.fallback_point.lon,
            state.min_abs_diff,
        )
        return Fallback(point=state.fallback_point, distance_m=state.fallback_distance)


def search(
    observer: Observer,
    provider: ElevationProvider,
    cancel_token: threading.Event | None = None,
) -> SearchOutcome:
    """Convenience wrapper around `SightLineWalker(provider).search(...)`."""
    return SightLineWalker(provider).search(observer, cancel_token)
