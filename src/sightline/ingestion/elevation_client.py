"""
Elevation ingestion client (Google Elevation API).

This module is responsible only for:
- the `ElevationProvider` protocol the sight-line walker consumes,
- fetching point and path elevations over HTTP,
- retrying rate-limited/transient failures with a bounded exponential backoff,
- parsing responses into `ElevationSample` values.

It intentionally does not implement any search logic; see `sightline.search.walker`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from sightline.config.settings import Settings
from sightline.core.errors import NoData, PathTooLong, ProviderUnavailable
from sightline.core.geo import GeoPoint, surface_distance
from sightline.core.http import get_json
from sightline.core.rate_limit import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

MAX_PATH_SAMPLES = 512

_RETRYABLE_HTTP_STATUSES = {429, 500, 502, 503, 504}
_RETRYABLE_API_STATUSES = {"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}


@dataclass(frozen=True)
class ElevationSample:
    """One terrain sample returned by a provider."""

    coordinate: GeoPoint
    elevation_m: float


class ElevationProvider(Protocol):
    """What the walker needs from an elevation source."""

    def point_elevation(self, point: GeoPoint) -> float:
        """Return the terrain elevation at `point` in meters."""
        ...

    def path_elevation(
        self, start: GeoPoint, end: GeoPoint, sample_spacing_m: float
    ) -> list[ElevationSample]:
        """Return evenly spaced samples from `start` to `end`, nearest first."""
        ...


def path_sample_count(start: GeoPoint, end: GeoPoint, sample_spacing_m: float) -> int:
    """Number of samples a path query between `start` and `end` requests."""
    if sample_spacing_m <= 0:
        raise ValueError("sample_spacing_m must be > 0")
    return int(surface_distance(start, end) / sample_spacing_m)


class _RetryableResponse(Exception):
    """The API answered with a status worth retrying (e.g. OVER_QUERY_LIMIT)."""

    def __init__(self, status: str):
        super().__init__(status)
        self.status = status


class GoogleElevationClient:
    """Google Elevation API client with request pacing and bounded retry."""

    def __init__(
        self,
        settings: Settings,
        *,
        api_key: str | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ):
        self._settings = settings
        self._api_key = api_key or settings.elevation.api_key
        self._rate_limiter = rate_limiter or TokenBucketRateLimiter(
            max_per_second=settings.elevation.requests_per_second,
            burst=settings.elevation.burst,
        )

    @staticmethod
    def _parse_retry_after_seconds(value: str | None) -> float | None:
        if not value:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    def _require_api_key(self) -> str:
        if not self._api_key:
            raise ProviderUnavailable(
                "Elevation API key is not configured. Set SIGHTLINE_ELEVATION_API_KEY."
            )
        return self._api_key

    def _check_payload(self, payload: Any) -> list[dict[str, Any]]:
        """Validate the API status and return the `results` list."""
        if payload is None:
            raise NoData("Elevation API returned an empty body.")
        if not isinstance(payload, dict):
            raise ProviderUnavailable("Elevation API returned a non-object JSON body.")

        status = str(payload.get("status") or "")
        if status in _RETRYABLE_API_STATUSES:
            raise _RetryableResponse(status)
        if status != "OK":
            detail = payload.get("error_message") or status or "missing status"
            raise ProviderUnavailable(f"Elevation API request failed: {detail}")

        results = payload.get("results") or []
        if not isinstance(results, list):
            raise ProviderUnavailable("Elevation API `results` is not a list.")
        return results

    def _get_results(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """GET with pacing + bounded retry/backoff for rate limits and transient errors."""
        retry = self._settings.elevation.retry
        max_attempts = int(retry.max_attempts)
        base_delay_seconds = float(retry.base_delay_seconds)
        max_delay_seconds = float(retry.max_delay_seconds)

        request_params = {**params, "key": self._require_api_key()}
        last_exc: Exception | None = None

        for attempt in range(max_attempts + 1):
            retry_after: float | None = None
            try:
                self._rate_limiter.acquire()
                payload = get_json(
                    self._settings.elevation.base_url,
                    params=request_params,
                    timeout_seconds=self._settings.app.http_timeout_seconds,
                )
                return self._check_payload(payload)
            except _RetryableResponse as exc:
                last_exc = exc
                reason = f"status={exc.status}"
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                status = exc.response.status_code
                if status not in _RETRYABLE_HTTP_STATUSES:
                    raise ProviderUnavailable(f"Elevation API returned HTTP {status}.") from exc
                retry_after = self._parse_retry_after_seconds(exc.response.headers.get("Retry-After"))
                reason = f"http={status}"
            except httpx.TransportError as exc:
                last_exc = exc
                reason = f"transport={type(exc).__name__}"
            except httpx.HTTPError as exc:
                raise ProviderUnavailable(f"Elevation request failed: {exc}") from exc
            except ValueError as exc:
                raise ProviderUnavailable("Elevation API returned invalid JSON.") from exc

            if attempt >= max_attempts:
                break

            delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
            if retry_after is not None:
                delay = max(delay, retry_after)

            logger.warning(
                "Elevation request failed (%s); retrying in %.2fs (attempt %s/%s)",
                reason,
                delay,
                attempt + 1,
                max_attempts,
            )
            time.sleep(delay)

        raise ProviderUnavailable(
            f"Elevation API still failing after {max_attempts} retries."
        ) from last_exc

    @staticmethod
    def _parse_sample(item: dict[str, Any]) -> ElevationSample:
        try:
            location = item["location"]
            coordinate = GeoPoint(lat=float(location["lat"]), lon=float(location["lng"]))
            return ElevationSample(coordinate=coordinate, elevation_m=float(item["elevation"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderUnavailable(f"Malformed elevation result: {item!r}") from exc

    def point_elevation(self, point: GeoPoint) -> float:
        """Return the elevation in meters at `point`."""
        results = self._get_results({"locations": f"{point.lat},{point.lon}"})
        if not results:
            raise NoData(f"No elevation returned for {point.lat:.5f},{point.lon:.5f}.")
        return self._parse_sample(results[0]).elevation_m

    def path_elevation(
        self, start: GeoPoint, end: GeoPoint, sample_spacing_m: float
    ) -> list[ElevationSample]:
        """Return samples `sample_spacing_m` apart along the path `start` -> `end`.

        Raises:
            PathTooLong: If the path needs more than `MAX_PATH_SAMPLES` samples.
            NoData: If the API returns zero samples.
            ProviderUnavailable: On any other failure (including an exhausted retry budget).
        """
        samples = path_sample_count(start, end, sample_spacing_m)
        if samples > MAX_PATH_SAMPLES:
            raise PathTooLong(samples, MAX_PATH_SAMPLES)

        logger.debug(
            "Fetching %s elevation samples %.5f,%.5f -> %.5f,%.5f",
            samples,
            start.lat,
            start.lon,
            end.lat,
            end.lon,
        )
        results = self._get_results(
            {
                "path": f"{start.lat},{start.lon}|{end.lat},{end.lon}",
                "samples": max(samples, 2),
            }
        )
        if not results:
            raise NoData("Elevation API returned no samples for the requested path.")
        return [self._parse_sample(item) for item in results]
