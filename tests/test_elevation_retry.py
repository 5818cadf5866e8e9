import httpx
import pytest

from sightline.config.settings import get_settings
from sightline.core.errors import NoData, PathTooLong, ProviderUnavailable
from sightline.core.geo import GeoPoint, destination_point
from sightline.ingestion.elevation_client import GoogleElevationClient


class _NoopLimiter:
    def acquire(self, tokens: float = 1.0) -> None:
        return None


def _settings(*, max_attempts=3, base_delay=0.1, max_delay=1.0, api_key="test-key"):
    settings = get_settings()
    retry = settings.elevation.retry.model_copy(
        update={"max_attempts": max_attempts, "base_delay_seconds": base_delay, "max_delay_seconds": max_delay}
    )
    elevation = settings.elevation.model_copy(update={"api_key": api_key, "retry": retry})
    return settings.model_copy(update={"elevation": elevation})


def _client(settings):
    return GoogleElevationClient(settings, rate_limiter=_NoopLimiter())


def _ok(*elevations):
    return {
        "status": "OK",
        "results": [
            {"elevation": e, "location": {"lat": 0.001 * i, "lng": 0.0}, "resolution": 9.5}
            for i, e in enumerate(elevations)
        ],
    }


@pytest.fixture
def sleeps(monkeypatch):
    recorded: list[float] = []
    monkeypatch.setattr("sightline.ingestion.elevation_client.time.sleep", lambda s: recorded.append(float(s)))
    return recorded


def test_over_query_limit_is_retried_with_backoff(monkeypatch, sleeps):
    responses = [{"status": "OVER_QUERY_LIMIT"}, {"status": "OVER_QUERY_LIMIT"}, _ok(12.5)]
    calls: list[dict] = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        calls.append(dict(params or {}))
        return responses.pop(0)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    elevation = _client(_settings()).point_elevation(GeoPoint(lat=47.6, lon=-122.3))

    assert elevation == 12.5
    assert len(calls) == 3
    assert calls[0]["locations"] == "47.6,-122.3"
    assert calls[0]["key"] == "test-key"
    assert sleeps == [0.1, 0.2]


def test_persistent_rate_limit_gives_up_after_cap(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_get_json(*_a, **_k):
        calls["n"] += 1
        return {"status": "OVER_QUERY_LIMIT"}

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    with pytest.raises(ProviderUnavailable):
        _client(_settings(max_attempts=3)).point_elevation(GeoPoint(lat=0.0, lon=0.0))

    assert calls["n"] == 4
    assert sleeps == [0.1, 0.2, 0.4]


def test_http_429_honors_retry_after(monkeypatch, sleeps):
    seen_429 = False

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        nonlocal seen_429
        if not seen_429:
            seen_429 = True
            request = httpx.Request("GET", url)
            response = httpx.Response(429, request=request, headers={"Retry-After": "2"})
            raise httpx.HTTPStatusError("429", request=request, response=response)
        return _ok(3.0)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    assert _client(_settings()).point_elevation(GeoPoint(lat=0.0, lon=0.0)) == 3.0
    assert sleeps == [2.0]


def test_transport_error_is_retried(monkeypatch, sleeps):
    attempts = {"n": 0}

    def fake_get_json(url, **_k):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise httpx.ConnectError("boom", request=httpx.Request("GET", url))
        return _ok(7.0)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    assert _client(_settings()).point_elevation(GeoPoint(lat=0.0, lon=0.0)) == 7.0
    assert sleeps == [0.1]


def test_request_denied_is_not_retried(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_get_json(*_a, **_k):
        calls["n"] += 1
        return {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    with pytest.raises(ProviderUnavailable, match="API key is invalid"):
        _client(_settings()).point_elevation(GeoPoint(lat=0.0, lon=0.0))
    assert calls["n"] == 1
    assert sleeps == []


def test_http_403_is_not_retried(monkeypatch, sleeps):
    def fake_get_json(url, **_k):
        request = httpx.Request("GET", url)
        response = httpx.Response(403, request=request)
        raise httpx.HTTPStatusError("403", request=request, response=response)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    with pytest.raises(ProviderUnavailable, match="HTTP 403"):
        _client(_settings()).point_elevation(GeoPoint(lat=0.0, lon=0.0))
    assert sleeps == []


def test_path_request_parameters(monkeypatch):
    captured: dict = {}

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        captured.update(params or {})
        return _ok(1.0, 2.0, 3.0)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    start = GeoPoint(lat=0.0, lon=0.0)
    end = destination_point(start, 5_125.0, 0.0)
    samples = _client(_settings()).path_elevation(start, end, 10.0)

    assert captured["samples"] == 512
    assert captured["path"] == f"0.0,0.0|{end.lat},{end.lon}"
    assert [s.elevation_m for s in samples] == [1.0, 2.0, 3.0]
    assert samples[1].coordinate == GeoPoint(lat=0.001, lon=0.0)


def test_path_too_long_is_rejected_before_any_request(monkeypatch):
    def fake_get_json(*_a, **_k):
        raise AssertionError("no request expected")

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    start = GeoPoint(lat=0.0, lon=0.0)
    end = destination_point(start, 6_005.0, 0.0)
    with pytest.raises(PathTooLong) as excinfo:
        _client(_settings()).path_elevation(start, end, 10.0)
    assert excinfo.value.samples == 600


def test_empty_results_raise_no_data(monkeypatch):
    monkeypatch.setattr(
        "sightline.ingestion.elevation_client.get_json",
        lambda *_a, **_k: {"status": "OK", "results": []},
    )
    start = GeoPoint(lat=0.0, lon=0.0)
    with pytest.raises(NoData):
        _client(_settings()).path_elevation(start, destination_point(start, 100.0, 0.0), 10.0)


def test_empty_body_raises_no_data(monkeypatch):
    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", lambda *_a, **_k: None)
    with pytest.raises(NoData):
        _client(_settings()).point_elevation(GeoPoint(lat=0.0, lon=0.0))


def test_missing_api_key_fails_without_request(monkeypatch):
    def fake_get_json(*_a, **_k):
        raise AssertionError("no request expected")

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    with pytest.raises(ProviderUnavailable, match="SIGHTLINE_ELEVATION_API_KEY"):
        _client(_settings(api_key=None)).point_elevation(GeoPoint(lat=0.0, lon=0.0))


def test_constructor_api_key_wins_over_settings(monkeypatch):
    captured: dict = {}

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        captured.update(params or {})
        return _ok(1.0)

    monkeypatch.setattr("sightline.ingestion.elevation_client.get_json", fake_get_json)

    client = GoogleElevationClient(_settings(api_key="from-settings"), api_key="explicit", rate_limiter=_NoopLimiter())
    client.point_elevation(GeoPoint(lat=0.0, lon=0.0))
    assert captured["key"] == "explicit"
