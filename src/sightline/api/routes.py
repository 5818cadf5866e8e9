"""
API routes.

Endpoints:
- GET  `/api/health`: liveness + whether an elevation API key is configured.
- GET  `/api/elevation`: single-point elevation lookup.
- POST `/api/sightline`: run a sight-line search and wait for the outcome.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query

from sightline import __version__
from sightline.config.settings import get_settings
from sightline.core.errors import ElevationError
from sightline.core.geo import GeoPoint
from sightline.domain.models import ElevationResponse, SightLineRequest, SightLineResponse
from sightline.ingestion.elevation_client import ElevationProvider, GoogleElevationClient
from sightline.search.walker import SightLineWalker

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _provider() -> ElevationProvider:
    """One shared client so every request draws from the same rate limiter."""
    return GoogleElevationClient(get_settings())


def get_walker() -> SightLineWalker:
    return SightLineWalker(_provider())


@router.get("/api/health")
def get_health() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "version": __version__,
        "elevation_api_key_configured": bool(settings.elevation.api_key),
    }


@router.get("/api/elevation", response_model=ElevationResponse)
def get_elevation(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
) -> ElevationResponse:
    point = GeoPoint(lat=lat, lon=lon)
    try:
        elevation = _provider().point_elevation(point)
    except ElevationError as exc:
        logger.warning("Elevation lookup failed for %.5f,%.5f: %s", lat, lon, exc)
        raise HTTPException(
            status_code=502,
            detail={"code": "ELEVATION_UNAVAILABLE", "message": str(exc)},
        ) from exc
    return ElevationResponse(lat=lat, lon=lon, elevation_m=elevation)


@router.post("/api/sightline", response_model=SightLineResponse)
def post_sightline(req: SightLineRequest) -> SightLineResponse:
    """Blocking search; use `/api/searches` for a cancellable background job."""
    outcome = get_walker().search(req.to_observer())
    return SightLineResponse.from_outcome(outcome)
