# src/sightline/api/app.py
"""
FastAPI application wiring.

Run with `uvicorn sightline.api.app:app`. Endpoint logic lives in
`sightline.api.routes` and `sightline.api.search_jobs`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from sightline import __version__
from sightline.core.logging import configure_logging

from .routes import router
from .search_jobs import router as search_jobs_router

configure_logging()

app = FastAPI(title="SightLine API", version=__version__)

# Configure via env:
# - SIGHTLINE_CORS_ORIGINS="http://localhost:8003,http://127.0.0.1:8003"
cors_origins = [s.strip() for s in os.getenv("SIGHTLINE_CORS_ORIGINS", "").split(",") if s.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
app.include_router(search_jobs_router)
