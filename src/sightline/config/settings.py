# src/sightline/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/sightline/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `SIGHTLINE_CONFIG_PATH` (replaces the packaged defaults)
- environment variables (`SIGHTLINE_LOG_LEVEL`, `SIGHTLINE_ELEVATION_API_KEY`)

Design rule:
- Provider knobs (endpoint, quotas, retry budget) live in YAML. The search policy
  constants are fixed in `sightline.search.walker` and are not configurable.
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from sightline.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `sightline.config`."""
    text = resources.files("sightline.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "SightLine"
    http_timeout_seconds: float = Field(15, gt=0)
    log_level: str = "INFO"


class RetrySettings(BaseModel):
    max_attempts: int = Field(5, ge=0)
    base_delay_seconds: float = Field(0.5, ge=0)
    max_delay_seconds: float = Field(8.0, ge=0)


class ElevationSettings(BaseModel):
    base_url: str = "https://maps.googleapis.com/maps/api/elevation/json"
    api_key: str | None = None
    requests_per_second: float = Field(10, gt=0)
    burst: float | None = Field(default=None, gt=0)
    retry: RetrySettings = Field(default_factory=RetrySettings)


class JobSettings(BaseModel):
    max_finished_jobs: int = Field(100, ge=1)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    elevation: ElevationSettings = Field(default_factory=ElevationSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("SIGHTLINE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    api_key = os.getenv("SIGHTLINE_ELEVATION_API_KEY")
    if api_key:
        data.setdefault("elevation", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SIGHTLINE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def _logging_config() -> dict[str, Any]:
    return _read_package_yaml("logging.yaml")


def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (a fresh copy; callers mutate it)."""
    return copy.deepcopy(_logging_config())
