"""
SightLine CLI entrypoint.

This CLI is intended for quick local checks against the live elevation API.
It delegates the search to `sightline.search.walker.SightLineWalker`.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from sightline.config.settings import get_settings
from sightline.core.errors import ElevationError, InvalidCoordinate
from sightline.core.geo import GeoPoint
from sightline.core.logging import configure_logging
from sightline.domain.models import SightLineResponse
from sightline.ingestion.elevation_client import GoogleElevationClient
from sightline.search.jobs import SearchJob
from sightline.search.walker import Observer, SightLineWalker

logger = logging.getLogger(__name__)


def _build_client(args: argparse.Namespace) -> GoogleElevationClient:
    return GoogleElevationClient(get_settings(), api_key=args.api_key)


def _cmd_search(args: argparse.Namespace) -> int:
    """Handle the `search` subcommand."""
    try:
        observer = Observer.from_degrees(
            lat=float(args.lat),
            lon=float(args.lon),
            altitude_m=float(args.altitude),
            pitch_deg=float(args.pitch),
            bearing_deg=float(args.bearing),
            vertical_uncertainty_m=float(args.uncertainty),
        )
    except InvalidCoordinate as exc:
        logger.error("Invalid observer position: %s", exc)
        return 1
    job = SearchJob(SightLineWalker(_build_client(args)), observer).start()
    try:
        outcome = job.wait()
    except KeyboardInterrupt:
        job.cancel()
        outcome = job.wait()

    response = SightLineResponse.from_outcome(outcome)
    if args.json:
        print(json.dumps(response.model_dump(mode="json"), ensure_ascii=False, indent=2))
    elif response.point is not None:
        label = "Intersection" if response.kind == "intersection" else "Fallback (no clean intersection)"
        print(f"{label}: {response.point.lat:.6f}, {response.point.lon:.6f}  ({response.distance_m:.0f} m)")
    else:
        print(f"Search failed: {response.reason.value if response.reason else 'unknown'}  {response.message or ''}")

    return 1 if response.kind == "failed" else 0


def _cmd_elevation(args: argparse.Namespace) -> int:
    """Handle the `elevation` subcommand."""
    try:
        point = GeoPoint(lat=float(args.lat), lon=float(args.lon))
    except InvalidCoordinate as exc:
        logger.error("Invalid point: %s", exc)
        return 1
    try:
        elevation = _build_client(args).point_elevation(point)
    except ElevationError as exc:
        logger.error("Elevation lookup failed: %s", exc)
        return 1
    print(f"{elevation:.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the SightLine CLI."""
    parser = argparse.ArgumentParser(prog="sightline")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every sample (DEBUG).")
    parser.add_argument("--api-key", default=None, help="Elevation API key (overrides settings/env).")
    sub = parser.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="Find where a line of sight meets the terrain.")
    s.add_argument("--lat", required=True, type=float)
    s.add_argument("--lon", required=True, type=float)
    s.add_argument("--altitude", required=True, type=float, help="Observer altitude in meters.")
    s.add_argument("--uncertainty", type=float, default=0.0, help="Vertical uncertainty in meters.")
    s.add_argument("--pitch", required=True, type=float, help="Degrees above horizontal (negative = down).")
    s.add_argument("--bearing", required=True, type=float, help="Degrees clockwise from north.")
    s.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    s.set_defaults(func=_cmd_search)

    e = sub.add_parser("elevation", help="Look up the terrain elevation at one point.")
    e.add_argument("--lat", required=True, type=float)
    e.add_argument("--lon", required=True, type=float)
    e.set_defaults(func=_cmd_elevation)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m sightline.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
