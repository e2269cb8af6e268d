"""Route lookup against an OpenRouteService-style directions endpoint."""

from __future__ import annotations

from typing import Any

from roadworks.common.config_loader import DirectionsConfig
from roadworks.common.errors import GeometryError, MalformedDataError
from roadworks.common.geometry import to_lat_lon
from roadworks.common.http import HttpClient, TimeoutConfig
from roadworks.common.models import LatLon, RoutePolyline


def _lon_lat_param(point: LatLon) -> str:
    # The provider takes "longitude,latitude".
    return f"{point.lon},{point.lat}"


def parse_route_geometry(payload: Any) -> RoutePolyline | None:
    """Return the first feature's line as (lat, lon) vertices, or None if unusable."""
    if not isinstance(payload, dict):
        raise MalformedDataError("directions: payload is not a JSON object")
    features = payload.get("features")
    if not isinstance(features, list) or not features:
        raise MalformedDataError("directions: payload has no features")
    feature = features[0] if isinstance(features[0], dict) else {}
    geometry = feature.get("geometry")
    coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coordinates, list):
        raise MalformedDataError("directions: first feature has no coordinates")
    try:
        route = to_lat_lon(coordinates)
    except (GeometryError, TypeError, ValueError) as exc:
        raise MalformedDataError(f"directions: invalid coordinate pair: {exc}") from exc
    if len(route) < 2:
        return None
    return route


def fetch_route(
    client: HttpClient,
    directions: DirectionsConfig,
    start: LatLon,
    end: LatLon,
    *,
    timeout: TimeoutConfig | None = None,
) -> RoutePolyline | None:
    endpoint, api_key = directions.require_credentials()
    payload = client.get_json(
        endpoint,
        source_type="directions",
        params={
            "api_key": api_key,
            "start": _lon_lat_param(start),
            "end": _lon_lat_param(end),
        },
        headers={"Accept": "application/json, application/geo+json"},
        timeout=timeout,
    )
    return parse_route_geometry(payload)
