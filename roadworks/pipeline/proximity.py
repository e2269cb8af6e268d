"""Threshold filters against a route or a single point."""

from __future__ import annotations

from typing import Iterable, Sequence

from roadworks.common.geometry import RouteProjection, distance_to_point
from roadworks.common.models import EnrichedConstruction, LatLon


def clamp_threshold(value: float, *, minimum: float, maximum: float) -> float:
    """Caller-side guard keeping a user-chosen threshold inside the UI range."""
    return max(minimum, min(maximum, value))


def filter_by_route(
    constructions: Iterable[EnrichedConstruction],
    route: Sequence[LatLon] | None,
    threshold_meters: float,
) -> list[EnrichedConstruction]:
    # Without a route there is nothing to be near.
    if not route:
        return []
    projection = RouteProjection(route)
    return [c for c in constructions if projection.distance(c.point) <= threshold_meters]


def filter_by_point(
    constructions: Iterable[EnrichedConstruction],
    point: LatLon,
    threshold_meters: float,
) -> list[EnrichedConstruction]:
    return [c for c in constructions if distance_to_point(point, c.point) <= threshold_meters]
