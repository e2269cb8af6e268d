"""Geofence sweep: upcoming obstructions near saved locations."""

from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Iterable, Sequence

from roadworks.common.geometry import distance_to_point
from roadworks.common.models import AlertEvent, EnrichedConstruction, SavedLocation, alert_key
from roadworks.common.time_utils import start_of_day


def upcoming(obstructions: Iterable[EnrichedConstruction], now: datetime) -> list[EnrichedConstruction]:
    """Obstructions whose start date is strictly after ``now``, in input order."""
    return [
        c
        for c in obstructions
        if c.start_date is not None and start_of_day(c.start_date, now) > now
    ]


def sweep(
    now: datetime,
    obstructions: Sequence[EnrichedConstruction],
    saved_locations: Sequence[SavedLocation],
    radius_meters: float,
    *,
    already_alerted: AbstractSet[tuple[str, str]] = frozenset(),
) -> list[AlertEvent]:
    """Return at most one alert per saved location.

    The first upcoming obstruction within ``radius_meters`` wins, in the order
    the obstructions were given; it is not necessarily the nearest. Pairs in
    ``already_alerted`` are skipped so a later obstruction can still match.
    """
    candidates = upcoming(obstructions, now)
    events: list[AlertEvent] = []

    for location in saved_locations:
        for construction in candidates:
            key = (location.id, alert_key(construction.permit_id, construction.obstruction_id))
            if key in already_alerted:
                continue
            if distance_to_point(location.point, construction.point) <= radius_meters:
                events.append(
                    AlertEvent(
                        location_id=location.id,
                        obstruction_permit_id=construction.permit_id,
                        reason=construction.reason,
                        obstruction_start_date=construction.start_date,
                        obstruction_id=construction.obstruction_id,
                        construction=construction,
                    )
                )
                break

    return events
