"""Join obstruction records with their impact records."""

from __future__ import annotations

import math
from typing import Iterable

from roadworks.common.models import EnrichedConstruction, ImpactRecord, ObstructionRecord


def _safe_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def build_impact_lookup(impacts: Iterable[ImpactRecord]) -> dict[str, ImpactRecord]:
    lookup: dict[str, ImpactRecord] = {}
    for impact in impacts:
        if not impact.request_id:
            continue
        # Later duplicates replace earlier ones.
        lookup[impact.request_id] = impact
    return lookup


def enrich(
    obstructions: Iterable[ObstructionRecord],
    impacts: Iterable[ImpactRecord],
) -> list[EnrichedConstruction]:
    """Inner-join obstructions to impacts, dropping records without usable coordinates.

    Records with no matching impact, or whose latitude/longitude are missing or
    not numeric, are excluded rather than carried with placeholders. Output order
    is not part of the contract.
    """
    lookup = build_impact_lookup(impacts)
    enriched: list[EnrichedConstruction] = []

    for obstruction in obstructions:
        impact = lookup.get(obstruction.id)
        if impact is None:
            continue

        lat = _safe_float(obstruction.latitude)
        lon = _safe_float(obstruction.longitude)
        if not _valid_lat_lon(lat, lon):
            continue

        enriched.append(
            EnrichedConstruction(
                latitude=lat,
                longitude=lon,
                reason=obstruction.reason_category,
                sidewalk_impact=impact.sidewalk_blocked_type,
                transit_impact=impact.transit_blocked_type,
                street_name=impact.street_name,
                start_date=obstruction.start_date,
                end_date=obstruction.end_date,
                permit_id=obstruction.permit_id,
                status=obstruction.status,
                organization=obstruction.organization_name,
                obstruction_id=obstruction.id,
            )
        )

    return enriched
