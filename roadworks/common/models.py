"""Data models used across the pipeline.

Coordinates are (latitude, longitude) everywhere inside the package. The two
boundaries that speak (longitude, latitude) -- the directions provider and the
saved-location store -- convert on the way in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, NamedTuple


class LatLon(NamedTuple):
    lat: float
    lon: float


RoutePolyline = tuple[LatLon, ...]


@dataclass(frozen=True)
class ObstructionRecord:
    id: str
    borough_id: str | None
    permit_id: str | None
    category: str | None
    status: str | None
    start_date: date | None
    end_date: date | None
    reason_category: str | None
    # Raw values as published; numeric coercion happens during enrichment.
    latitude: object | None
    longitude: object | None
    organization_name: str | None


@dataclass(frozen=True)
class ImpactRecord:
    request_id: str
    sidewalk_blocked_type: str | None
    transit_blocked_type: str | None
    street_name: str | None


@dataclass(frozen=True)
class EnrichedConstruction:
    latitude: float
    longitude: float
    reason: str | None
    sidewalk_impact: str | None
    transit_impact: str | None
    street_name: str | None
    start_date: date | None
    end_date: date | None
    permit_id: str | None
    status: str | None
    organization: str | None
    obstruction_id: str = ""

    @property
    def point(self) -> LatLon:
        return LatLon(self.latitude, self.longitude)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["start_date"] = self.start_date.isoformat() if self.start_date else None
        payload["end_date"] = self.end_date.isoformat() if self.end_date else None
        return payload


@dataclass(frozen=True)
class SavedLocation:
    id: str
    label: str
    point: LatLon

    @property
    def coordinates(self) -> tuple[float, float]:
        """The (longitude, latitude) pair as the geocoder and store hold it."""
        return self.point.lon, self.point.lat


def alert_key(permit_id: str | None, obstruction_id: str) -> str:
    # Permit-less obstructions fall back to their dataset id so they never share a key.
    return permit_id or f"obstruction:{obstruction_id}"


@dataclass(frozen=True)
class AlertEvent:
    location_id: str
    obstruction_permit_id: str | None
    reason: str | None
    obstruction_start_date: date | None
    obstruction_id: str = ""
    # The construction the sweep matched.
    construction: EnrichedConstruction | None = field(default=None, compare=False, repr=False)

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return self.location_id, alert_key(self.obstruction_permit_id, self.obstruction_id)
