"""Interactive route view: enrich, filter by route, classify.

``render`` is a pure pipeline over explicit inputs. ``RenderSession`` sits
between it and whatever UI drives it, numbering requests so that a result for
a superseded request is dropped on arrival.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from roadworks.common.config_loader import ClassificationConfig
from roadworks.common.models import EnrichedConstruction, ImpactRecord, LatLon, ObstructionRecord
from roadworks.common.time_utils import format_day
from roadworks.harvest.runner import DatasetSnapshot
from roadworks.pipeline.classify import (
    IMPACT_ICONS,
    IMPACT_LABELS,
    SIDEWALK_BLOCKED_VALUES,
    TRANSIT_MOVED_VALUES,
    ImpactCategory,
    classify,
    legend_counts,
)
from roadworks.pipeline.enrich import enrich
from roadworks.pipeline.proximity import filter_by_route

STATUS_NO_ROUTE = "no_route"
STATUS_OK = "ok"


@dataclass(frozen=True)
class Marker:
    construction: EnrichedConstruction
    category: ImpactCategory

    @property
    def icon(self) -> str:
        return IMPACT_ICONS[self.category]

    def popup(self) -> dict[str, str]:
        c = self.construction
        return {
            "reason": c.reason or "",
            "sidewalk": c.sidewalk_impact or "Non impacté",
            "transit": c.transit_impact or "",
            "permit": f"{c.permit_id or ''} ({c.status or ''})",
            "dates": f"{format_day(c.start_date)} → {format_day(c.end_date)}",
            "organization": c.organization or "",
            "street": c.street_name or "",
            "impact": IMPACT_LABELS[self.category],
        }


@dataclass(frozen=True)
class RouteView:
    status: str
    threshold_meters: float
    route: tuple[LatLon, ...] = ()
    markers: tuple[Marker, ...] = ()
    legend: dict[ImpactCategory, int] = field(default_factory=lambda: legend_counts([]))

    @classmethod
    def empty(cls, threshold_meters: float = 0.0) -> "RouteView":
        return cls(status=STATUS_NO_ROUTE, threshold_meters=threshold_meters)


def render_constructions(
    constructions: Iterable[EnrichedConstruction],
    route: Sequence[LatLon] | None,
    threshold_meters: float,
    classification: ClassificationConfig | None = None,
) -> RouteView:
    if not route:
        return RouteView.empty(threshold_meters)

    sidewalk_values = classification.sidewalk_blocked_values if classification else SIDEWALK_BLOCKED_VALUES
    transit_values = classification.transit_moved_values if classification else TRANSIT_MOVED_VALUES

    nearby = filter_by_route(constructions, route, threshold_meters)
    markers = tuple(
        Marker(
            construction=c,
            category=classify(c, sidewalk_blocked_values=sidewalk_values, transit_moved_values=transit_values),
        )
        for c in nearby
    )
    return RouteView(
        status=STATUS_OK,
        threshold_meters=threshold_meters,
        route=tuple(route),
        markers=markers,
        legend=legend_counts(marker.category for marker in markers),
    )


def render(
    obstructions: Iterable[ObstructionRecord],
    impacts: Iterable[ImpactRecord],
    route: Sequence[LatLon] | None,
    threshold_meters: float,
    classification: ClassificationConfig | None = None,
) -> RouteView:
    return render_constructions(enrich(obstructions, impacts), route, threshold_meters, classification)


class RenderSession:
    """Last-request-wins holder for the current route view."""

    def __init__(self, classification: ClassificationConfig | None = None) -> None:
        self.classification = classification
        self._lock = threading.Lock()
        self._latest_request = 0
        self._view = RouteView.empty()
        self._last_good: list[EnrichedConstruction] | None = None

    @property
    def view(self) -> RouteView:
        with self._lock:
            return self._view

    @property
    def last_good_constructions(self) -> list[EnrichedConstruction] | None:
        with self._lock:
            return self._last_good

    def begin_request(self) -> int:
        with self._lock:
            self._latest_request += 1
            return self._latest_request

    def is_current(self, request_id: int) -> bool:
        with self._lock:
            return request_id == self._latest_request

    def publish(self, request_id: int, view: RouteView) -> bool:
        with self._lock:
            if request_id != self._latest_request:
                return False
            self._view = view
            return True

    def complete(
        self,
        request_id: int,
        snapshot: DatasetSnapshot,
        route: Sequence[LatLon] | None,
        threshold_meters: float,
    ) -> bool:
        """Render a finished fetch; returns False when the request was superseded.

        An incomplete snapshot never produces a partially joined set: the last
        complete enrichment is reused, or nothing when there has not been one.
        """
        if not self.is_current(request_id):
            return False

        if snapshot.complete:
            constructions = enrich(snapshot.obstructions, snapshot.impacts)
            with self._lock:
                if request_id != self._latest_request:
                    return False
                self._last_good = constructions
        else:
            constructions = self.last_good_constructions or []

        view = render_constructions(constructions, route, threshold_meters, self.classification)
        return self.publish(request_id, view)
