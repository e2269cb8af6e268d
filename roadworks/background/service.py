"""Sweep service: the ``run_sweep()`` entry point a scheduler calls."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from roadworks.background.locations import SavedLocationStore
from roadworks.background.notifier import Notifier, compose_alert
from roadworks.common.config_loader import RoadworksConfig
from roadworks.common.http import HttpClient
from roadworks.common.ids import generate_run_id
from roadworks.common.logging import log_event
from roadworks.common.models import AlertEvent, EnrichedConstruction, alert_key
from roadworks.common.time_utils import utc_now
from roadworks.harvest.runner import fetch_snapshot
from roadworks.pipeline.alert_ledger import AlertLedger
from roadworks.pipeline.classify import ImpactCategory, classify
from roadworks.pipeline.enrich import enrich
from roadworks.pipeline.reports import sweep_status, write_sweep_report
from roadworks.pipeline.sweep import sweep

SKIP_BUSY = "sweep_in_progress"
SKIP_OUTSIDE_RUN_HOUR = "outside_run_hour"


@dataclass(frozen=True)
class SweepOutcome:
    run_id: str
    status: str
    skipped_reason: str | None = None
    events: list[AlertEvent] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)
    report_path: Path | None = None


class SweepService:
    def __init__(
        self,
        config: RoadworksConfig,
        *,
        client: HttpClient,
        store: SavedLocationStore,
        notifier: Notifier,
        ledger_path: Path,
        data_dir: Path | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.store = store
        self.notifier = notifier
        self.ledger_path = ledger_path
        self.data_dir = data_dir
        self.clock = clock
        self.logger = logger or logging.getLogger("roadworks.sweep")
        self._lock = threading.Lock()

    def run_sweep(self) -> SweepOutcome:
        """Run one sweep unless another one is still in flight."""
        if not self._lock.acquire(blocking=False):
            run_id = generate_run_id()
            log_event(self.logger, "sweep skipped, previous sweep still running", run_id=run_id,
                      stage="sweep", event="SWEEP_SKIP", status="skipped")
            return SweepOutcome(run_id=run_id, status="skipped", skipped_reason=SKIP_BUSY)
        try:
            # Start dates and run_hour are local calendar values.
            return self._run(self.clock().astimezone(self.config.sweep.zone()), generate_run_id())
        finally:
            self._lock.release()

    def _run(self, now: datetime, run_id: str) -> SweepOutcome:
        run_hour = self.config.sweep.run_hour
        if run_hour is not None and now.hour != run_hour:
            log_event(self.logger, f"sweep skipped outside run hour {run_hour}", run_id=run_id,
                      stage="sweep", event="SWEEP_SKIP", status="skipped")
            return self._finish(run_id, now, skipped=SKIP_OUTSIDE_RUN_HOUR)

        started = time.monotonic()
        log_event(self.logger, "sweep start", run_id=run_id, stage="sweep", event="SWEEP_START", status="ok")

        snapshot = fetch_snapshot(self.config, self.client, logger=self.logger, run_id=run_id)
        if not snapshot.complete:
            # No alerts from a half-fetched join; the next scheduled run tries again.
            return self._finish(run_id, now, failed_sources=snapshot.failed_sources,
                                counts={"obstructions": len(snapshot.obstructions), "impacts": len(snapshot.impacts)})

        constructions = enrich(snapshot.obstructions, snapshot.impacts)
        locations = self.store.list()
        ledger = AlertLedger.load(self.ledger_path)
        pruned = ledger.prune(location.id for location in locations)
        pruned += ledger.prune_finished(alert_key(o.permit_id, o.id) for o in snapshot.obstructions)

        events = sweep(
            now,
            constructions,
            locations,
            self.config.sweep.radius_m,
            already_alerted=ledger.pairs(),
        )

        by_location = {location.id: location for location in locations}
        dispatched: list[AlertEvent] = []
        try:
            for event in events:
                category = self._category(event.construction)
                title, body = compose_alert(event, by_location[event.location_id], category)
                self.notifier.notify(title, body)
                dispatched.append(event)
                log_event(self.logger, "alert dispatched", run_id=run_id, stage="sweep", event="ALERT",
                          status="ok", location_id=event.location_id)
        finally:
            if dispatched or pruned:
                ledger.record(dispatched, now.date())
                ledger.save()

        log_event(
            self.logger,
            "sweep end",
            run_id=run_id,
            stage="sweep",
            event="SWEEP_END",
            status="ok",
            duration_ms=int((time.monotonic() - started) * 1000),
            rows_in=len(constructions),
            rows_out=len(dispatched),
        )
        return self._finish(
            run_id,
            now,
            events=dispatched,
            counts={
                "obstructions": len(snapshot.obstructions),
                "impacts": len(snapshot.impacts),
                "enriched": len(constructions),
                "saved_locations": len(locations),
                "alerts": len(dispatched),
                "ledger_pruned": pruned,
            },
        )

    def _category(self, construction: EnrichedConstruction | None) -> ImpactCategory:
        if construction is None:
            return ImpactCategory.NONE
        return classify(
            construction,
            sidewalk_blocked_values=self.config.classification.sidewalk_blocked_values,
            transit_moved_values=self.config.classification.transit_moved_values,
        )

    def _finish(
        self,
        run_id: str,
        now: datetime,
        *,
        skipped: str | None = None,
        failed_sources: list[str] | None = None,
        events: list[AlertEvent] | None = None,
        counts: dict[str, int] | None = None,
    ) -> SweepOutcome:
        failed = list(failed_sources or [])
        events = list(events or [])
        report_path = None
        if self.data_dir is not None:
            report_path = write_sweep_report(
                self.data_dir,
                run_id=run_id,
                ran_at=now.isoformat(),
                skipped=skipped,
                failed_sources=failed,
                counts=counts or {},
                alerts=[
                    {
                        "location_id": event.location_id,
                        "permit_id": event.obstruction_permit_id,
                        "obstruction_id": event.obstruction_id,
                        "reason": event.reason,
                        "start_date": event.obstruction_start_date.isoformat() if event.obstruction_start_date else None,
                    }
                    for event in events
                ],
            )
        return SweepOutcome(
            run_id=run_id,
            status=sweep_status(skipped=skipped, failed_sources=failed),
            skipped_reason=skipped,
            events=events,
            failed_sources=failed,
            report_path=report_path,
        )
