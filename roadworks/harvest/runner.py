"""Dataset and route fetching with fail-soft semantics."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from roadworks.common.config_loader import RoadworksConfig
from roadworks.common.constants import SOURCE_DIRECTIONS, SOURCE_IMPACTS, SOURCE_OBSTRUCTIONS
from roadworks.common.errors import StageError
from roadworks.common.http import HttpClient
from roadworks.common.logging import log_event
from roadworks.common.models import ImpactRecord, LatLon, ObstructionRecord, RoutePolyline
from roadworks.harvest.datasets import fetch_impacts, fetch_obstructions
from roadworks.harvest.directions import fetch_route


@dataclass(frozen=True)
class DatasetSnapshot:
    obstructions: list[ObstructionRecord] = field(default_factory=list)
    impacts: list[ImpactRecord] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_sources


def _log_failure(logger: logging.Logger | None, source: str, exc: StageError, run_id: str | None) -> None:
    if logger is None:
        return
    log_event(
        logger,
        f"{source} fetch failed: {exc}",
        level=logging.WARNING,
        run_id=run_id,
        stage="fetch",
        source=source,
        event="FETCH_FAIL",
        status="error",
        error_code=exc.error_code,
    )


def fetch_snapshot(
    config: RoadworksConfig,
    client: HttpClient,
    *,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> DatasetSnapshot:
    """Fetch both datasets; a failed source comes back empty and is listed in ``failed_sources``."""
    obstructions_url, impacts_url = config.datasets.require_urls()
    failures: list[str] = []
    obstructions: list[ObstructionRecord] = []
    impacts: list[ImpactRecord] = []

    started = time.monotonic()
    try:
        obstructions = fetch_obstructions(client, obstructions_url, timeout=config.timeout)
    except StageError as exc:
        failures.append(SOURCE_OBSTRUCTIONS)
        _log_failure(logger, SOURCE_OBSTRUCTIONS, exc, run_id)

    try:
        impacts = fetch_impacts(client, impacts_url, timeout=config.timeout)
    except StageError as exc:
        failures.append(SOURCE_IMPACTS)
        _log_failure(logger, SOURCE_IMPACTS, exc, run_id)

    if logger is not None:
        log_event(
            logger,
            "datasets fetched",
            run_id=run_id,
            stage="fetch",
            event="FETCH_END",
            status="partial" if failures else "ok",
            duration_ms=int((time.monotonic() - started) * 1000),
            rows_out=len(obstructions) + len(impacts),
        )

    return DatasetSnapshot(obstructions=obstructions, impacts=impacts, failed_sources=failures)


def fetch_route_or_none(
    config: RoadworksConfig,
    client: HttpClient,
    start: LatLon,
    end: LatLon,
    *,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> RoutePolyline | None:
    """Fetch a route; any fetch or payload failure means "no route"."""
    try:
        return fetch_route(client, config.directions, start, end, timeout=config.timeout)
    except StageError as exc:
        _log_failure(logger, SOURCE_DIRECTIONS, exc, run_id)
        return None
