"""Notification port and alert text."""

from __future__ import annotations

import logging
from typing import Protocol

from roadworks.common.logging import log_event
from roadworks.common.models import AlertEvent, SavedLocation
from roadworks.common.time_utils import format_day
from roadworks.pipeline.classify import IMPACT_LABELS, ImpactCategory


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


def compose_alert(
    event: AlertEvent,
    location: SavedLocation,
    category: ImpactCategory = ImpactCategory.NONE,
) -> tuple[str, str]:
    title = f"Travaux près de {location.label}"
    body = f"{event.reason or 'Travaux'} à venir le {format_day(event.obstruction_start_date)}"
    if category is not ImpactCategory.NONE:
        body = f"{body} ({IMPACT_LABELS[category]})"
    return title, body


class LoggingNotifier:
    """Delivers notifications as log events, for hosts without a push channel."""

    def __init__(self, logger: logging.Logger, run_id: str | None = None) -> None:
        self.logger = logger
        self.run_id = run_id

    def notify(self, title: str, body: str) -> None:
        log_event(
            self.logger,
            f"{title}: {body}",
            run_id=self.run_id,
            stage="notify",
            event="NOTIFY",
            status="ok",
        )
