"""Persisted record of (location, alert key) pairs that were already alerted."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable

from roadworks.common.errors import MalformedDataError
from roadworks.common.fs import read_json, write_json
from roadworks.common.models import AlertEvent


class AlertLedger:
    """Remembers when each (location id, alert key) pair was first alerted.

    The alert key is the permit id, or the obstruction id for permit-less records.
    """

    def __init__(self, path: Path, alerts: dict[str, dict[str, str]] | None = None) -> None:
        self.path = path
        self.alerts: dict[str, dict[str, str]] = alerts or {}

    @classmethod
    def load(cls, path: Path) -> "AlertLedger":
        if not path.exists():
            return cls(path)
        payload = read_json(path)
        alerts = payload.get("alerts") if isinstance(payload, dict) else None
        if not isinstance(alerts, dict):
            raise MalformedDataError(f"Alert ledger has no alerts mapping: {path}")
        return cls(path, {str(k): dict(v) for k, v in alerts.items() if isinstance(v, dict)})

    def pairs(self) -> frozenset[tuple[str, str]]:
        return frozenset(
            (location_id, permit_id)
            for location_id, permits in self.alerts.items()
            for permit_id in permits
        )

    def record(self, events: Iterable[AlertEvent], alerted_on: date) -> int:
        added = 0
        for event in events:
            location_id, permit_id = event.dedupe_key
            permits = self.alerts.setdefault(location_id, {})
            if permit_id not in permits:
                permits[permit_id] = alerted_on.isoformat()
                added += 1
        return added

    def prune(self, live_location_ids: Iterable[str]) -> int:
        live = set(live_location_ids)
        stale = [location_id for location_id in self.alerts if location_id not in live]
        for location_id in stale:
            del self.alerts[location_id]
        return len(stale)

    def prune_finished(self, live_keys: Iterable[str]) -> int:
        """Forget pairs whose obstruction is no longer published; returns how many were dropped."""
        live = set(live_keys)
        removed = 0
        for location_id in list(self.alerts):
            permits = self.alerts[location_id]
            for key in [key for key in permits if key not in live]:
                del permits[key]
                removed += 1
            if not permits:
                del self.alerts[location_id]
        return removed

    def save(self) -> None:
        write_json(self.path, {"alerts": self.alerts})
