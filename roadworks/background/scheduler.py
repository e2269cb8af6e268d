"""Periodic trigger for the sweep entry point."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from roadworks.common.logging import log_event


class IntervalScheduler:
    """Calls ``trigger`` roughly every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        interval_seconds: float,
        trigger: Callable[[], object],
        *,
        run_immediately: bool = True,
        max_runs: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.trigger = trigger
        self.run_immediately = run_immediately
        self.max_runs = max_runs
        self.logger = logger or logging.getLogger("roadworks.scheduler")
        self.runs = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _fire(self) -> None:
        self.runs += 1
        try:
            self.trigger()
        except Exception as exc:
            # The next tick retries; the failure is reported, not raised into the timer thread.
            log_event(
                self.logger,
                f"scheduled run failed: {exc}",
                level=logging.ERROR,
                stage="schedule",
                event="TRIGGER_FAIL",
                status="error",
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
        if self.max_runs is not None and self.runs >= self.max_runs:
            self._stop.set()

    def run_forever(self) -> None:
        if self.run_immediately and not self._stop.is_set():
            self._fire()
        while not self._stop.wait(self.interval_seconds):
            self._fire()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="roadworks-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()
