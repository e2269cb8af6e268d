"""Date helpers for dataset values and run metadata."""

from __future__ import annotations

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def parse_calendar_date(value: object) -> date | None:
    """Reduce an ISO date or datetime string to its calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) < 10:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def start_of_day(day: date, reference: datetime) -> datetime:
    # Calendar dates carry no zone; they are read in the caller's zone.
    return datetime.combine(day, time.min, tzinfo=reference.tzinfo)


def format_day(day: date | None) -> str:
    return day.isoformat() if day is not None else "—"
