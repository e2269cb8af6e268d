"""Obstruction and impact dataset fetchers.

Both datasets are CKAN ``datastore_search`` snapshots wrapped in
``{"result": {"records": [...]}}``. No pagination is followed.
"""

from __future__ import annotations

from typing import Any

from roadworks.common.errors import MalformedDataError
from roadworks.common.http import HttpClient, TimeoutConfig
from roadworks.common.models import ImpactRecord, ObstructionRecord
from roadworks.common.time_utils import parse_calendar_date


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def extract_records(payload: Any, source: str) -> list[dict]:
    if not isinstance(payload, dict):
        raise MalformedDataError(f"{source}: payload is not a JSON object")
    result = payload.get("result")
    if not isinstance(result, dict):
        raise MalformedDataError(f"{source}: payload has no result object")
    records = result.get("records")
    if not isinstance(records, list):
        raise MalformedDataError(f"{source}: payload has no result.records list")
    return [record for record in records if isinstance(record, dict)]


def parse_obstruction(record: dict) -> ObstructionRecord | None:
    record_id = _text(record.get("id"))
    if record_id is None:
        return None
    return ObstructionRecord(
        id=record_id.strip(),
        borough_id=_text(record.get("boroughid")),
        permit_id=_text(record.get("permit_permit_id")),
        category=_text(record.get("permitcategory")),
        status=_text(record.get("currentstatus")),
        start_date=parse_calendar_date(record.get("duration_start_date")),
        end_date=parse_calendar_date(record.get("duration_end_date")),
        reason_category=_text(record.get("reason_category")),
        latitude=record.get("latitude"),
        longitude=record.get("longitude"),
        organization_name=_text(record.get("organizationname")),
    )


def parse_impact(record: dict) -> ImpactRecord | None:
    request_id = _text(record.get("id_request"))
    if request_id is None:
        return None
    return ImpactRecord(
        request_id=request_id.strip(),
        sidewalk_blocked_type=_text(record.get("sidewalk_blockedtype")),
        transit_blocked_type=_text(record.get("stmimpact_blockedtype")),
        street_name=_text(record.get("name")),
    )


def fetch_obstructions(
    client: HttpClient,
    url: str,
    *,
    timeout: TimeoutConfig | None = None,
) -> list[ObstructionRecord]:
    payload = client.get_json(url, source_type="dataset", timeout=timeout)
    rows = [parse_obstruction(record) for record in extract_records(payload, "obstructions")]
    return [row for row in rows if row is not None]


def fetch_impacts(
    client: HttpClient,
    url: str,
    *,
    timeout: TimeoutConfig | None = None,
) -> list[ImpactRecord]:
    payload = client.get_json(url, source_type="dataset", timeout=timeout)
    rows = [parse_impact(record) for record in extract_records(payload, "impacts")]
    return [row for row in rows if row is not None]
