from __future__ import annotations

from datetime import date

import pytest

from roadworks.common.errors import MalformedDataError
from roadworks.harvest.datasets import extract_records, fetch_impacts, fetch_obstructions, parse_obstruction


class FakeHttpClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get_json(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.payload


OBSTRUCTION_RECORD = {
    "_id": 1,
    "id": "3f1c",
    "boroughid": "VM",
    "permit_permit_id": "VM-2026-0042",
    "permitcategory": "Occupation",
    "currentstatus": "Permis délivré",
    "duration_start_date": "2026-11-01T07:00:00",
    "duration_end_date": "2026-11-30",
    "reason_category": "Construction/rénovation",
    "latitude": "45.5017",
    "longitude": "-73.5673",
    "organizationname": "Ville de Montréal",
}


def test_fetch_obstructions_maps_dataset_fields():
    client = FakeHttpClient({"result": {"records": [OBSTRUCTION_RECORD]}})

    [row] = fetch_obstructions(client, "https://data.example.test/obstructions")

    assert row.id == "3f1c"
    assert row.permit_id == "VM-2026-0042"
    assert row.start_date == date(2026, 11, 1)
    assert row.end_date == date(2026, 11, 30)
    assert row.latitude == "45.5017"
    assert row.organization_name == "Ville de Montréal"
    assert client.calls[0][1]["source_type"] == "dataset"


def test_obstruction_without_id_is_skipped():
    record = dict(OBSTRUCTION_RECORD, id="  ")
    assert parse_obstruction(record) is None


def test_fetch_impacts_maps_dataset_fields_and_blank_values():
    client = FakeHttpClient(
        {
            "result": {
                "records": [
                    {"id_request": "3f1c", "sidewalk_blockedtype": "Barré", "stmimpact_blockedtype": "", "name": "Rue Peel"},
                    {"id_request": None, "sidewalk_blockedtype": "Barré"},
                    "not-a-record",
                ]
            }
        }
    )

    [impact] = fetch_impacts(client, "https://data.example.test/impacts")

    assert impact.request_id == "3f1c"
    assert impact.sidewalk_blocked_type == "Barré"
    assert impact.transit_blocked_type is None
    assert impact.street_name == "Rue Peel"


@pytest.mark.parametrize("payload", [[], {"success": True}, {"result": {}}, {"result": {"records": "x"}}])
def test_extract_records_rejects_unexpected_shapes(payload):
    with pytest.raises(MalformedDataError):
        extract_records(payload, "obstructions")
