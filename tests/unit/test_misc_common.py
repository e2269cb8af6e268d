import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path

from roadworks.common.deterministic import stable_sorted
from roadworks.common.fs import read_json, write_json
from roadworks.common.ids import generate_run_id
from roadworks.common.logging import build_logger, log_event
from roadworks.common.time_utils import format_day, parse_calendar_date, start_of_day


def test_stable_sorted_orders_values():
    assert stable_sorted([{"k": 2}, {"k": 1}], key=lambda item: item["k"]) == [{"k": 1}, {"k": 2}]


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_parse_calendar_date_accepts_dates_and_timestamps():
    assert parse_calendar_date("2026-11-01") == date(2026, 11, 1)
    assert parse_calendar_date("2026-11-01T07:00:00") == date(2026, 11, 1)
    assert parse_calendar_date(datetime(2026, 11, 1, 7, tzinfo=timezone.utc)) == date(2026, 11, 1)
    assert parse_calendar_date(None) is None
    assert parse_calendar_date("") is None
    assert parse_calendar_date("not a date") is None


def test_start_of_day_uses_reference_zone():
    reference = datetime(2026, 10, 19, 12, tzinfo=timezone.utc)
    assert start_of_day(date(2026, 10, 20), reference) == datetime(2026, 10, 20, tzinfo=timezone.utc)


def test_format_day_placeholder():
    assert format_day(date(2026, 1, 2)) == "2026-01-02"
    assert format_day(None) == "—"


def test_write_json_is_sorted_and_readable(tmp_path: Path):
    path = tmp_path / "nested" / "payload.json"
    write_json(path, {"b": 1, "a": "Barré"})

    assert read_json(path) == {"a": "Barré", "b": 1}
    assert path.read_text(encoding="utf-8").index('"a"') < path.read_text(encoding="utf-8").index('"b"')
    assert not path.with_suffix(".json.tmp").exists()


def test_build_logger_writes_json_lines(tmp_path: Path):
    logger = build_logger("run-log-test", data_dir=tmp_path)
    log_event(logger, "sweep finished", level=logging.WARNING, run_id="run-log-test", stage="sweep", rows_out=2)
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run_meta" / "run-log-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["level"] == "WARNING"
    assert entry["stage"] == "sweep"
    assert entry["rows_out"] == 2
    assert entry["location_id"] is None
    assert entry["message"] == "sweep finished"
