"""Sweep run reports."""

from __future__ import annotations

from pathlib import Path

from roadworks.common.fs import write_json


def sweep_status(*, skipped: str | None, failed_sources: list[str]) -> str:
    if skipped:
        return "skipped"
    if failed_sources:
        return "partial"
    return "success"


def write_sweep_report(
    data_dir: Path,
    *,
    run_id: str,
    ran_at: str,
    skipped: str | None,
    failed_sources: list[str],
    counts: dict[str, int],
    alerts: list[dict],
) -> Path:
    report_path = data_dir / "out" / "reports" / f"sweep_{run_id}.json"
    payload = {
        "run_id": run_id,
        "ran_at": ran_at,
        "status": sweep_status(skipped=skipped, failed_sources=failed_sources),
        "skipped_reason": skipped,
        "failed_sources": sorted(failed_sources),
        "counts": counts,
        "alerts": alerts,
    }
    write_json(report_path, payload)
    return report_path
