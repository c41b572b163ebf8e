"""JSON and CSV output helpers for monthly fleet budget reports."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from fleet_budget_scraper import config
from fleet_budget_scraper.forecast.engine import ForecastRecord
from fleet_budget_scraper.io import summary_text
from fleet_budget_scraper.report_models import BatchReport, BatchSummary
from fleet_budget_scraper.scraper.errors import FleetFailure

SUMMARY_JSON = "summary.json"
SUMMARY_TEXT = "summary-report.txt"
FLEETS_CSV = "fleets.csv"


def report_dir(report_date: date, reports_dir: Optional[Path] = None) -> Path:
    """Directory for one run, e.g. ``reports/2026-10-06``."""
    output_dir = Path(reports_dir or config.REPORTS_DIR) / report_date.isoformat()
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def fleet_file_name(fleet_id: str, failed: bool = False) -> str:
    return f"fleet-{fleet_id}-ERROR.json" if failed else f"fleet-{fleet_id}.json"


def write_text_atomic(path: Path, text: str) -> Path:
    """Write via a temp file in the same directory so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def write_json_atomic(path: Path, payload: dict) -> Path:
    return write_text_atomic(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


def save_fleet_record(record: ForecastRecord, output_dir: Path) -> Path:
    return write_json_atomic(output_dir / fleet_file_name(record.fleet_id), record.to_json_dict())


def save_fleet_failure(
    failure: FleetFailure,
    output_dir: Path,
    report_date: Optional[date] = None,
) -> Path:
    payload = {
        **failure.model_dump(mode="json", by_alias=True),
        "reportDate": report_date.isoformat() if report_date else None,
        "success": False,
    }
    return write_json_atomic(output_dir / fleet_file_name(failure.fleet_id, failed=True), payload)


def records_frame(report: BatchReport) -> pd.DataFrame:
    """One row per fleet, failures included, in batch order."""
    rows = []
    for result in report.fleet_results:
        row = {"fleetId": result.fleet_id, "success": result.success}
        if result.record is not None:
            row.update(result.record.to_json_dict())
        if result.error is not None:
            row.update({"phase": result.error.phase, "error": result.error.message})
        row["durationSeconds"] = round(result.duration_seconds, 1)
        rows.append(row)
    return pd.DataFrame(rows)


def save_fleets_csv(report: BatchReport, output_dir: Path) -> Path:
    df = records_frame(report)
    output_path = output_dir / FLEETS_CSV
    write_text_atomic(output_path, df.to_csv(index=False))
    return output_path


def summary_payload(report: BatchReport, summary: Optional[BatchSummary] = None) -> dict:
    summary = summary or report.summary()
    return {
        "reportDate": report.report_date.isoformat(),
        "reportPeriod": report.report_period,
        "generatedAt": report.generated_at.isoformat(),
        "totalDuration": round(report.total_duration_seconds, 1),
        **summary.model_dump(mode="json", by_alias=True),
        "fleets": [
            result.model_dump(mode="json", by_alias=True) for result in report.fleet_results
        ],
    }


def save_summary(
    report: BatchReport,
    output_dir: Path,
    summary: Optional[BatchSummary] = None,
) -> dict[str, Path]:
    """Write summary.json, summary-report.txt and fleets.csv for a finished batch."""
    summary = summary or report.summary()
    return {
        "json": write_json_atomic(output_dir / SUMMARY_JSON, summary_payload(report, summary)),
        "text": write_text_atomic(
            output_dir / SUMMARY_TEXT, summary_text.format_summary(report, summary)
        ),
        "csv": save_fleets_csv(report, output_dir),
    }
