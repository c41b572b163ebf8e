"""Readers for stored monthly fleet budget reports."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional

import pandas as pd

from fleet_budget_scraper import config
from fleet_budget_scraper.forecast.engine import ForecastRecord
from fleet_budget_scraper.io.save_report import SUMMARY_JSON, fleet_file_name

logger = logging.getLogger(__name__)

_REPORT_DIR_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def list_report_dirs(reports_dir: Optional[Path] = None) -> list[Path]:
    """List dated report directories, newest first.

    Args:
        reports_dir: Root reports directory. Defaults to ``config.REPORTS_DIR``.

    Returns:
        Directories named ``YYYY-MM-DD``, sorted by date descending.
    """
    root = Path(reports_dir or config.REPORTS_DIR)
    if not root.exists():
        return []
    dirs = [p for p in root.iterdir() if p.is_dir() and _REPORT_DIR_PATTERN.match(p.name)]
    return sorted(dirs, key=lambda p: p.name, reverse=True)


def _resolve_report_dir(report_dir: Optional[Path], reports_dir: Optional[Path]) -> Path:
    if report_dir is not None:
        if not report_dir.exists():
            raise FileNotFoundError(f"Report directory not found: {report_dir}")
        return report_dir
    dirs = list_report_dirs(reports_dir)
    if not dirs:
        raise FileNotFoundError("No report directories found in reports directory")
    logger.info(f"Using most recent report: {dirs[0].name}")
    return dirs[0]


def parse_summary(
    report_dir: Optional[Path] = None,
    reports_dir: Optional[Path] = None,
) -> dict:
    """Load ``summary.json`` from a report directory (newest when not given)."""
    directory = _resolve_report_dir(report_dir, reports_dir)
    summary_path = directory / SUMMARY_JSON
    if not summary_path.exists():
        raise FileNotFoundError(f"Summary file not found: {summary_path}")
    return json.loads(summary_path.read_text(encoding="utf-8"))


def parse_fleet_records(
    report_dir: Optional[Path] = None,
    reports_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Load every successful ``fleet-*.json`` of one report into a DataFrame.

    Fleets that were still being written when a run was interrupted never
    appear, since each file is only moved into place once complete.
    """
    directory = _resolve_report_dir(report_dir, reports_dir)
    rows = []
    for path in sorted(directory.glob("fleet-*.json")):
        if path.name.endswith("-ERROR.json"):
            continue
        rows.append(json.loads(path.read_text(encoding="utf-8")))

    df = pd.DataFrame(rows)
    if "reportDate" in df.columns:
        df["reportDate"] = pd.to_datetime(df["reportDate"], errors="coerce")
    logger.info(f"Parsed {len(df)} fleet records from {directory.name}")
    return df


def get_budget_summary(df: pd.DataFrame) -> dict:
    """Summary statistics over a fleet-records DataFrame.

    Totals are re-derived from summed budget and spend, not from the per-fleet
    projections.
    """
    summary = {
        "total_fleets": len(df),
        "over_budget": 0,
        "under_budget": 0,
        "total_imr_goal": 0.0,
        "total_ytd_spend": 0.0,
    }
    if len(df) == 0:
        return summary

    if "isOverBudget" in df.columns:
        over = int(df["isOverBudget"].astype(bool).sum())
        summary["over_budget"] = over
        summary["under_budget"] = len(df) - over
    if "imrGoal" in df.columns:
        summary["total_imr_goal"] = float(df["imrGoal"].sum())
    if "ytdSpend" in df.columns:
        summary["total_ytd_spend"] = float(df["ytdSpend"].sum())
    return summary


def find_latest_fleet_record(
    fleet_id: str,
    reports_dir: Optional[Path] = None,
) -> Optional[ForecastRecord]:
    """Return the newest stored record for ``fleet_id`` across all report directories."""
    for directory in list_report_dirs(reports_dir):
        path = directory / fleet_file_name(fleet_id)
        if path.exists():
            return ForecastRecord.model_validate_json(path.read_text(encoding="utf-8"))
    return None
