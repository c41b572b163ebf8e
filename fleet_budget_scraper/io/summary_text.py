"""Plain-text rendering of a batch report."""

from __future__ import annotations

from typing import List, Optional

from fleet_budget_scraper.forecast.engine import ForecastRecord
from fleet_budget_scraper.report_models import BatchReport, BatchSummary

WIDTH = 70


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _status(is_over_budget: bool) -> str:
    return "OVER BUDGET" if is_over_budget else "UNDER BUDGET"


def format_record(record: ForecastRecord, heading: str) -> List[str]:
    return [
        heading,
        f"   IMR Goal:       {_money(record.imr_goal)}",
        f"   YTD Spend:      {_money(record.ytd_spend)} ({record.percent_complete:.1f}%)",
        f"   Projected EOY:  {_money(record.projected_eoy)}",
        f"   Variance:       {_money(record.variance)} ({record.variance_percent:.1f}%)",
        f"   Status:         {_status(record.is_over_budget)}",
        f"   Burn Rate:      ${record.monthly_burn_rate:,.0f}/month "
        f"({record.months_elapsed}/12 months)",
        "",
    ]


def format_summary(report: BatchReport, summary: Optional[BatchSummary] = None) -> str:
    summary = summary or report.summary()
    lines = [
        "=" * WIDTH,
        "MONTHLY FLEET BUDGET REPORT",
        "=" * WIDTH,
        "",
        f"Report Date:   {report.report_date.isoformat()}",
        f"Report Period: {report.report_period}",
        f"Generated:     {report.generated_at:%Y-%m-%d %H:%M:%S %Z}".rstrip(),
        "",
        f"{summary.successful} of {summary.total_fleets} fleets succeeded "
        f"({summary.failed} failed) in {report.total_duration_seconds:.1f}s",
        "",
    ]

    if report.records:
        lines += ["=" * WIDTH, "FLEET SUMMARY", "=" * WIDTH, ""]
        for idx, record in enumerate(report.records, 1):
            lines += format_record(record, f"{idx}. {record.fleet_name} ({record.fleet_id})")

    if summary.rollups:
        lines += ["-" * WIDTH, "ROLL-UPS", "-" * WIDTH, ""]
        for rollup in summary.rollups:
            lines += format_record(rollup, rollup.fleet_name)

    if summary.totals is not None:
        lines += ["-" * WIDTH, f"TOTALS (All {summary.successful} Fleets)", "-" * WIDTH]
        lines += format_record(summary.totals, summary.totals.fleet_name)

    if summary.needs_review:
        lines += [
            f"REVIEW: {len(summary.zero_value_fleets)} fleets reported a $0 budget or spend: "
            + ", ".join(summary.zero_value_fleets),
            "",
        ]

    if report.failures:
        lines += ["=" * WIDTH, "FAILED FLEETS", "=" * WIDTH, ""]
        for idx, failure in enumerate(report.failures, 1):
            lines += [
                f"{idx}. Fleet {failure.fleet_id}",
                f"   Phase: {failure.phase} ({failure.kind})",
                f"   Error: {failure.message}",
                "",
            ]

    lines += ["=" * WIDTH, "END OF REPORT", "=" * WIDTH]
    return "\n".join(lines) + "\n"
