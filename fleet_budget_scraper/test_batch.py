"""Tests for the sequential monthly report run."""

from __future__ import annotations

import asyncio
import json

from fleet_budget_scraper.batch import run_fleet, run_monthly_report
from fleet_budget_scraper.conftest import FakeContext, FleetPage
from fleet_budget_scraper.io import save_report

FLEETS = ["8304669", "8305082", "8304674"]


class Sleeps:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _run(session, fleet_ids, report_now, tmp_path, sleep, **kwargs):
    return asyncio.run(
        run_monthly_report(
            fleet_ids,
            session,
            now=report_now,
            reports_dir=tmp_path / "reports",
            inter_fleet_delay=2,
            sleep=sleep,
            **kwargs,
        )
    )


def test_one_failure_does_not_stop_the_batch(make_session, report_now, tmp_path):
    context = FakeContext(
        {
            "8304669": FleetPage(),
            "8305082": FleetPage(periods=("Month",)),
            "8304674": FleetPage(imr_goal="$623.7K", ytd_spend="$400.0K"),
        }
    )
    sleeps = Sleeps()

    report = _run(make_session(context), FLEETS, report_now, tmp_path, sleeps)

    assert [r.fleet_id for r in report.fleet_results] == FLEETS
    assert [r.success for r in report.fleet_results] == [True, False, True]
    assert report.has_failures
    assert report.failures[0].phase == "SelectFullYearView"
    assert report.failures[0].kind == "protocol"
    assert report.report_period == "September 2026"
    assert all(page.closed for page in context.pages)


def test_delay_between_fleets_but_not_after_last(make_session, report_now, tmp_path):
    sleeps = Sleeps()
    _run(make_session(FakeContext()), FLEETS, report_now, tmp_path, sleeps)

    assert sleeps.calls == [2, 2]


def test_files_written_per_fleet_and_summary(make_session, report_now, tmp_path):
    context = FakeContext({"8305082": FleetPage(periods=("Month",))})
    _run(make_session(context), FLEETS, report_now, tmp_path, Sleeps())

    out = tmp_path / "reports" / "2026-10-06"
    names = sorted(p.name for p in out.iterdir())
    assert names == [
        "fleet-8304669.json",
        "fleet-8304674.json",
        "fleet-8305082-ERROR.json",
        save_report.FLEETS_CSV,
        save_report.SUMMARY_TEXT,
        save_report.SUMMARY_JSON,
    ]

    summary = json.loads((out / save_report.SUMMARY_JSON).read_text(encoding="utf-8"))
    assert summary["totalFleets"] == 3
    assert summary["successful"] == 2
    assert summary["failed"] == 1
    assert summary["totals"]["fleetId"] == "ALL"
    assert summary["totals"]["imrGoal"] == 2 * 2_360_000.0

    error = json.loads((out / "fleet-8305082-ERROR.json").read_text(encoding="utf-8"))
    assert error["success"] is False
    assert error["phase"] == "SelectFullYearView"

    text = (out / save_report.SUMMARY_TEXT).read_text(encoding="utf-8")
    assert "2 of 3 fleets succeeded" in text
    assert "Fleet 8305082" in text


def test_network_failure_retried_once(make_session, report_now):
    context = FakeContext({"8304669": FleetPage(goto_failures=1)})
    sleeps = Sleeps()

    result = asyncio.run(
        run_fleet(
            make_session(context),
            "8304669",
            report_now,
            network_retries=1,
            retry_delay=5,
            sleep=sleeps,
        )
    )

    assert result.success
    assert result.attempts == 2
    assert sleeps.calls == [5]


def test_network_failure_gives_up_after_retries(make_session, report_now):
    context = FakeContext({"8304669": FleetPage(goto_failures=2)})

    result = asyncio.run(
        run_fleet(
            make_session(context),
            "8304669",
            report_now,
            network_retries=1,
            retry_delay=0,
            sleep=Sleeps(),
        )
    )

    assert not result.success
    assert result.attempts == 2
    assert result.error.kind == "network"


def test_protocol_failure_not_retried(make_session, report_now):
    context = FakeContext({"8304669": FleetPage(periods=("Month",))})

    result = asyncio.run(
        run_fleet(
            make_session(context),
            "8304669",
            report_now,
            network_retries=3,
            retry_delay=0,
            sleep=Sleeps(),
        )
    )

    assert result.attempts == 1
    assert len(context.pages) == 1


def test_rollup_for_parent_and_children(make_session, report_now, tmp_path):
    report = _run(make_session(FakeContext()), FLEETS, report_now, tmp_path, Sleeps())
    summary = report.summary()

    assert len(summary.rollups) == 1
    rollup = summary.rollups[0]
    assert rollup.fleet_id == "8304669"
    assert rollup.imr_goal == 3 * 2_360_000.0
    assert summary.totals.fleet_name == "All 3 fleets"
    assert summary.needs_review is False


def test_zero_value_review_warned_once(make_session, report_now, tmp_path, caplog):
    context = FakeContext(
        {
            "8304669": FleetPage(imr_goal="$0"),
            "8305082": FleetPage(ytd_spend="$0"),
        }
    )

    with caplog.at_level("WARNING", logger="fleet_budget_scraper.report_models"):
        report = _run(make_session(context), FLEETS[:2], report_now, tmp_path, Sleeps())

    review_warnings = [
        r for r in caplog.records if "reported a $0 budget or spend" in r.getMessage()
    ]
    assert len(review_warnings) == 1

    text = (tmp_path / "reports" / "2026-10-06" / save_report.SUMMARY_TEXT).read_text(
        encoding="utf-8"
    )
    assert "REVIEW: 2 fleets" in text
    assert not report.has_failures
