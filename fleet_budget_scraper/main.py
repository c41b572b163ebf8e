"""CLI orchestrator for the fleet budget dashboard scraper.

Exit status: 0 when every fleet succeeded, 1 when at least one fleet failed
(successful fleets are still written), 2 when the run could not proceed at
all (bad configuration, browser launch failure, no fleets).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from playwright.async_api import Error as PlaywrightError

PROJECT_ROOT = Path(__file__).resolve().parent
PARENT_ROOT = PROJECT_ROOT.parent

if str(PARENT_ROOT) not in sys.path:
    sys.path.insert(0, str(PARENT_ROOT))

from fleet_budget_scraper import batch, config  # noqa: E402
from fleet_budget_scraper.forecast.fiscal_calendar import FiscalCalendar  # noqa: E402
from fleet_budget_scraper.io import parse_output, save_report  # noqa: E402
from fleet_budget_scraper.scraper import dashboard_probe, extractor  # noqa: E402
from fleet_budget_scraper.scraper.errors import ExtractionError  # noqa: E402
from fleet_budget_scraper.scraper.session_store import SessionStore  # noqa: E402

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FLEET_FAILURES = 1
EXIT_RUN_FAILED = 2

MODES = ("report", "fleet", "probe", "parse", "reset-session")


async def run_report_mode(args: argparse.Namespace, store: SessionStore) -> int:
    fleet_ids: List[str] = args.fleet_ids or config.FLEET_IDS
    if not fleet_ids:
        logger.error("No fleet ids configured (set FLEET_IDS or pass --fleet-ids)")
        return EXIT_RUN_FAILED

    async with extractor.open_dashboard_session(
        store, base_url=args.base_url, headless=args.headless, calendar=FiscalCalendar()
    ) as session:
        report = await batch.run_monthly_report(
            fleet_ids, session, reports_dir=args.reports_dir
        )

    output_dir = save_report.report_dir(report.report_date, args.reports_dir)
    print((output_dir / save_report.SUMMARY_TEXT).read_text(encoding="utf-8"))
    print(f"Report saved to: {output_dir}")
    return EXIT_FLEET_FAILURES if report.has_failures else EXIT_OK


async def run_fleet_mode(args: argparse.Namespace, store: SessionStore) -> int:
    if not args.fleet_id:
        logger.error("--fleet-id is required in fleet mode")
        return EXIT_RUN_FAILED

    async with extractor.open_dashboard_session(
        store, base_url=args.base_url, headless=args.headless
    ) as session:
        try:
            record = await extractor.extract_fleet_forecast(session, args.fleet_id)
        except ExtractionError as exc:
            logger.error(str(exc))
            return EXIT_FLEET_FAILURES

    print(json.dumps(record.to_json_dict(), indent=2))
    return EXIT_OK


async def run_probe_mode(args: argparse.Namespace, store: SessionStore) -> int:
    fleet_id = args.fleet_id or (config.FLEET_IDS[0] if config.FLEET_IDS else None)
    if not fleet_id:
        logger.error("--fleet-id is required in probe mode")
        return EXIT_RUN_FAILED

    async with extractor.open_dashboard_session(
        store, base_url=args.base_url, headless=args.headless
    ) as session:
        result = await dashboard_probe.probe_fleet_page(session, fleet_id)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return EXIT_OK


def run_parse_mode(args: argparse.Namespace) -> int:
    """Print a summary of the most recent stored report."""
    print("=" * 60)
    print("Stored Reports")
    print("=" * 60)

    report_dirs = parse_output.list_report_dirs(args.reports_dir)
    if not report_dirs:
        print("  No reports found")
        return EXIT_RUN_FAILED

    print(f"Found {len(report_dirs)} report(s)")
    for i, directory in enumerate(report_dirs[:5], 1):
        print(f"  {i}. {directory.name}")

    try:
        summary = parse_output.parse_summary(report_dirs[0])
    except FileNotFoundError:
        # Interrupted run: the per-fleet files are complete, the summary was never written.
        logger.warning(f"{report_dirs[0].name} has no summary, reading fleet files only")
        summary = {}
    df = parse_output.parse_fleet_records(report_dirs[0])
    stats = parse_output.get_budget_summary(df)

    print(f"\nMost recent: {report_dirs[0].name} ({summary.get('reportPeriod', '')})")
    succeeded = summary.get("successful", stats["total_fleets"])
    total = summary.get("totalFleets", stats["total_fleets"])
    print(f"  Fleets: {succeeded}/{total} succeeded")
    print(f"  Under budget: {stats['under_budget']}")
    print(f"  Over budget: {stats['over_budget']}")
    print(f"  Total IMR goal: ${stats['total_imr_goal']:,.2f}")
    print(f"  Total YTD spend: ${stats['total_ytd_spend']:,.2f}")
    totals = summary.get("totals")
    if totals:
        print(f"  Total projected EOY: ${totals['projectedEOY']:,.2f}")
    return EXIT_OK


def run_reset_session_mode(store: SessionStore) -> int:
    if store.invalidate():
        print(f"Session validation cleared: {store.timestamp_path}")
    else:
        print("No saved session validation to clear")
    return EXIT_OK


async def main_async(args: argparse.Namespace) -> int:
    if args.mode not in MODES:
        raise SystemExit(f"Unsupported mode: {args.mode}")

    store = SessionStore(args.session_dir or config.SESSION_DIR)

    if args.mode == "parse":
        return run_parse_mode(args)

    if args.mode == "reset-session":
        return run_reset_session_mode(store)

    try:
        config.validate()
    except config.ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return EXIT_RUN_FAILED

    try:
        if args.mode == "report":
            return await run_report_mode(args, store)
        if args.mode == "fleet":
            return await run_fleet_mode(args, store)
        return await run_probe_mode(args, store)
    except PlaywrightError as exc:
        logger.error(f"Browser session failed: {exc}")
        return EXIT_RUN_FAILED


def _split_ids(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="report",
        help="Scraper mode to run.",
    )
    parser.add_argument("--fleet-ids", type=_split_ids, help="Comma-separated fleet ids.")
    parser.add_argument("--fleet-id", help="Single fleet id for fleet/probe modes.")
    parser.add_argument("--base-url", help="Dashboard base URL.")
    parser.add_argument("--session-dir", type=Path, help="Persistent browser session directory.")
    parser.add_argument("--reports-dir", type=Path, help="Root directory for report output.")
    headless = parser.add_mutually_exclusive_group()
    headless.add_argument("--headless", dest="headless", action="store_true", default=None)
    headless.add_argument("--headed", dest="headless", action="store_false")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
