"""Sequential monthly report run across a list of fleets.

Fleets are processed one at a time on the shared browser session, one page
at a time. Each fleet's file is written as soon as that fleet finishes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from fleet_budget_scraper import config
from fleet_budget_scraper.forecast.engine import ForecastRecord
from fleet_budget_scraper.forecast.fiscal_calendar import now_in_report_tz
from fleet_budget_scraper.io import save_report
from fleet_budget_scraper.report_models import BatchReport, FleetResult
from fleet_budget_scraper.scraper.errors import ExtractionError
from fleet_budget_scraper.scraper.extractor import DashboardSession, extract_fleet_forecast

logger = logging.getLogger(__name__)

Extractor = Callable[[DashboardSession, str, datetime], Awaitable[ForecastRecord]]


async def run_fleet(
    session: DashboardSession,
    fleet_id: str,
    now: datetime,
    *,
    network_retries: int,
    retry_delay: float,
    extract: Extractor = extract_fleet_forecast,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FleetResult:
    """Extract one fleet, retrying network failures only, and never raise ExtractionError."""
    started = time.monotonic()
    attempt = 0
    while True:
        attempt += 1
        try:
            record = await extract(session, fleet_id, now)
        except ExtractionError as exc:
            if exc.is_network and attempt <= network_retries:
                logger.warning(f"Fleet {fleet_id}: {exc} - retrying ({attempt}/{network_retries})")
                await sleep(retry_delay)
                continue
            logger.error(str(exc))
            return FleetResult(
                fleet_id=fleet_id,
                error=exc.to_failure(),
                duration_seconds=time.monotonic() - started,
                attempts=attempt,
            )
        return FleetResult(
            fleet_id=fleet_id,
            record=record,
            duration_seconds=time.monotonic() - started,
            attempts=attempt,
        )


def _persist_result(result: FleetResult, output_dir: Path, now: datetime) -> Path:
    if result.record is not None:
        return save_report.save_fleet_record(result.record, output_dir)
    return save_report.save_fleet_failure(result.error, output_dir, now.date())


async def run_monthly_report(
    fleet_ids: Sequence[str],
    session: DashboardSession,
    *,
    now: Optional[datetime] = None,
    reports_dir: Optional[Path] = None,
    inter_fleet_delay: Optional[float] = None,
    network_retries: Optional[int] = None,
    extract: Extractor = extract_fleet_forecast,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BatchReport:
    """Extract every fleet in order and persist per-fleet files plus the summary."""
    now = now or now_in_report_tz()
    delay = config.INTER_FLEET_DELAY_SECONDS if inter_fleet_delay is None else inter_fleet_delay
    retries = config.NETWORK_RETRIES if network_retries is None else network_retries
    output_dir = save_report.report_dir(now.date(), reports_dir)

    logger.info(
        f"Monthly report {now.date().isoformat()} for "
        f"{session.calendar.report_period_label(now)}: {len(fleet_ids)} fleets, "
        f"writing to {output_dir}"
    )

    started = time.monotonic()
    results = []
    for idx, fleet_id in enumerate(fleet_ids, 1):
        logger.info(f"[{idx}/{len(fleet_ids)}] Processing fleet {fleet_id}")
        result = await run_fleet(
            session,
            fleet_id,
            now,
            network_retries=retries,
            retry_delay=delay,
            extract=extract,
            sleep=sleep,
        )
        path = _persist_result(result, output_dir, now)
        results.append(result)
        status = "SUCCESS" if result.success else "FAILED"
        logger.info(f"Fleet {fleet_id}: {status} ({result.duration_seconds:.1f}s), saved {path.name}")

        if idx < len(fleet_ids):
            await sleep(delay)

    report = BatchReport(
        report_date=now.date(),
        report_period=session.calendar.report_period_label(now),
        generated_at=now,
        total_duration_seconds=time.monotonic() - started,
        fleet_results=results,
    )
    save_report.save_summary(report, output_dir, report.summary())
    succeeded = len(report.records)
    logger.info(f"{succeeded} of {len(results)} fleets succeeded; summary saved to {output_dir}")
    return report
