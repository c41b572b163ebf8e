"""Dual-view extraction of one fleet's budget and year-to-date spend.

The dashboard shows the IMR goal only in its "Full Year" view and the
year-to-date spend only in its "Year to Date" view, so each fleet is read in
a fixed order on a single page:

    Init -> AuthCheck -> ExtractIdentity -> SelectFullYearView -> ExtractBudget
         -> SelectYearToDateView -> ExtractSpend -> Compute

Any failure is re-raised as an ``ExtractionError`` tagged with the phase it
happened in, and the page is closed on every path. The browser context is
owned by the caller through ``DashboardSession`` and is never closed here.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable, Optional

from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from fleet_budget_scraper import config
from fleet_budget_scraper.filters.fleet_hierarchy import get_fleet_by_id
from fleet_budget_scraper.forecast.engine import (
    ForecastRecord,
    build_forecast_record,
    compute_forecast,
)
from fleet_budget_scraper.forecast.fiscal_calendar import FiscalCalendar, now_in_report_tz
from fleet_budget_scraper.scraper import dashboard_dom, parse_utils, playwright_driver
from fleet_budget_scraper.scraper.errors import AuthError, ExtractionError, NetworkError
from fleet_budget_scraper.scraper.models import ExtractionPhase, RawExtractionResult
from fleet_budget_scraper.scraper.session_store import SessionStore

logger = logging.getLogger(__name__)


async def prompt_manual_login(url: str) -> None:
    """Block until the operator confirms the SSO login in the opened browser window."""
    print("\n" + "=" * 60)
    print("MANUAL LOGIN REQUIRED")
    print("=" * 60)
    print(f"\nA browser window has opened to: {url}")
    print("\n1. Complete the SSO authentication")
    print("2. Wait for the dashboard page to fully load")
    print("3. Press Enter in this terminal when ready")
    print("\nThe session will be saved for future runs.")
    print("=" * 60 + "\n")
    try:
        await asyncio.to_thread(input, "Press Enter once logged in... ")
    except EOFError as exc:
        raise AuthError("Manual login required but stdin is closed") from exc


@dataclass
class DashboardSession:
    """The shared, authenticated browser context plus everything bound to it."""

    context: BrowserContext
    store: SessionStore
    base_url: str = config.DASHBOARD_BASE_URL
    calendar: FiscalCalendar = field(default_factory=FiscalCalendar)
    settle_delay_ms: int = config.PERIOD_SETTLE_DELAY_MS
    login_prompt: Callable[[str], Awaitable[None]] = prompt_manual_login


@asynccontextmanager
async def open_dashboard_session(
    store: SessionStore,
    *,
    base_url: Optional[str] = None,
    headless: Optional[bool] = None,
    calendar: Optional[FiscalCalendar] = None,
) -> AsyncIterator[DashboardSession]:
    """Launch the persistent profile and yield a session bound to it."""
    async with playwright_driver.with_persistent_context(
        store.profile_dir, headless=headless
    ) as context:
        yield DashboardSession(
            context=context,
            store=store,
            base_url=base_url or config.DASHBOARD_BASE_URL,
            calendar=calendar or FiscalCalendar(),
        )


async def _close_page(page: Page, fleet_id: str) -> None:
    try:
        await page.close()
    except PlaywrightError as exc:
        logger.warning(f"Fleet {fleet_id}: page close failed: {exc}")
    else:
        logger.debug(f"Fleet {fleet_id}: page closed")


async def authenticate(session: DashboardSession, page: Page, url: str) -> None:
    """Run the session store policy against ``page``; failures surface as ``AuthError``."""

    async def login_check() -> bool:
        return await dashboard_dom.is_logged_in(page, url)

    async def manual_login() -> None:
        await session.login_prompt(url)
        await dashboard_dom.goto_usage(page, url)

    try:
        await session.store.ensure_authenticated(login_check, manual_login)
    except (AuthError, NetworkError):
        raise
    except Exception as exc:
        raise AuthError(f"Could not validate the dashboard session: {exc}") from exc


async def extract_fleet_data(
    session: DashboardSession,
    fleet_id: str,
    now: Optional[datetime] = None,
) -> RawExtractionResult:
    """Walk both period views for one fleet and return the raw text fields."""
    now = now or now_in_report_tz()
    phase = ExtractionPhase.INIT
    page: Optional[Page] = None
    try:
        page = await playwright_driver.new_page(session.context)
        url = dashboard_dom.build_usage_url(
            session.base_url, fleet_id, session.calendar.billing_period(now)
        )
        logger.info(f"Fleet {fleet_id}: navigating to {url}")
        await dashboard_dom.goto_usage(page, url)

        phase = ExtractionPhase.AUTH_CHECK
        await authenticate(session, page, url)

        phase = ExtractionPhase.EXTRACT_IDENTITY
        fleet_name = await dashboard_dom.read_field(page, "fleet_name", required=False)
        if not fleet_name:
            known = get_fleet_by_id(fleet_id)
            fleet_name = known.name if known else f"Fleet {fleet_id}"
            logger.warning(f"Fleet {fleet_id}: name element missing, using '{fleet_name}'")
        dashboard_fleet_id = parse_utils.parse_fleet_id(
            await dashboard_dom.read_field(page, "fleet_id", required=False)
        )
        if dashboard_fleet_id and dashboard_fleet_id != fleet_id:
            logger.warning(
                f"Fleet {fleet_id}: page reports fleet id {dashboard_fleet_id}"
            )
        logger.info(f"Fleet {fleet_id}: {fleet_name}")

        phase = ExtractionPhase.SELECT_FULL_YEAR_VIEW
        await dashboard_dom.select_period(page, config.FULL_YEAR_OPTION, session.settle_delay_ms)

        phase = ExtractionPhase.EXTRACT_BUDGET
        imr_goal_text = await dashboard_dom.read_field(page, "imr_goal")
        logger.info(f"Fleet {fleet_id}: IMR goal text {imr_goal_text!r}")

        phase = ExtractionPhase.SELECT_YEAR_TO_DATE_VIEW
        await dashboard_dom.select_period(
            page, config.YEAR_TO_DATE_OPTION, session.settle_delay_ms
        )

        phase = ExtractionPhase.EXTRACT_SPEND
        ytd_spend_text = await dashboard_dom.read_field(page, "ytd_spend")
        logger.info(f"Fleet {fleet_id}: YTD spend text {ytd_spend_text!r}")

        return RawExtractionResult(
            fleet_id=fleet_id,
            fleet_name=fleet_name,
            imr_goal_text=imr_goal_text,
            ytd_spend_text=ytd_spend_text,
            extracted_at=now,
            dashboard_fleet_id=dashboard_fleet_id,
        )
    except Exception as exc:
        raise ExtractionError.from_exception(fleet_id, phase, exc) from exc
    finally:
        if page is not None:
            await _close_page(page, fleet_id)


def _parse_amount(fleet_id: str, label: str, text: str) -> float:
    amount = parse_utils.try_parse_currency(text)
    if amount is None:
        if parse_utils.is_blank_amount(text):
            logger.warning(f"Fleet {fleet_id}: {label} is blank ({text!r}), using 0")
        else:
            logger.warning(f"Fleet {fleet_id}: could not parse {label} from {text!r}, using 0")
        return 0.0
    if amount < 0:
        logger.warning(f"Fleet {fleet_id}: {label} is negative ({text!r}), using 0")
        return 0.0
    if amount == 0:
        logger.warning(f"Fleet {fleet_id}: {label} is $0 ({text!r}) - verify this is correct")
    return amount


def build_record(
    raw: RawExtractionResult,
    calendar: FiscalCalendar,
    now: datetime,
) -> ForecastRecord:
    """Parse the raw texts and run the forecast for the reporting period at ``now``."""
    imr_goal = _parse_amount(raw.fleet_id, "IMR goal", raw.imr_goal_text)
    ytd_spend = _parse_amount(raw.fleet_id, "YTD spend", raw.ytd_spend_text)

    fiscal_year = calendar.reporting_fiscal_year(now)
    months_elapsed = calendar.reporting_months_elapsed(now)
    figures = compute_forecast(imr_goal, ytd_spend, months_elapsed)

    logger.info(
        f"Fleet {raw.fleet_id}: months elapsed {months_elapsed}/12, "
        f"burn rate ${figures.monthly_burn_rate:,.0f}/month, "
        f"projected EOY ${figures.projected_eoy:,.0f}, "
        f"variance ${figures.variance:,.0f} ({figures.variance_percent:.1f}%), "
        f"{'OVER' if figures.is_over_budget else 'UNDER'} budget"
    )
    return build_forecast_record(
        raw.fleet_id,
        raw.fleet_name,
        fiscal_year,
        figures,
        report_date=now.date(),
    )


async def extract_fleet_forecast(
    session: DashboardSession,
    fleet_id: str,
    now: Optional[datetime] = None,
) -> ForecastRecord:
    """Extract one fleet and turn it into a ``ForecastRecord``."""
    now = now or now_in_report_tz()
    raw = await extract_fleet_data(session, fleet_id, now)
    try:
        return build_record(raw, session.calendar, now)
    except Exception as exc:
        raise ExtractionError.from_exception(fleet_id, ExtractionPhase.COMPUTE, exc) from exc
