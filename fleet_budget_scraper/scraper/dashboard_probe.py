"""Report what the configured selectors match on a live fleet page.

Used to diagnose markup drift on the dashboard: for every named field it
records how many elements matched and the text at the configured index, in
both period views.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional

from playwright.async_api import Page

from fleet_budget_scraper import config
from fleet_budget_scraper.forecast.fiscal_calendar import now_in_report_tz
from fleet_budget_scraper.scraper import dashboard_dom, parse_utils, playwright_driver
from fleet_budget_scraper.scraper.errors import ProtocolError
from fleet_budget_scraper.scraper.extractor import DashboardSession, authenticate

logger = logging.getLogger(__name__)


async def probe_fields(page: Page) -> Dict[str, dict]:
    """Count matches and read the indexed text for every configured field."""
    report: Dict[str, dict] = {}
    for name, field in config.DASHBOARD_FIELDS.items():
        locator = page.locator(field.selector)
        report[name] = {
            "selector": field.selector,
            "index": field.index,
            "count": await locator.count(),
            "text": await parse_utils.locator_text(locator, field.index),
        }
    return report


async def probe_period_options(page: Page) -> list[str]:
    locator = page.locator(config.PERIOD_SELECTOR_SEL)
    options = []
    for idx in range(await locator.count()):
        options.append(await parse_utils.locator_text(locator, idx) or "")
    return options


async def probe_fleet_page(
    session: DashboardSession,
    fleet_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, object]:
    """Open one fleet page, authenticate, and probe both period views."""
    now = now or now_in_report_tz()
    url = dashboard_dom.build_usage_url(
        session.base_url, fleet_id, session.calendar.billing_period(now)
    )
    page = await playwright_driver.new_page(session.context)
    try:
        await dashboard_dom.goto_usage(page, url)
        await authenticate(session, page, url)

        result: Dict[str, object] = {
            "url": url,
            "period_options": await probe_period_options(page),
            "views": {},
        }
        for view in (config.FULL_YEAR_OPTION, config.YEAR_TO_DATE_OPTION):
            try:
                await dashboard_dom.select_period(page, view, session.settle_delay_ms)
            except ProtocolError as exc:
                logger.warning(f"Probe could not select {view!r}: {exc}")
                result["views"][view] = {"error": str(exc)}
                continue
            result["views"][view] = await probe_fields(page)
        return result
    finally:
        await page.close()
