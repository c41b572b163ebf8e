"""Utilities for launching and interacting with Playwright browsers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import BrowserContext, Page, async_playwright

from fleet_budget_scraper import config


@asynccontextmanager
async def with_persistent_context(
    profile_dir: Path,
    *,
    headless: Optional[bool] = None,
    user_agent: str | None = None,
    locale: str | None = None,
    timezone_id: str | None = None,
    viewport: dict | None = None,
) -> AsyncIterator[BrowserContext]:
    """Launch Chromium on a persistent profile so SSO cookies survive between runs."""
    profile_dir.mkdir(parents=True, exist_ok=True)
    async with async_playwright() as p:
        context = await p.chromium.launch_persistent_context(
            str(profile_dir),
            headless=config.PLAYWRIGHT_HEADLESS if headless is None else headless,
            args=config.PLAYWRIGHT_ARGS,
            user_agent=user_agent or config.PLAYWRIGHT_USER_AGENT,
            locale=locale or config.PLAYWRIGHT_LOCALE,
            timezone_id=timezone_id or config.REPORT_TIMEZONE,
            viewport=viewport or config.PLAYWRIGHT_VIEWPORT,
        )
        try:
            yield context
        finally:
            await context.close()


async def new_page(
    context: BrowserContext,
    *,
    timeout_ms: int | None = None,
    navigation_timeout_ms: int | None = None,
) -> Page:
    """Open a new page with project timeouts applied."""
    page = await context.new_page()
    page.set_default_timeout(timeout_ms or config.PAGE_TIMEOUT_MS)
    page.set_default_navigation_timeout(navigation_timeout_ms or config.NAVIGATION_TIMEOUT_MS)
    return page
