"""DOM-level protocol for the fleet usage dashboard."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode, urljoin

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from fleet_budget_scraper import config
from fleet_budget_scraper.scraper import parse_utils
from fleet_budget_scraper.scraper.errors import NetworkError, ProtocolError

logger = logging.getLogger(__name__)


def build_usage_url(base_url: str, fleet_id: str, billing_period: str) -> str:
    """Build ``{base}/usage?fleetId=..&billingPeriod=YYYY-MM-01&activeTab=usage-imr-goal``."""
    query = urlencode(
        {
            "fleetId": fleet_id,
            "billingPeriod": billing_period,
            "activeTab": config.USAGE_ACTIVE_TAB,
        }
    )
    return f"{urljoin(base_url, config.USAGE_PATH)}?{query}"


async def goto_usage(page: Page, url: str) -> None:
    """Navigate to a usage page and give client-side rendering time to finish."""
    try:
        await page.goto(url, wait_until="networkidle")
    except PlaywrightError as exc:
        raise NetworkError(f"Navigation to {url} failed: {exc}") from exc
    await page.wait_for_timeout(config.POST_NAVIGATION_WAIT_MS)


async def is_logged_in(page: Page, url: str) -> bool:
    """Probe for dashboard-only markers, then for login-form markers."""
    await goto_usage(page, url)

    for selector in config.LOGGED_IN_MARKERS:
        if await page.locator(selector).count() > 0:
            logger.info(f"Logged in - found dashboard element: {selector}")
            return True

    for selector in config.LOGIN_FORM_MARKERS:
        if await page.locator(selector).count() > 0:
            logger.warning(f"Not logged in - found login form element: {selector}")
            return False

    logger.warning("No dashboard elements or login forms found - assuming not logged in")
    return False


async def _visible_texts(page: Page, selector: str) -> List[str]:
    locator = page.locator(selector)
    texts = []
    for idx in range(await locator.count()):
        texts.append(parse_utils.clean_text(await locator.nth(idx).text_content()) or "")
    return texts


async def _click_exact(page: Page, selector: str, option_text: str) -> bool:
    locator = page.locator(selector)
    for idx in range(await locator.count()):
        candidate = locator.nth(idx)
        if parse_utils.clean_text(await candidate.text_content()) == option_text:
            await candidate.click()
            return True
    return False


async def select_period(
    page: Page,
    option_text: str,
    settle_delay_ms: Optional[int] = None,
) -> None:
    """Switch the period view to ``option_text`` and wait for the data to reload.

    The view changes through a client-side fetch with no URL change, so a
    fixed delay is the only readiness signal.
    """
    buttons = page.locator(config.PERIOD_SELECTOR_SEL)
    if await buttons.count() == 0:
        raise ProtocolError("No period selector buttons found")

    # A single button is the collapsed selector showing the current view, not an option.
    clicked = False
    if await buttons.count() > 1:
        clicked = await _click_exact(page, config.PERIOD_SELECTOR_SEL, option_text)
    if not clicked:
        # Collapsed selector: open the menu, then look for the option inside it.
        await buttons.first.click()
        await page.wait_for_timeout(config.DROPDOWN_OPEN_WAIT_MS)
        clicked = await _click_exact(page, config.PERIOD_OPTION_SEL, option_text)

    if not clicked:
        available = await _visible_texts(page, config.PERIOD_SELECTOR_SEL)
        available += await _visible_texts(page, config.PERIOD_OPTION_SEL)
        raise ProtocolError(
            f'Period option "{option_text}" not found. Available options: {available}'
        )

    await page.wait_for_timeout(
        config.PERIOD_SETTLE_DELAY_MS if settle_delay_ms is None else settle_delay_ms
    )
    logger.info(f'Selected "{option_text}" period')


async def read_field(page: Page, name: str, required: bool = True) -> Optional[str]:
    """Read a named dashboard value through the ``config.DASHBOARD_FIELDS`` table.

    Only a missing element is an error; an element with no text reads as ``""``
    for required fields so the amount parser can treat it as a blank value.
    """
    field = config.DASHBOARD_FIELDS[name]
    locator = page.locator(field.selector)
    count = await locator.count()
    if count <= field.index:
        message = (
            f"Expected at least {field.index + 1} '{field.selector}' elements "
            f"for {name}, found {count}"
        )
        if required:
            raise ProtocolError(message)
        logger.warning(message)
        return None

    text = parse_utils.clean_text(await locator.nth(field.index).text_content())
    if text is None and required:
        logger.warning(f"{name} element '{field.selector}' is empty")
        return ""
    return text
