"""In-memory stand-ins for the Playwright objects the dashboard protocol touches."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import pytest
import pytz
from playwright.async_api import Error as PlaywrightError

PROJECT_ROOT = Path(__file__).resolve().parent
PARENT_ROOT = PROJECT_ROOT.parent
if str(PARENT_ROOT) not in sys.path:
    sys.path.insert(0, str(PARENT_ROOT))

from fleet_budget_scraper import config  # noqa: E402
from fleet_budget_scraper.forecast.fiscal_calendar import FiscalCalendar  # noqa: E402
from fleet_budget_scraper.scraper.extractor import DashboardSession  # noqa: E402
from fleet_budget_scraper.scraper.session_store import SessionStore  # noqa: E402

LA = pytz.timezone("America/Los_Angeles")


def la_time(year: int, month: int, day: int, hour: int = 9) -> datetime:
    return LA.localize(datetime(year, month, day, hour, 0))


@dataclass
class FleetPage:
    """What the dashboard renders for one fleet."""

    fleet_name: Optional[str] = "(F6) Planning Automation And Optimization"
    fleet_id_text: Optional[str] = None
    imr_goal: str = "$2.36MM"
    ytd_spend: str = "$150.9K"
    periods: tuple = ("Month", "Full Year", "Year to Date")
    collapsed: bool = False
    goto_failures: int = 0


class FakeElement:
    def __init__(self, page: "FakePage", text: Optional[str], on_click=None):
        self.page = page
        self.text = text
        self.on_click = on_click

    async def text_content(self) -> Optional[str]:
        return self.text

    async def click(self) -> None:
        self.page.clicks.append(self.text)
        if self.on_click is not None:
            self.on_click()


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    def _elements(self) -> List[FakeElement]:
        return self.page.elements(self.selector)

    async def count(self) -> int:
        return len(self._elements())

    def nth(self, index: int) -> FakeElement:
        return self._elements()[index]

    @property
    def first(self) -> FakeElement:
        return self.nth(0)


class FakePage:
    """Renders a fleet's values for whichever period view is active."""

    def __init__(self, context: "FakeContext"):
        self.context = context
        self.data: Optional[FleetPage] = None
        self.view = "Month"
        self.menu_open = False
        self.urls: List[str] = []
        self.clicks: List[Optional[str]] = []
        self.waits: List[int] = []
        self.closed = False
        self.default_timeout = None
        self.default_navigation_timeout = None

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.default_navigation_timeout = timeout

    async def goto(self, url: str, wait_until: Optional[str] = None) -> None:
        self.urls.append(url)
        fleet_id = parse_qs(urlparse(url).query)["fleetId"][0]
        data = self.context.fleets.setdefault(fleet_id, FleetPage())
        if data.goto_failures > 0:
            data.goto_failures -= 1
            raise PlaywrightError(f"Timeout 60000ms exceeded navigating to {url}")
        if data.fleet_id_text is None:
            data.fleet_id_text = f"Fleet ID: {fleet_id}"
        self.data = data
        self.view = "Month"
        self.menu_open = False

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    async def close(self) -> None:
        self.closed = True

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def _set_view(self, view: str) -> None:
        self.view = view
        self.menu_open = False

    def _open_menu(self) -> None:
        self.menu_open = True

    def elements(self, selector: str) -> List[FakeElement]:
        if self.data is None:
            return []
        if not self.context.logged_in:
            if selector == 'input[type="password"]':
                return [FakeElement(self, "")]
            return []

        data = self.data
        if selector == config.PERIOD_SELECTOR_SEL:
            if data.collapsed:
                return [FakeElement(self, self.view, on_click=self._open_menu)]
            return [
                FakeElement(self, period, on_click=lambda p=period: self._set_view(p))
                for period in data.periods
            ]
        if selector == config.PERIOD_OPTION_SEL:
            if not self.menu_open:
                return []
            return [
                FakeElement(self, period, on_click=lambda p=period: self._set_view(p))
                for period in data.periods
            ]
        if selector == "strong":
            return [FakeElement(self, data.fleet_name)] if data.fleet_name else []
        if selector == config.DASHBOARD_FIELDS["fleet_id"].selector:
            return [FakeElement(self, data.fleet_id_text)]
        if selector == ".awsui-key-children":
            goal = data.imr_goal if self.view == "Full Year" else "$0.00"
            return [FakeElement(self, "IMR Goal"), FakeElement(self, goal)]
        if selector == ".mus-cell-right-aligned":
            spend = data.ytd_spend if self.view == "Year to Date" else "$999.0K"
            return [FakeElement(self, "Total"), FakeElement(self, spend)]
        return []


class FakeContext:
    def __init__(self, fleets: Optional[Dict[str, FleetPage]] = None, logged_in: bool = True):
        self.fleets: Dict[str, FleetPage] = fleets if fleets is not None else {}
        self.logged_in = logged_in
        self.pages: List[FakePage] = []

    async def new_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        return page


@dataclass
class LoginPrompt:
    """Manual-login stand-in that "logs in" the fake browser when awaited."""

    context: FakeContext
    calls: List[str] = field(default_factory=list)

    async def __call__(self, url: str) -> None:
        self.calls.append(url)
        self.context.logged_in = True


@pytest.fixture
def report_now() -> datetime:
    return la_time(2026, 10, 6)


@pytest.fixture
def make_session(tmp_path, report_now):
    """Build a ``DashboardSession`` around a ``FakeContext``."""

    def _make(context: FakeContext, clock_time: Optional[datetime] = None) -> DashboardSession:
        now = clock_time or report_now
        store = SessionStore(tmp_path / "session", clock=lambda: now)
        return DashboardSession(
            context=context,
            store=store,
            base_url="https://dashboard.example.com",
            calendar=FiscalCalendar(start_month=1),
            settle_delay_ms=0,
            login_prompt=LoginPrompt(context),
        )

    return _make
