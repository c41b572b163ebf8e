"""Tests for the dual-view fleet extraction against a fake dashboard."""

from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest

from fleet_budget_scraper.conftest import FakeContext, FleetPage, la_time
from fleet_budget_scraper.scraper import dashboard_dom
from fleet_budget_scraper.scraper.errors import AuthError, ExtractionError, ProtocolError
from fleet_budget_scraper.scraper.extractor import extract_fleet_data, extract_fleet_forecast
from fleet_budget_scraper.scraper.models import ExtractionPhase

FLEET = "8304669"


def _extract(session, fleet_id=FLEET, now=None):
    return asyncio.run(extract_fleet_forecast(session, fleet_id, now or la_time(2027, 1, 5)))


def test_build_usage_url():
    url = dashboard_dom.build_usage_url("https://dashboard.example.com", FLEET, "2026-10-01")
    parsed = urlparse(url)

    assert parsed.path == "/usage"
    assert parse_qs(parsed.query) == {
        "fleetId": [FLEET],
        "billingPeriod": ["2026-10-01"],
        "activeTab": ["usage-imr-goal"],
    }


def test_full_year_extraction(make_session):
    """January run: December's twelve months of the prior fiscal year."""
    context = FakeContext({FLEET: FleetPage()})
    record = _extract(make_session(context))

    assert record.fleet_id == FLEET
    assert record.fleet_name == "(F6) Planning Automation And Optimization"
    assert record.fiscal_year == 2026
    assert record.imr_goal == 2_360_000.0
    assert record.ytd_spend == 150_900.0
    assert record.months_elapsed == 12
    assert record.projected_eoy == 150_900.0
    assert record.variance == -2_209_100.0
    assert record.variance_percent == pytest.approx(-93.6, abs=0.01)
    assert record.is_over_budget is False
    assert record.report_date.isoformat() == "2027-01-05"


def test_views_are_selected_in_order_on_one_page(make_session):
    context = FakeContext({FLEET: FleetPage()})
    _extract(make_session(context))

    page = context.pages[0]
    assert len(context.pages) == 1
    assert page.clicks == ["Full Year", "Year to Date"]
    assert page.closed
    assert "billingPeriod=2027-01-01" in page.urls[0]


def test_collapsed_period_menu(make_session):
    context = FakeContext({FLEET: FleetPage(collapsed=True)})
    raw = asyncio.run(extract_fleet_data(make_session(context), FLEET, la_time(2026, 10, 6)))

    assert raw.imr_goal_text == "$2.36MM"
    assert raw.ytd_spend_text == "$150.9K"
    assert raw.dashboard_fleet_id == FLEET


def test_missing_full_year_option_fails_in_select_phase(make_session):
    context = FakeContext({FLEET: FleetPage(periods=("Month", "Year to Date"))})

    with pytest.raises(ExtractionError) as excinfo:
        _extract(make_session(context))

    err = excinfo.value
    assert err.phase == ExtractionPhase.SELECT_FULL_YEAR_VIEW
    assert err.kind == "protocol"
    assert isinstance(err.cause, ProtocolError)
    assert "Available options" in err.message
    assert context.pages[0].closed


def test_empty_amount_reads_as_zero_with_warning(make_session, caplog):
    """An element that renders no text is a blank amount, not a missing element."""
    context = FakeContext({FLEET: FleetPage(imr_goal="", ytd_spend="   ")})

    with caplog.at_level("WARNING"):
        record = _extract(make_session(context))

    assert record.imr_goal == 0.0
    assert record.ytd_spend == 0.0
    assert "IMR goal is blank" in caplog.text
    assert "YTD spend is blank" in caplog.text
    assert context.pages[0].closed


def test_negative_amount_clamped_to_zero(make_session, caplog):
    context = FakeContext({FLEET: FleetPage(ytd_spend="-$1.2K")})

    with caplog.at_level("WARNING"):
        record = _extract(make_session(context))

    assert record.ytd_spend == 0.0
    assert record.imr_goal == 2_360_000.0
    assert "YTD spend is negative" in caplog.text


def test_collapsed_selector_already_showing_option():
    """The collapsed button label is the current view; selecting it again must use the menu."""
    context = FakeContext({FLEET: FleetPage(collapsed=True)})

    async def select_twice():
        page = await context.new_page()
        url = dashboard_dom.build_usage_url("https://dashboard.example.com", FLEET, "2026-10-01")
        await page.goto(url)
        await dashboard_dom.select_period(page, "Full Year", 0)
        await dashboard_dom.select_period(page, "Full Year", 0)
        return page

    page = asyncio.run(select_twice())

    assert page.view == "Full Year"
    assert page.menu_open is False
    assert page.clicks == ["Month", "Full Year", "Full Year", "Full Year"]


def test_navigation_failure_is_network_error(make_session):
    context = FakeContext({FLEET: FleetPage(goto_failures=1)})

    with pytest.raises(ExtractionError) as excinfo:
        _extract(make_session(context))

    assert excinfo.value.phase == ExtractionPhase.INIT
    assert excinfo.value.is_network
    assert context.pages[0].closed


def test_blank_amount_becomes_zero(make_session):
    context = FakeContext({FLEET: FleetPage(imr_goal="--")})
    record = _extract(make_session(context))

    assert record.imr_goal == 0.0
    assert record.variance_percent == 0.0


def test_fleet_name_falls_back_to_hierarchy_then_id(make_session):
    context = FakeContext(
        {
            "8305082": FleetPage(fleet_name=None),
            "42": FleetPage(fleet_name=None),
        }
    )
    session = make_session(context)

    assert _extract(session, "8305082").fleet_name == (
        "(F7) Capacity Plan Automation and Optimization"
    )
    assert _extract(session, "42").fleet_name == "Fleet 42"


def test_logged_out_session_prompts_once(make_session):
    context = FakeContext({FLEET: FleetPage(), "8305082": FleetPage()}, logged_in=False)
    session = make_session(context)

    _extract(session, FLEET)
    _extract(session, "8305082")

    assert len(session.login_prompt.calls) == 1
    assert session.store.is_fresh()


def test_failed_login_is_auth_error(make_session):
    context = FakeContext({FLEET: FleetPage()}, logged_in=False)
    session = make_session(context)

    async def no_login(url: str) -> None:
        raise AuthError("Manual login required but stdin is closed")

    session.login_prompt = no_login

    with pytest.raises(ExtractionError) as excinfo:
        _extract(session)

    assert excinfo.value.phase == ExtractionPhase.AUTH_CHECK
    assert excinfo.value.kind == "auth"
    assert session.store.last_validated_at() is None
