"""
Fleet Budget Scraper - monthly IMR budget forecasts from the usage dashboard

For every configured fleet it reads the annual IMR goal ("Full Year" view)
and the year-to-date spend ("Year to Date" view) through a persistent,
SSO-authenticated browser session, then projects year-end spend and the
budget variance.

Usage:
    from fleet_budget_scraper import SessionStore, open_dashboard_session, run_monthly_report

    async with open_dashboard_session(SessionStore(session_dir)) as session:
        report = await run_monthly_report(["8304669", "8305082"], session)

CLI Usage:
    python -m fleet_budget_scraper.main --mode report
"""

__version__ = "0.1.0"

from fleet_budget_scraper.batch import run_fleet, run_monthly_report
from fleet_budget_scraper.forecast.engine import (
    ForecastRecord,
    aggregate,
    compute_forecast,
)
from fleet_budget_scraper.forecast.fiscal_calendar import FiscalCalendar
from fleet_budget_scraper.report_models import BatchReport, FleetResult
from fleet_budget_scraper.scraper.errors import ExtractionError
from fleet_budget_scraper.scraper.extractor import (
    DashboardSession,
    extract_fleet_data,
    extract_fleet_forecast,
    open_dashboard_session,
)
from fleet_budget_scraper.scraper.session_store import SessionStore

__all__ = [
    # Batch
    "run_fleet",
    "run_monthly_report",
    "BatchReport",
    "FleetResult",
    # Forecasting
    "ForecastRecord",
    "FiscalCalendar",
    "aggregate",
    "compute_forecast",
    # Extraction
    "DashboardSession",
    "ExtractionError",
    "SessionStore",
    "extract_fleet_data",
    "extract_fleet_forecast",
    "open_dashboard_session",
]
