"""Fiscal-period arithmetic driven by an explicit "now" and one start-month setting.

Reports run early in month N describe month N-1, so "elapsed" months are
counted up to the end of the previous calendar month. A run in the first
month of a fiscal year therefore reports a full twelve months of the prior
fiscal year.

The fiscal year is labelled by the calendar year in which it starts. With the
default start month (January) that is simply the calendar year.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

import pytz
from dateutil.relativedelta import relativedelta

from fleet_budget_scraper import config

DateLike = Union[date, datetime]


def now_in_report_tz(tz_name: Optional[str] = None) -> datetime:
    """Current instant in the reporting timezone (the only wall-clock read)."""
    return datetime.now(pytz.timezone(tz_name or config.REPORT_TIMEZONE))


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(frozen=True)
class FiscalCalendar:
    start_month: int = config.FISCAL_YEAR_START_MONTH

    def __post_init__(self) -> None:
        if not 1 <= self.start_month <= 12:
            raise ValueError(f"start_month must be within 1..12, got {self.start_month}")

    def fiscal_year_of(self, now: DateLike) -> int:
        day = _as_date(now)
        if self.start_month == 1 or day.month >= self.start_month:
            return day.year
        return day.year - 1

    def fiscal_year_start(self, fiscal_year: int) -> date:
        return date(fiscal_year, self.start_month, 1)

    def fiscal_year_end(self, fiscal_year: int) -> date:
        return self.fiscal_year_start(fiscal_year) + relativedelta(years=1, days=-1)

    def days_in_fiscal_year(self, fiscal_year: int) -> int:
        start = self.fiscal_year_start(fiscal_year)
        return (self.fiscal_year_end(fiscal_year) - start).days + 1

    def reporting_period(self, now: DateLike) -> date:
        """First day of the month the report run at ``now`` describes."""
        return _as_date(now).replace(day=1) - relativedelta(months=1)

    def reporting_fiscal_year(self, now: DateLike) -> int:
        return self.fiscal_year_of(self.reporting_period(now))

    def reporting_months_elapsed(self, now: DateLike) -> int:
        """Fiscal months elapsed at the end of the reporting month, always 1..12."""
        reporting_month = self.reporting_period(now).month
        return (reporting_month - self.start_month) % config.MONTHS_PER_YEAR + 1

    def days_elapsed(self, now: DateLike) -> int:
        """Days from fiscal year start through ``now`` inclusive."""
        day = _as_date(now)
        start = self.fiscal_year_start(self.fiscal_year_of(day))
        return (day - start).days + 1

    def months_to_date(self, now: DateLike) -> List[date]:
        """First day of every fiscal month from year start through the month of ``now``."""
        day = _as_date(now)
        current = self.fiscal_year_start(self.fiscal_year_of(day))
        months = []
        while current <= day:
            months.append(current)
            current += relativedelta(months=1)
        return months

    @staticmethod
    def billing_period(now: DateLike) -> str:
        """Dashboard billing period parameter: first day of the month of ``now``."""
        return f"{_as_date(now):%Y-%m}-01"

    def report_period_label(self, now: DateLike) -> str:
        period = self.reporting_period(now)
        return f"{calendar.month_name[period.month]} {period.year}"
