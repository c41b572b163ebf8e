"""Burn-rate, end-of-year projection and budget variance calculations.

Sign convention: ``variance = projected_eoy - imr_goal``. A positive variance
means the fleet is on course to overspend, and ``is_over_budget`` is defined
as ``variance > 0`` so the two can never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fleet_budget_scraper import config


@dataclass(frozen=True)
class ForecastFigures:
    imr_goal: float
    ytd_spend: float
    months_elapsed: int
    months_remaining: int
    monthly_burn_rate: float
    projected_eoy: float
    variance: float
    variance_percent: float
    percent_complete: float
    is_over_budget: bool


class ForecastRecord(BaseModel):
    """Per-fleet forecast handed to the report writers and the dashboard UI."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    fleet_id: str
    fleet_name: str
    fiscal_year: int
    imr_goal: float = Field(ge=0)
    ytd_spend: float = Field(ge=0)
    months_elapsed: int = Field(ge=0, le=12)
    months_remaining: int = Field(ge=0, le=12)
    monthly_burn_rate: float
    projected_eoy: float = Field(alias="projectedEOY")
    variance: float
    variance_percent: float
    percent_complete: float
    is_over_budget: bool
    report_date: Optional[date] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def compute_forecast(imr_goal: float, ytd_spend: float, months_elapsed: int) -> ForecastFigures:
    """Project year-end spend from year-to-date spend and elapsed fiscal months.

    With no elapsed months there is no trend yet, so the projection falls back
    to the spend itself instead of dividing by zero.
    """
    months_per_year = config.MONTHS_PER_YEAR
    if months_elapsed > months_per_year:
        raise ValueError(f"months_elapsed must be at most {months_per_year}, got {months_elapsed}")

    if months_elapsed > 0:
        monthly_burn_rate = ytd_spend / months_elapsed
        if months_elapsed == months_per_year:
            projected_eoy = ytd_spend
        else:
            projected_eoy = monthly_burn_rate * months_per_year
    else:
        monthly_burn_rate = 0.0
        projected_eoy = ytd_spend

    variance = projected_eoy - imr_goal
    variance_percent = (variance / imr_goal) * 100 if imr_goal > 0 else 0.0
    percent_complete = (ytd_spend / imr_goal) * 100 if imr_goal > 0 else 0.0

    return ForecastFigures(
        imr_goal=imr_goal,
        ytd_spend=ytd_spend,
        months_elapsed=max(months_elapsed, 0),
        months_remaining=months_per_year - max(months_elapsed, 0),
        monthly_burn_rate=monthly_burn_rate,
        projected_eoy=projected_eoy,
        variance=variance,
        variance_percent=variance_percent,
        percent_complete=percent_complete,
        is_over_budget=variance > 0,
    )


def build_forecast_record(
    fleet_id: str,
    fleet_name: str,
    fiscal_year: int,
    figures: ForecastFigures,
    report_date: Optional[date] = None,
) -> ForecastRecord:
    return ForecastRecord(
        fleet_id=fleet_id,
        fleet_name=fleet_name,
        fiscal_year=fiscal_year,
        imr_goal=figures.imr_goal,
        ytd_spend=figures.ytd_spend,
        months_elapsed=figures.months_elapsed,
        months_remaining=figures.months_remaining,
        monthly_burn_rate=figures.monthly_burn_rate,
        projected_eoy=figures.projected_eoy,
        variance=figures.variance,
        variance_percent=figures.variance_percent,
        percent_complete=figures.percent_complete,
        is_over_budget=figures.is_over_budget,
        report_date=report_date,
    )


def aggregate(
    records: Iterable[ForecastRecord],
    fleet_id: str,
    fleet_name: str,
    months_elapsed: Optional[int] = None,
) -> ForecastRecord:
    """Roll several fleets into one record by recomputing from summed totals.

    Budgets and spends are summed; burn rate, projection and variance are then
    derived from those totals. Per-fleet projections are never added up.
    ``months_elapsed`` defaults to the latest reporting point among the records.
    """
    records = list(records)
    if not records:
        raise ValueError("Cannot aggregate an empty set of forecast records")

    total_goal = sum(record.imr_goal for record in records)
    total_spend = sum(record.ytd_spend for record in records)
    if months_elapsed is None:
        months_elapsed = max(record.months_elapsed for record in records)

    figures = compute_forecast(total_goal, total_spend, months_elapsed)
    return build_forecast_record(
        fleet_id,
        fleet_name,
        records[0].fiscal_year,
        figures,
        report_date=records[0].report_date,
    )
