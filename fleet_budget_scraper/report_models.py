"""Pydantic models for one monthly batch run and its roll-up summary."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fleet_budget_scraper import config
from fleet_budget_scraper.filters.fleet_hierarchy import (
    FLEET_HIERARCHY,
    FleetConfig,
    get_child_fleets,
    get_parent_fleets,
)
from fleet_budget_scraper.forecast.engine import ForecastRecord, aggregate
from fleet_budget_scraper.scraper.errors import FleetFailure

logger = logging.getLogger(__name__)

TOTALS_FLEET_ID = "ALL"


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FleetResult(_ReportModel):
    """Outcome for one fleet: exactly one of ``record`` or ``error`` is set."""

    fleet_id: str
    record: Optional[ForecastRecord] = None
    error: Optional[FleetFailure] = None
    duration_seconds: float = 0.0
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.record is not None


class BatchSummary(_ReportModel):
    total_fleets: int
    successful: int
    failed: int
    totals: Optional[ForecastRecord] = None
    rollups: List[ForecastRecord] = Field(default_factory=list)
    zero_value_fleets: List[str] = Field(default_factory=list)
    needs_review: bool = False


class BatchReport(_ReportModel):
    report_date: date
    report_period: str
    generated_at: datetime
    total_duration_seconds: float = 0.0
    fleet_results: List[FleetResult] = Field(default_factory=list)

    @property
    def records(self) -> List[ForecastRecord]:
        return [result.record for result in self.fleet_results if result.record is not None]

    @property
    def failures(self) -> List[FleetFailure]:
        return [result.error for result in self.fleet_results if result.error is not None]

    @property
    def has_failures(self) -> bool:
        return any(not result.success for result in self.fleet_results)

    def summary(self, hierarchy: Iterable[FleetConfig] = FLEET_HIERARCHY) -> BatchSummary:
        return build_summary(self, hierarchy)


def build_rollups(
    records: Iterable[ForecastRecord],
    hierarchy: Iterable[FleetConfig] = FLEET_HIERARCHY,
) -> List[ForecastRecord]:
    """Aggregate each parent fleet with whichever of its children succeeded."""
    by_id = {record.fleet_id: record for record in records}
    hierarchy = list(hierarchy)
    rollups = []
    for parent in get_parent_fleets(hierarchy):
        children = get_child_fleets(parent.id, hierarchy)
        if not children:
            continue
        member_ids = [parent.id] + [child.id for child in children]
        members = [by_id[fleet_id] for fleet_id in member_ids if fleet_id in by_id]
        if not members:
            continue
        rollups.append(aggregate(members, parent.id, f"{parent.name} (roll-up)"))
    return rollups


def build_summary(
    report: BatchReport,
    hierarchy: Iterable[FleetConfig] = FLEET_HIERARCHY,
) -> BatchSummary:
    records = report.records
    zero_value = [
        record.fleet_id for record in records if record.imr_goal == 0 or record.ytd_spend == 0
    ]
    needs_review = len(zero_value) >= config.ZERO_VALUE_REVIEW_THRESHOLD
    if needs_review:
        logger.warning(
            f"{len(zero_value)} fleets reported a $0 budget or spend: {', '.join(zero_value)}. "
            "Check the dashboard selectors before trusting this report."
        )

    totals = None
    if records:
        totals = aggregate(records, TOTALS_FLEET_ID, f"All {len(records)} fleets")

    return BatchSummary(
        total_fleets=len(report.fleet_results),
        successful=len(records),
        failed=len(report.fleet_results) - len(records),
        totals=totals,
        rollups=build_rollups(records, hierarchy),
        zero_value_fleets=zero_value,
        needs_review=needs_review,
    )
