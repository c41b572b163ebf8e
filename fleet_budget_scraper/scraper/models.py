"""Shared data models for the fleet budget dashboard scraper."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ExtractionPhase(str, Enum):
    """Ordered steps of one fleet extraction; each read depends on the previous view."""

    INIT = "Init"
    AUTH_CHECK = "AuthCheck"
    EXTRACT_IDENTITY = "ExtractIdentity"
    SELECT_FULL_YEAR_VIEW = "SelectFullYearView"
    EXTRACT_BUDGET = "ExtractBudget"
    SELECT_YEAR_TO_DATE_VIEW = "SelectYearToDateView"
    EXTRACT_SPEND = "ExtractSpend"
    COMPUTE = "Compute"


@dataclass(frozen=True, slots=True)
class RawExtractionResult:
    """Unparsed text read from the dashboard for one fleet."""

    fleet_id: str
    fleet_name: str
    imr_goal_text: str
    ytd_spend_text: str
    extracted_at: datetime
    dashboard_fleet_id: Optional[str] = None
