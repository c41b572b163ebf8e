"""Static parent/child fleet table used for roll-up totals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class FleetConfig:
    id: str
    name: str
    type: str  # "parent", "child" or "independent"
    parent_id: Optional[str] = None
    budget: Optional[str] = None


FLEET_HIERARCHY = [
    FleetConfig("8304669", "(F6) Planning Automation And Optimization", "parent", budget="$2.36M"),
    FleetConfig(
        "8305082",
        "(F7) Capacity Plan Automation and Optimization",
        "child",
        parent_id="8304669",
        budget="$812.9K",
    ),
    FleetConfig("8304674", "(F7) Plan Automation", "child", parent_id="8304669", budget="$623.7K"),
    FleetConfig("10089347", "(F7) AI Automation", "child", parent_id="8304669", budget="$888.7K"),
    FleetConfig("8967127", "(F7) Planning Automation", "child", parent_id="8304669", budget="$32.9K"),
]


def get_fleet_by_id(
    fleet_id: str,
    fleets: Iterable[FleetConfig] = FLEET_HIERARCHY,
) -> Optional[FleetConfig]:
    return next((fleet for fleet in fleets if fleet.id == fleet_id), None)


def get_child_fleets(
    parent_id: str,
    fleets: Iterable[FleetConfig] = FLEET_HIERARCHY,
) -> List[FleetConfig]:
    return [fleet for fleet in fleets if fleet.parent_id == parent_id]


def get_parent_fleets(fleets: Iterable[FleetConfig] = FLEET_HIERARCHY) -> List[FleetConfig]:
    """Return fleets that head a roll-up: parents and independents."""
    return [fleet for fleet in fleets if fleet.type in ("parent", "independent")]
