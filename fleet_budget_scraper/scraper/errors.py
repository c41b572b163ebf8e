"""Error taxonomy for dashboard extraction failures."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fleet_budget_scraper.scraper.models import ExtractionPhase


class DashboardError(Exception):
    """Base class for failures talking to the dashboard."""

    kind = "unexpected"


class AuthError(DashboardError):
    """The browser session could not be established or validated."""

    kind = "auth"


class ProtocolError(DashboardError):
    """An expected element, option or element count is missing from the page."""

    kind = "protocol"


class NetworkError(DashboardError):
    """Navigation timed out or the connection failed."""

    kind = "network"


class FleetFailure(BaseModel):
    """Serialisable per-fleet failure entry."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    fleet_id: str
    phase: str
    kind: str
    message: str


class ExtractionError(Exception):
    """Per-fleet failure tagged with the phase it happened in."""

    def __init__(
        self,
        fleet_id: str,
        phase: ExtractionPhase,
        message: str,
        kind: str = "unexpected",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(f"Fleet {fleet_id} failed during {phase.value}: {message}")
        self.fleet_id = fleet_id
        self.phase = phase
        self.kind = kind
        self.message = message
        self.cause = cause

    @classmethod
    def from_exception(
        cls, fleet_id: str, phase: ExtractionPhase, exc: BaseException
    ) -> "ExtractionError":
        kind = exc.kind if isinstance(exc, DashboardError) else "unexpected"
        return cls(fleet_id, phase, str(exc) or type(exc).__name__, kind=kind, cause=exc)

    @property
    def is_network(self) -> bool:
        return self.kind == NetworkError.kind

    def to_failure(self) -> FleetFailure:
        return FleetFailure(
            fleet_id=self.fleet_id,
            phase=self.phase.value,
            kind=self.kind,
            message=self.message,
        )
