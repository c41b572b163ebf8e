"""Persistence and re-validation policy for the authenticated browser profile."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from fleet_budget_scraper import config

logger = logging.getLogger(__name__)

LoginCheck = Callable[[], Awaitable[bool]]
ManualLoginPrompt = Callable[[], Awaitable[None]]


class SessionStatus(str, Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """On-disk session directory plus the time-boxed login check policy.

    The profile directory holds the browser's cookies and local storage; the
    timestamp file records the last time a login was confirmed. Nothing here
    deletes either automatically.
    """

    def __init__(
        self,
        session_dir: Path,
        validity_hours: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_dir = Path(session_dir)
        self.validity = timedelta(
            hours=config.SESSION_VALIDITY_HOURS if validity_hours is None else validity_hours
        )
        self.clock = clock
        self.status = SessionStatus.UNVALIDATED

    @property
    def profile_dir(self) -> Path:
        return self.session_dir / config.SESSION_PROFILE_SUBDIR

    @property
    def timestamp_path(self) -> Path:
        return self.session_dir / config.SESSION_TIMESTAMP_FILE

    def last_validated_at(self) -> Optional[datetime]:
        """Read the last validation instant, or None when absent or unreadable."""
        try:
            raw = self.timestamp_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable session timestamp: {raw!r}")
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def is_fresh(self, now: Optional[datetime] = None) -> bool:
        last = self.last_validated_at()
        if last is None:
            return False
        age = (now or self.clock()) - last
        return timedelta(0) <= age < self.validity

    def mark_validated(self, now: Optional[datetime] = None) -> None:
        """Write the validation timestamp atomically and move to VALIDATED."""
        stamp = (now or self.clock()).astimezone(timezone.utc).isoformat()
        self.session_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.timestamp_path.with_suffix(".tmp")
        tmp_path.write_text(stamp, encoding="utf-8")
        os.replace(tmp_path, self.timestamp_path)
        self.status = SessionStatus.VALIDATED

    def invalidate(self) -> bool:
        """Forget the last validation. Operator action only; returns True if a stamp existed."""
        self.status = SessionStatus.UNVALIDATED
        try:
            self.timestamp_path.unlink()
        except FileNotFoundError:
            return False
        return True

    async def ensure_authenticated(
        self,
        login_check: LoginCheck,
        prompt_manual_login: ManualLoginPrompt,
    ) -> None:
        """Make sure the shared profile is logged in, checking at most once per window.

        Errors raised by ``login_check`` propagate and leave the stored
        timestamp untouched.
        """
        now = self.clock()
        last = self.last_validated_at()
        if last is not None and self.is_fresh(now):
            hours = (now - last).total_seconds() / 3600
            logger.info(f"Using saved session (validated {hours:.1f}h ago)")
            self.status = SessionStatus.VALIDATED
            return

        if last is None:
            logger.info("No cached session validation, checking login status")
        else:
            logger.info("Session validation expired, checking login status")

        if await login_check():
            logger.info("Already logged in to the dashboard")
        else:
            logger.warning("Authentication required, waiting for manual login")
            await prompt_manual_login()

        self.mark_validated(self.clock())
        logger.info(f"Session validated and cached in {self.timestamp_path}")
