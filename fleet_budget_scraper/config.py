"""Configuration constants and selectors for the fleet budget dashboard scraper."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional


class ConfigError(ValueError):
    """Raised when the environment-level configuration cannot be used."""


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# Dashboard settings
# ---------------------------------------------------------------------------

DASHBOARD_BASE_URL = os.getenv("DASHBOARD_BASE_URL", "https://cerberus.cloudtune.amazon.dev")
USAGE_PATH = "/usage"
USAGE_ACTIVE_TAB = "usage-imr-goal"

FLEET_IDS: List[str] = _env_list(
    "FLEET_IDS",
    ["8304669", "8305082", "8304674", "10089347", "8967127", "3046715"],
)

# Fiscal year starts on the first day of this calendar month (1 = January).
FISCAL_YEAR_START_MONTH = int(os.getenv("FISCAL_YEAR_START_MONTH", "1"))
MONTHS_PER_YEAR = 12

REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "America/Los_Angeles")

# ---------------------------------------------------------------------------
# Session persistence
# ---------------------------------------------------------------------------

SESSION_DIR = Path(os.getenv("SESSION_DIR", str(Path.cwd() / ".browser-session")))
SESSION_TIMESTAMP_FILE = ".last-validated"
SESSION_PROFILE_SUBDIR = "profile"
SESSION_VALIDITY_HOURS = float(os.getenv("SESSION_VALIDITY_HOURS", "12"))

# ---------------------------------------------------------------------------
# Protocol timings (the dashboard refreshes period views client-side only)
# ---------------------------------------------------------------------------

PERIOD_SETTLE_DELAY_MS = 3_000
DROPDOWN_OPEN_WAIT_MS = 500
POST_NAVIGATION_WAIT_MS = 2_000
PAGE_TIMEOUT_MS = int(os.getenv("PAGE_TIMEOUT_MS", "30000"))
NAVIGATION_TIMEOUT_MS = int(os.getenv("NAVIGATION_TIMEOUT_MS", "60000"))

# ---------------------------------------------------------------------------
# Batch behaviour
# ---------------------------------------------------------------------------

INTER_FLEET_DELAY_SECONDS = float(os.getenv("INTER_FLEET_DELAY_SECONDS", "2"))
NETWORK_RETRIES = int(os.getenv("NETWORK_RETRIES", "1"))
ZERO_VALUE_REVIEW_THRESHOLD = 2

# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

PERIOD_SELECTOR_SEL = 'button[data-class-name="mus-period-selector_button"]'
PERIOD_OPTION_SEL = '[role="menuitem"], [role="option"]'
FULL_YEAR_OPTION = "Full Year"
YEAR_TO_DATE_OPTION = "Year to Date"


@dataclass(frozen=True)
class FieldLocator:
    """Where a named dashboard value lives: selector, ordinal and required view."""

    selector: str
    index: int = 0
    view: Optional[str] = None


# Positional coupling to the dashboard markup lives in this table only.
DASHBOARD_FIELDS: Dict[str, FieldLocator] = {
    "fleet_name": FieldLocator("strong", 0),
    "fleet_id": FieldLocator('[data-testid="mus-overview-fleetid"]', 0),
    "imr_goal": FieldLocator(".awsui-key-children", 1, FULL_YEAR_OPTION),
    "ytd_spend": FieldLocator(".mus-cell-right-aligned", 1, YEAR_TO_DATE_OPTION),
}

# Present only once the SSO session is established.
LOGGED_IN_MARKERS = (
    PERIOD_SELECTOR_SEL,
    DASHBOARD_FIELDS["fleet_id"].selector,
    DASHBOARD_FIELDS["imr_goal"].selector,
)
LOGIN_FORM_MARKERS = (
    'input[type="password"]',
    'input[name="username"]',
    'input[name="email"]',
    ".login-form",
    "#login",
)

# Default Playwright settings
PLAYWRIGHT_HEADLESS = _env_bool("PLAYWRIGHT_HEADLESS", False)
PLAYWRIGHT_VIEWPORT = {"width": 1920, "height": 1080}
PLAYWRIGHT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
PLAYWRIGHT_LOCALE = "en-US"
PLAYWRIGHT_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--no-first-run",
]

# Output
REPORTS_DIR = Path(os.getenv("REPORTS_DIR", str(Path.cwd() / "reports")))


def validate() -> None:
    """Fail fast on configuration that would make every fleet fail."""
    if not DASHBOARD_BASE_URL.strip():
        raise ConfigError("DASHBOARD_BASE_URL must not be empty")
    if not 1 <= FISCAL_YEAR_START_MONTH <= 12:
        raise ConfigError(
            f"FISCAL_YEAR_START_MONTH must be within 1..12, got {FISCAL_YEAR_START_MONTH}"
        )
    if SESSION_VALIDITY_HOURS <= 0:
        raise ConfigError("SESSION_VALIDITY_HOURS must be positive")
    if PAGE_TIMEOUT_MS <= 0 or NAVIGATION_TIMEOUT_MS <= 0:
        raise ConfigError("Page and navigation timeouts must be positive")
