"""Parsing helpers for text scraped from the fleet budget dashboard."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from playwright.async_api import Locator

_BLANK_AMOUNTS = {"", "-", "--", "n/a", "na"}
_STRIP_PATTERN = re.compile(r"[$,\s]")

# Longest suffix first so "MM" is never read as "M".
_SUFFIX_MULTIPLIERS = (
    ("MM", Decimal(1_000_000)),
    ("B", Decimal(1_000_000_000)),
    ("M", Decimal(1_000_000)),
    ("K", Decimal(1_000)),
)


def clean_text(value: Optional[str]) -> Optional[str]:
    """Normalize whitespace and strip strings."""
    if value is None:
        return None
    return " ".join(value.split()).strip() or None


def is_blank_amount(text: Optional[str]) -> bool:
    """Return True for the placeholders the dashboard renders instead of a zero."""
    cleaned = clean_text(text)
    return cleaned is None or cleaned.lower() in _BLANK_AMOUNTS


def try_parse_currency(text: Optional[str]) -> Optional[float]:
    """Like ``parse_currency`` but returns None for blank or unparseable text."""
    if is_blank_amount(text):
        return None

    cleaned = _STRIP_PATTERN.sub("", text).upper()
    multiplier = Decimal(1)
    for suffix, factor in _SUFFIX_MULTIPLIERS:
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)]
            multiplier = factor
            break

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return float(amount * multiplier)


def parse_currency(text: Optional[str]) -> float:
    """Convert dashboard currency text such as "$2.36MM" or "$150.9K" to a number.

    Blank placeholders and unparseable text both yield 0 so one malformed
    field never aborts an extraction; callers log the coercion.
    """
    amount = try_parse_currency(text)
    return 0.0 if amount is None else amount


def parse_fleet_id(text: Optional[str]) -> Optional[str]:
    """Pull the numeric id out of text like "Fleet id: 8304669"."""
    cleaned = clean_text(text)
    if not cleaned:
        return None
    match = re.search(r"\d+", cleaned)
    return match.group() if match else None


async def locator_text(locator: Locator, index: int = 0) -> Optional[str]:
    """Return cleaned text of the element at ``index`` or None when absent."""
    if await locator.count() <= index:
        return None
    return clean_text(await locator.nth(index).text_content())
