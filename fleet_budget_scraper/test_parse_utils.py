"""Tests for dashboard currency and id parsing."""

from __future__ import annotations

import pytest

from fleet_budget_scraper.scraper import parse_utils


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$2.36MM", 2_360_000.0),
        ("$150.9K", 150_900.0),
        ("$1.5M", 1_500_000.0),
        ("$2B", 2_000_000_000.0),
        ("$1.2B", 1_200_000_000.0),
        ("$1,234.56", 1234.56),
        ("  $ 812.9k ", 812_900.0),
        ("32.9K", 32_900.0),
        ("$0.00", 0.0),
    ],
)
def test_parse_currency_suffixes(text, expected):
    """Suffixes scale the amount; MM must never be read as M."""
    assert parse_utils.parse_currency(text) == expected


@pytest.mark.parametrize("text", [None, "", "   ", "-", "--", "N/A", "n/a"])
def test_blank_placeholders_parse_to_zero(text):
    assert parse_utils.is_blank_amount(text)
    assert parse_utils.try_parse_currency(text) is None
    assert parse_utils.parse_currency(text) == 0.0


@pytest.mark.parametrize("text", ["abc", "$", "$K", "1.2.3M", "$NaN", "Infinity"])
def test_unparseable_text_parses_to_zero(text):
    assert parse_utils.try_parse_currency(text) is None
    assert parse_utils.parse_currency(text) == 0.0


def test_real_zero_is_distinguishable_from_failure():
    assert parse_utils.try_parse_currency("$0") == 0.0
    assert parse_utils.try_parse_currency("--") is None


def test_clean_text_collapses_whitespace():
    assert parse_utils.clean_text("  Fleet\n  Name\t ") == "Fleet Name"
    assert parse_utils.clean_text("   ") is None
    assert parse_utils.clean_text(None) is None


def test_parse_fleet_id():
    assert parse_utils.parse_fleet_id("Fleet ID: 8304669") == "8304669"
    assert parse_utils.parse_fleet_id("10089347") == "10089347"
    assert parse_utils.parse_fleet_id("no digits here") is None
    assert parse_utils.parse_fleet_id(None) is None
