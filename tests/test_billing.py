"""Unit tests for the duration/amount calculator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from app.errors import InvalidExitTime
from app.utils.billing import billable_hours, calculate_amount, calculate_duration, to_naive_utc

NINE = datetime(2024, 3, 1, 9, 0, 0)


class TestCalculateDuration:
    def test_91_minutes(self):
        assert calculate_duration(NINE, datetime(2024, 3, 1, 10, 31)) == 91

    def test_partial_minute_rounds_up(self):
        assert calculate_duration(NINE, NINE + timedelta(minutes=5, seconds=1)) == 6
        assert calculate_duration(NINE, NINE + timedelta(milliseconds=1)) == 1

    def test_same_instant_is_zero(self):
        assert calculate_duration(NINE, NINE) == 0

    def test_exit_before_entry_rejected(self):
        with pytest.raises(InvalidExitTime):
            calculate_duration(NINE, NINE - timedelta(seconds=1))

    def test_invalid_exit_time_is_a_value_error(self):
        with pytest.raises(ValueError):
            calculate_duration(NINE, NINE - timedelta(days=1))

    def test_aware_timestamps_compared_in_utc(self):
        entry = datetime(2024, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=1)))  # 09:00 UTC
        assert calculate_duration(entry, datetime(2024, 3, 1, 9, 30)) == 30


class TestCalculateAmount:
    def test_scenario_91_minutes_voiture(self):
        assert calculate_amount(91, 1000) == Decimal("2000")

    def test_exact_hour_not_rounded_up(self):
        assert calculate_amount(60, Decimal("500")) == Decimal("500")

    def test_one_minute_bills_full_hour(self):
        assert calculate_amount(1, Decimal("12.50")) == Decimal("12.50")

    def test_zero_duration_is_free_by_default(self):
        assert calculate_amount(0, 1000) == Decimal("0")

    def test_minimum_hours_applies_to_short_stays(self):
        assert calculate_amount(0, 1000, minimum_hours=1) == Decimal("1000")
        assert calculate_amount(150, 1000, minimum_hours=1) == Decimal("3000")

    def test_returns_decimal(self):
        assert isinstance(calculate_amount(30, 2.5), Decimal)
        assert calculate_amount(30, 2.5) == Decimal("2.5")

    def test_negative_duration_rejected(self):
        with pytest.raises(InvalidExitTime):
            billable_hours(-1)


def test_to_naive_utc():
    assert to_naive_utc(None) is None
    assert to_naive_utc(NINE) == NINE
    aware = datetime(2024, 3, 1, 11, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == NINE
