"""
Unit tests for datetime utilities.

Tests business timezone handling and report window helpers.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from utils.datetime_utils import (
    BUSINESS_TZ,
    business_now,
    day_range,
    ensure_business_tz,
    month_range,
    shift_months,
    start_of_day,
)


class TestBusinessTimezone:
    """Test business timezone utilities."""

    def test_business_now_is_timezone_aware(self):
        now = business_now()

        assert now.tzinfo is not None
        assert now.tzinfo == BUSINESS_TZ

    def test_default_offset_is_ist(self):
        """Default business timezone is UTC+5:30."""
        assert BUSINESS_TZ.utcoffset(None) == timedelta(hours=5, minutes=30)


class TestEnsureBusinessTz:

    def test_naive_is_treated_as_business_local(self):
        result = ensure_business_tz(datetime(2024, 1, 1, 10, 0, 0))

        assert result is not None
        assert result.tzinfo == BUSINESS_TZ
        assert result.hour == 10

    def test_aware_is_converted(self):
        result = ensure_business_tz(datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))

        assert result is not None
        assert result.tzinfo == BUSINESS_TZ
        assert (result.hour, result.minute) == (5, 30)

    def test_none(self):
        assert ensure_business_tz(None) is None


class TestDayRange:
    """Test inclusive date range to half-open window conversion."""

    def test_single_day(self):
        start, end = day_range(date(2024, 10, 16), date(2024, 10, 16))

        assert start == datetime(2024, 10, 16, tzinfo=BUSINESS_TZ)
        assert end == datetime(2024, 10, 17, tzinfo=BUSINESS_TZ)

    def test_end_is_inclusive(self):
        start, end = day_range(date(2024, 10, 1), date(2024, 10, 31))

        last_moment = datetime(2024, 10, 31, 23, 59, 59, tzinfo=BUSINESS_TZ)
        assert start <= last_moment < end

    def test_end_before_start_raises(self):
        with pytest.raises(ValueError):
            day_range(date(2024, 10, 2), date(2024, 10, 1))

    def test_start_of_day_is_business_midnight(self):
        assert start_of_day(date(2024, 3, 5)) == datetime(2024, 3, 5, tzinfo=BUSINESS_TZ)


class TestMonthHelpers:

    @pytest.mark.parametrize("year,month,last_day", [
        (2024, 2, 29),
        (2023, 2, 28),
        (2024, 12, 31),
        (2024, 4, 30),
    ])
    def test_month_range(self, year, month, last_day):
        first, last = month_range(year, month)

        assert first == date(year, month, 1)
        assert last == date(year, month, last_day)

    def test_month_range_invalid_month(self):
        with pytest.raises(ValueError):
            month_range(2024, 13)

    def test_shift_months_clamps_day(self):
        assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_shift_months_across_year(self):
        assert shift_months(date(2024, 1, 15), -12) == date(2023, 1, 15)
        assert shift_months(date(2024, 11, 1), 3) == date(2025, 2, 1)
