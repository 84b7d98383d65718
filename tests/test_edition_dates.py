"""
Tests for canonical edition date handling.
"""

import pytest
from datetime import date, datetime, timezone, timedelta

from src.utils.edition_dates import (
    EDITION_TZ, to_edition_date, today_edition_date, yesterday_edition_date,
    is_future_date, month_dates
)


class TestToEditionDate:
    """Test suite for to_edition_date"""

    def test_date_only_string_is_unchanged(self):
        assert to_edition_date("2025-02-10") == "2025-02-10"

    def test_date_object_is_unchanged(self):
        assert to_edition_date(date(2025, 2, 10)) == "2025-02-10"

    def test_utc_evening_rolls_over_to_next_day(self):
        # 20:00 UTC is 01:30 the next day at UTC+05:30
        assert to_edition_date("2025-02-10T20:00:00Z") == "2025-02-11"

    def test_offset_timestamp_is_converted(self):
        assert to_edition_date("2025-02-10T23:30:00-05:00") == "2025-02-11"

    def test_naive_datetime_is_read_as_utc(self):
        assert to_edition_date(datetime(2025, 2, 10, 18, 29)) == "2025-02-10"
        assert to_edition_date(datetime(2025, 2, 10, 18, 30)) == "2025-02-11"

    def test_none_uses_now(self):
        now = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)
        assert to_edition_date(None, now=now) == "2025-02-15"

    @pytest.mark.parametrize("value", ["2025-02-10", "2024-02-29", "2025-12-31T22:00:00Z"])
    def test_idempotent(self, value):
        once = to_edition_date(value)
        assert to_edition_date(once) == once

    @pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2025-02-30", "2025/02/10"])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            to_edition_date(value)


class TestRelativeDates:
    """Test suite for today/yesterday helpers"""

    def test_today_uses_edition_timezone(self):
        now = datetime(2025, 2, 14, 19, 0, tzinfo=timezone.utc)
        assert today_edition_date(now) == "2025-02-15"

    def test_yesterday(self):
        now = datetime(2025, 3, 1, 0, 0, tzinfo=EDITION_TZ)
        assert yesterday_edition_date(now) == "2025-02-28"

    def test_is_future_date(self):
        now = datetime(2025, 2, 15, 6, 0, tzinfo=timezone.utc)
        assert is_future_date("2025-02-16", now) is True
        assert is_future_date("2025-02-15", now) is False
        assert is_future_date("2025-01-31", now) is False

    def test_edition_tz_offset(self):
        assert EDITION_TZ.utcoffset(None) == timedelta(hours=5, minutes=30)


class TestMonthDates:
    """Test suite for month_dates"""

    def test_february_non_leap(self):
        dates = month_dates(2025, 2)
        assert len(dates) == 28
        assert dates[0] == "2025-02-01"
        assert dates[-1] == "2025-02-28"

    def test_february_leap(self):
        assert len(month_dates(2024, 2)) == 29

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError):
            month_dates(2025, month)
