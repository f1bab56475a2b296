"""
Tests for calendar-day helpers

Date strings are taken as local calendar days, never as UTC instants.
"""
import pytest
from datetime import date, datetime
from services.dates import days_between, parse_date_only, to_date_string


class TestParseDateOnly:

    def test_iso_string(self):
        assert parse_date_only("2026-01-10") == date(2026, 1, 10)

    def test_time_component_is_dropped(self):
        """A timestamp late in the day stays on that day"""
        assert parse_date_only("2026-01-10T23:30:00Z") == date(2026, 1, 10)
        assert parse_date_only("2026-01-10T00:00:00-08:00") == date(2026, 1, 10)

    def test_date_and_datetime_pass_through(self):
        assert parse_date_only(date(2026, 3, 1)) == date(2026, 3, 1)
        assert parse_date_only(datetime(2026, 3, 1, 23, 59)) == date(2026, 3, 1)

    def test_surrounding_whitespace(self):
        assert parse_date_only(" 2026-02-28 ") == date(2026, 2, 28)

    @pytest.mark.parametrize("value", ["2026-01", "not-a-date", "2026/01/10", "2026-13-01", ""])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_date_only(value)

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            parse_date_only(20260110)


class TestDaysBetween:

    def test_same_day_is_zero(self):
        assert days_between("2026-01-10", "2026-01-10") == 0

    def test_forward(self):
        assert days_between("2026-01-10", "2026-01-20") == 10

    def test_signed_when_end_is_earlier(self):
        assert days_between("2026-01-20", "2026-01-10") == -10

    def test_across_month_and_leap_day(self):
        assert days_between("2028-02-28", "2028-03-01") == 2

    def test_mixed_inputs(self):
        assert days_between(date(2026, 1, 10), "2026-01-11T06:00:00") == 1


def test_to_date_string_zero_pads():
    assert to_date_string(date(2026, 1, 5)) == "2026-01-05"
