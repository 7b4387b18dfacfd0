"""
Tests for calendar date helpers.

Tests cover:
- Inclusive day counting
- Reversed intervals
- Interval overlap and year clipping
- Parsing and formatting
"""

from datetime import date, datetime

import pytest

from calculator.date_utils import (
    InvalidDateRangeError,
    days_between_inclusive,
    days_in_year,
    format_date,
    overlap_days,
    overlap_range,
    parse_date,
    year_bounds,
)


class TestDaysBetweenInclusive:
    """Tests for inclusive day counting."""

    def test_same_day_is_one(self):
        """A single-day stay counts as one day."""
        assert days_between_inclusive(date(2024, 5, 17), date(2024, 5, 17)) == 1

    def test_ten_day_span(self):
        """2024-01-01 through 2024-01-10 is ten days."""
        assert days_between_inclusive("2024-01-01", "2024-01-10") == 10

    def test_leap_year_february(self):
        """February 2024 has 29 days."""
        assert days_between_inclusive("2024-02-01", "2024-02-29") == 29

    def test_full_leap_year(self):
        assert days_between_inclusive("2024-01-01", "2024-12-31") == 366

    def test_full_common_year(self):
        assert days_between_inclusive("2023-01-01", "2023-12-31") == 365

    def test_time_of_day_ignored(self):
        """datetimes are truncated to their calendar date."""
        start = datetime(2024, 3, 1, 23, 59)
        end = datetime(2024, 3, 2, 0, 1)
        assert days_between_inclusive(start, end) == 2

    def test_reversed_interval_raises(self):
        """End before start is rejected rather than counted."""
        with pytest.raises(InvalidDateRangeError) as exc_info:
            days_between_inclusive("2024-01-10", "2024-01-01")
        assert exc_info.value.start == date(2024, 1, 10)
        assert exc_info.value.end == date(2024, 1, 1)
        assert "2024-01-01" in str(exc_info.value)

    def test_reversed_interval_is_value_error(self):
        with pytest.raises(ValueError):
            days_between_inclusive("2024-01-02", "2024-01-01")


class TestOverlap:
    """Tests for interval overlap helpers."""

    def test_year_bounds(self):
        assert year_bounds(2024) == (date(2024, 1, 1), date(2024, 12, 31))

    def test_overlap_inside_window(self):
        assert overlap_range("2024-03-01", "2024-03-05", "2024-01-01", "2024-12-31") == (
            date(2024, 3, 1), date(2024, 3, 5)
        )

    def test_overlap_clips_both_ends(self):
        assert overlap_range("2023-12-20", "2025-01-10", "2024-01-01", "2024-12-31") == (
            date(2024, 1, 1), date(2024, 12, 31)
        )

    def test_disjoint_intervals(self):
        assert overlap_range("2023-01-01", "2023-12-31", "2024-01-01", "2024-12-31") is None
        assert overlap_days("2023-01-01", "2023-12-31", "2024-01-01", "2024-12-31") == 0

    def test_touching_on_one_day(self):
        assert overlap_days("2023-12-31", "2024-01-01", "2024-01-01", "2024-12-31") == 1

    def test_year_boundary_split(self):
        """A trip spanning New Year splits into 12 + 10 days."""
        assert days_in_year("2023-12-20", "2024-01-10", 2023) == 12
        assert days_in_year("2023-12-20", "2024-01-10", 2024) == 10
        assert days_between_inclusive("2023-12-20", "2024-01-10") == 22


class TestParsing:
    """Tests for parsing and formatting."""

    def test_parse_iso_string(self):
        assert parse_date("2024-07-04") == date(2024, 7, 4)

    def test_parse_strips_whitespace(self):
        assert parse_date(" 2024-07-04 ") == date(2024, 7, 4)

    def test_parse_passes_dates_through(self):
        d = date(2024, 7, 4)
        assert parse_date(d) == d

    def test_parse_invalid_string(self):
        with pytest.raises(ValueError):
            parse_date("2024-13-01")

    def test_parse_wrong_type(self):
        with pytest.raises(TypeError):
            parse_date(20240704)

    def test_format_date(self):
        assert format_date(date(2024, 1, 5)) == "2024-01-05"
