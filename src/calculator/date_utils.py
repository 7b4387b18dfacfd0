"""
Calendar date helpers for day counting.

All dates are plain datetime.date values: no time of day and no UTC offset,
so a stay from 2024-03-01 to 2024-03-01 is always one day regardless of
where the code runs.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple, Union

DateLike = Union[date, str]


class InvalidDateRangeError(ValueError):
    """Raised when an interval ends before it starts."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"End date {format_date(end)} is before start date {format_date(start)}"
        )


def parse_date(value: DateLike) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Date instances pass through; datetime instances are truncated to their
    calendar date.
    """
    if isinstance(value, date):
        # datetime is a date subclass; drop the time component
        return date(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise TypeError(f"Expected a date or YYYY-MM-DD string, got {type(value).__name__}")
    return date.fromisoformat(value.strip())


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.isoformat()


def days_between_inclusive(start: DateLike, end: DateLike) -> int:
    """
    Count calendar days from start through end, both ends included.

    Precondition: start <= end.

    Raises:
        InvalidDateRangeError: If end is before start
    """
    start_date = parse_date(start)
    end_date = parse_date(end)
    if end_date < start_date:
        raise InvalidDateRangeError(start_date, end_date)
    return (end_date - start_date).days + 1


def year_bounds(year: int) -> Tuple[date, date]:
    """First and last calendar day of a year."""
    return date(year, 1, 1), date(year, 12, 31)


def overlap_range(
    start: DateLike,
    end: DateLike,
    window_start: DateLike,
    window_end: DateLike,
) -> Optional[Tuple[date, date]]:
    """
    Clip [start, end] to [window_start, window_end].

    Returns:
        The clipped (start, end) pair, or None if the intervals do not meet
    """
    overlap_start = max(parse_date(start), parse_date(window_start))
    overlap_end = min(parse_date(end), parse_date(window_end))
    if overlap_start > overlap_end:
        return None
    return overlap_start, overlap_end


def overlap_days(
    start: DateLike,
    end: DateLike,
    window_start: DateLike,
    window_end: DateLike,
) -> int:
    """Inclusive number of days shared by two intervals (0 if disjoint)."""
    clipped = overlap_range(start, end, window_start, window_end)
    if clipped is None:
        return 0
    return days_between_inclusive(*clipped)


def days_in_year(start: DateLike, end: DateLike, year: int) -> int:
    """Days of [start, end] that fall inside the given calendar year."""
    return overlap_days(start, end, *year_bounds(year))
