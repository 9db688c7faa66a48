"""Business-day arithmetic over inclusive calendar date ranges."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hrms.exceptions import InvalidRange

if TYPE_CHECKING:
    from datetime import date

_DAYS_PER_WEEK = 7
_WORKDAYS_PER_WEEK = 5
_SATURDAY = 5


def is_working_day(day: date) -> bool:
    """A working day is any day that is not Saturday or Sunday."""
    return day.weekday() < _SATURDAY


def calculate_working_days(start: date, end: date) -> int:
    """Count Monday-Friday days in the inclusive range [start, end].

    Any seven consecutive days hold exactly five working days, so only the
    trailing partial week needs to be walked.
    """
    if start > end:
        raise InvalidRange()

    span = (end - start).days + 1
    full_weeks, remainder = divmod(span, _DAYS_PER_WEEK)
    count = full_weeks * _WORKDAYS_PER_WEEK

    first_weekday = start.weekday()
    for offset in range(remainder):
        if (first_weekday + offset) % _DAYS_PER_WEEK < _SATURDAY:
            count += 1
    return count
