"""
Working-hours resolution for a single date.

Turns the weekly schedule of a business (and the sparse override of an
employee) into the open intervals of one calendar day.
"""

import logging
from typing import List

from pendulum import Date

from .models import (
    CLOSED,
    DEFAULT_TIMEZONE,
    ClosedDay,
    DayHours,
    OpenDay,
    TimeRange,
    WeeklyHours,
    at,
)

logger = logging.getLogger(__name__)


def select_day_hours(
    day: Date,
    business_hours: WeeklyHours,
    employee_hours: WeeklyHours | None = None,
) -> DayHours:
    """
    Pick the hours that apply on a date.

    The employee override wins for the weekdays it defines; every other
    weekday falls back to the business hours. A weekday missing from the
    business hours counts as closed.
    """
    if employee_hours is not None:
        override = employee_hours.for_date(day)
        if override is not None:
            return override

    business_day = business_hours.for_date(day)
    if business_day is None:
        return CLOSED
    return business_day


def day_intervals(day: Date, hours: DayHours, timezone: str) -> List[TimeRange]:
    """
    Expand one day's hours into concrete intervals on that date.

    A lunch break splits the day into a morning and an afternoon block;
    a block of zero length (lunch starting at opening time) is dropped.
    """
    if isinstance(hours, ClosedDay):
        return []

    if not isinstance(hours, OpenDay):
        raise TypeError(f"Unsupported day hours: {hours!r}")

    open_at = at(day, hours.open, timezone)
    close_at = at(day, hours.close, timezone)

    if hours.lunch is None:
        return [TimeRange(start=open_at, end=close_at)]

    lunch_start = at(day, hours.lunch.start, timezone)
    lunch_end = at(day, hours.lunch.end, timezone)

    blocks: List[TimeRange] = []
    if open_at < lunch_start:
        blocks.append(TimeRange(start=open_at, end=lunch_start))
    if lunch_end < close_at:
        blocks.append(TimeRange(start=lunch_end, end=close_at))
    return blocks


def resolve_working_hours(
    day: Date,
    business_hours: WeeklyHours,
    employee_hours: WeeklyHours | None = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> List[TimeRange]:
    """
    Resolve the open intervals for a date.

    Args:
        day: Calendar date in business-local time
        business_hours: Default weekly hours of the business
        employee_hours: Optional sparse override of the employee
        timezone: IANA timezone of the business

    Returns:
        Zero, one or two intervals, ordered by start time
    """
    hours = select_day_hours(day, business_hours, employee_hours)
    intervals = day_intervals(day, hours, timezone)

    logger.debug("Resolved %d working interval(s) for %s", len(intervals), day)

    return intervals
