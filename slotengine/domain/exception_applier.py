"""
Overlay dated schedule exceptions onto resolved working intervals.
"""

import logging
from typing import List, Sequence

from pendulum import Date

from .exceptions import InvariantViolationError
from .models import DEFAULT_TIMEZONE, ExceptionType, ScheduleException, TimeRange, at

logger = logging.getLogger(__name__)


def apply_exceptions(
    intervals: Sequence[TimeRange],
    exceptions: Sequence[ScheduleException],
    day: Date,
    timezone: str = DEFAULT_TIMEZONE,
) -> List[TimeRange]:
    """
    Apply the exception of one employee on one date.

    - No exception: the resolved intervals pass through unchanged.
    - Unavailable / holiday: the whole day is gone.
    - Modified hours: the exception's hours replace the resolved
      intervals, so they may grant time outside the normal schedule.

    Args:
        intervals: Working intervals from the resolver
        exceptions: Exceptions stored for this employee and date
        day: The date being resolved
        timezone: IANA timezone of the business

    Raises:
        InvariantViolationError: If more than one exception exists
    """
    if not exceptions:
        return list(intervals)

    if len(exceptions) > 1:
        employee_ids = sorted({exception.employee_id for exception in exceptions})
        logger.error(
            "Found %d schedule exceptions for employee(s) %s on %s; expected at most one",
            len(exceptions),
            ", ".join(employee_ids),
            day,
        )
        raise InvariantViolationError(
            f"More than one schedule exception for employee(s) {', '.join(employee_ids)} on {day}"
        )

    exception = exceptions[0]

    if exception.date != day:
        raise InvariantViolationError(
            f"Schedule exception {exception.id} is dated {exception.date}, not {day}"
        )

    if exception.type is ExceptionType.MODIFIED_HOURS:
        logger.debug(
            "Modified hours %s-%s replace working hours on %s",
            exception.start_time,
            exception.end_time,
            day,
        )
        return [
            TimeRange(
                start=at(day, exception.start_time, timezone),
                end=at(day, exception.end_time, timezone),
            )
        ]

    logger.debug("Employee %s is off on %s (%s)", exception.employee_id, day, exception.type.value)
    return []
