"""
Discretize free intervals into bookable start times.

This is pure domain logic without any external dependencies (no API calls,
no database, no I/O).
"""

import logging
from typing import List, Sequence

from pendulum import Date, DateTime

from .models import TimeRange

logger = logging.getLogger(__name__)

ALLOWED_SLOT_INTERVALS = (15, 30, 60)


class SlotGenerator:
    """
    Generates candidate start times inside free intervals.

    Algorithm:
    1. Reject dates outside the booking horizon
    2. For each free interval, round its start up to the next slot boundary
    3. Emit a start every ``slot_interval`` minutes while the whole service
       duration still fits before the interval ends
    """

    def __init__(self, slot_interval: int = 30, max_advance_booking_days: int = 60):
        if slot_interval not in ALLOWED_SLOT_INTERVALS:
            raise ValueError(
                f"slot_interval must be one of {ALLOWED_SLOT_INTERVALS}, got {slot_interval}"
            )
        if max_advance_booking_days < 0:
            raise ValueError("max_advance_booking_days must not be negative")

        self.slot_interval = slot_interval
        self.max_advance_booking_days = max_advance_booking_days

    def is_bookable_date(self, day: Date, today: Date) -> bool:
        """Check if a date lies within [today, today + max_advance_booking_days]."""
        return today <= day <= today.add(days=self.max_advance_booking_days)

    def generate(
        self,
        free_intervals: Sequence[TimeRange],
        duration_minutes: int,
        day: Date,
        today: Date,
        not_before: DateTime | None = None,
    ) -> List[DateTime]:
        """
        Generate slot start times for one employee and date.

        Args:
            free_intervals: Free intervals left after conflicts were removed
            duration_minutes: Duration of the service being booked
            day: The date the intervals belong to
            today: Current business-local date, start of the booking horizon
            not_before: Optional instant; earlier start times are skipped

        Returns:
            Sorted start times whose full duration fits in a free interval
        """
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be greater than zero")

        if not self.is_bookable_date(day, today):
            logger.debug("%s is outside the booking horizon starting %s", day, today)
            return []

        slots: List[DateTime] = []

        for interval in sorted(free_intervals, key=lambda r: r.start):
            current = self._first_boundary(interval.start)

            while current.add(minutes=duration_minutes) <= interval.end:
                if not_before is None or current >= not_before:
                    slots.append(current)
                current = current.add(minutes=self.slot_interval)

        return slots

    def _first_boundary(self, start: DateTime) -> DateTime:
        """
        Round a start time up to the next slot boundary.

        Boundaries are counted in wall-clock minutes from local midnight,
        so 09:10 with a 30 minute interval becomes 09:30.
        """
        floored = start.set(second=0, microsecond=0)
        remainder = (floored.hour * 60 + floored.minute) % self.slot_interval

        if remainder == 0 and floored == start:
            return start

        return floored.add(minutes=self.slot_interval - remainder)
