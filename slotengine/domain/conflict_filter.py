"""
Remove time occupied by existing appointments from available intervals.
"""

import logging
from typing import List, Mapping, Sequence

from . import intervals
from .models import Appointment, Service, TimeRange

logger = logging.getLogger(__name__)


def blocked_range(appointment: Appointment, service: Service | None) -> TimeRange:
    """
    Return the time an appointment keeps its employee busy.

    The appointment's own service buffers widen the booked range, since
    they protect its setup and cleanup time.
    """
    if service is None:
        return appointment.time_range
    return appointment.time_range.expand(
        before_minutes=service.buffer_before,
        after_minutes=service.buffer_after,
    )


def blocked_ranges(
    appointments: Sequence[Appointment],
    services: Mapping[str, Service],
) -> List[TimeRange]:
    """Collect the buffered ranges of all appointments that still block time."""
    ranges: List[TimeRange] = []

    for appointment in appointments:
        if not appointment.blocks_time:
            continue

        service = services.get(appointment.service_id)
        if service is None:
            logger.warning(
                "Unknown service %s for appointment %s; ignoring buffers",
                appointment.service_id,
                appointment.id,
            )
        ranges.append(blocked_range(appointment, service))

    return sorted(ranges, key=lambda r: r.start)


def filter_conflicts(
    available: Sequence[TimeRange],
    appointments: Sequence[Appointment],
    services: Mapping[str, Service],
) -> List[TimeRange]:
    """
    Subtract booked time from the available intervals of one employee.

    Args:
        available: Intervals left after exceptions were applied
        appointments: The employee's appointments on the same date
        services: Services by id, used for each appointment's buffers

    Returns:
        Free intervals, sorted by start time
    """
    busy = blocked_ranges(appointments, services)
    free = intervals.subtract(available, busy)

    logger.debug(
        "%d busy range(s) leave %d free interval(s)",
        len(busy),
        len(free),
    )

    return free
