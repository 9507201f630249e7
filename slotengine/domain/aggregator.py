"""
Merge per-employee slot lists and pick an employee for a booking.
"""

import logging
from collections import Counter
from typing import Dict, List, Mapping, Sequence

from pendulum import DateTime

from .exceptions import SlotUnavailableError
from .models import Appointment, AppointmentStatus, AvailableEmployee, TimeSlot

logger = logging.getLogger(__name__)


def aggregate_slots(
    per_employee_slots: Mapping[AvailableEmployee, Sequence[DateTime]],
) -> List[TimeSlot]:
    """
    Merge the slot lists of several employees into one list keyed by time.

    Every distinct start time becomes a single TimeSlot listing exactly the
    employees whose own list contains it. Slots are sorted by time, the
    employees of a slot by id.
    """
    by_time: Dict[DateTime, List[AvailableEmployee]] = {}

    for employee, slot_times in per_employee_slots.items():
        for slot_time in set(slot_times):
            by_time.setdefault(slot_time, []).append(employee)

    return [
        TimeSlot(
            time=slot_time,
            available_employees=tuple(sorted(employees, key=lambda e: e.id)),
        )
        for slot_time, employees in sorted(by_time.items(), key=lambda item: item[0])
    ]


def appointment_load(appointments: Sequence[Appointment]) -> Counter:
    """Count the confirmed appointments per employee."""
    return Counter(
        appointment.employee_id
        for appointment in appointments
        if appointment.status is AppointmentStatus.CONFIRMED
    )


def choose_employee(
    candidates: Sequence[AvailableEmployee],
    appointments: Sequence[Appointment],
) -> AvailableEmployee:
    """
    Pick the least-loaded employee for an automatic assignment.

    Load is the number of confirmed appointments on the booking date;
    pending requests do not count. Ties go to the lowest employee id, so
    identical inputs always yield the same employee.

    Raises:
        SlotUnavailableError: If there is no candidate left
    """
    if not candidates:
        raise SlotUnavailableError("No employee is available for this slot")

    load = appointment_load(appointments)
    chosen = min(candidates, key=lambda employee: (load[employee.id], employee.id))

    logger.debug(
        "Auto-assigned employee %s (%d appointment(s)) out of %d candidate(s)",
        chosen.id,
        load[chosen.id],
        len(candidates),
    )

    return chosen
