"""
Booking commit: turn a listed slot into an appointment without double-booking.

A slot list is a snapshot and may be stale by the time a customer books.
The commit therefore re-reads the chosen employee's day under the
repository's booking lock, re-checks that the service still fits, and only
then inserts; the store additionally rejects overlapping inserts.
Losing the race raises SlotUnavailableError, after which the caller
recomputes availability.
"""

from __future__ import annotations

import logging
import uuid
from datetime import time
from typing import Callable

from pendulum import Date

from ..domain.aggregator import choose_employee
from ..domain.exceptions import SlotUnavailableError
from ..domain.models import Appointment, AppointmentStatus, at
from .availability import AvailabilityService, employees_by_id

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class BookingService:
    """
    Commits bookings against the current availability.
    """

    def __init__(
        self,
        availability_service: AvailabilityService,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._availability = availability_service
        self._repository = availability_service.repository
        self._id_factory = id_factory

    async def commit_booking(
        self,
        business_id: str,
        service_id: str,
        employee_id: str | None,
        day: Date,
        start_time: time,
        customer_id: str | None = None,
    ) -> Appointment:
        """
        Book a service at a date and time.

        Args:
            business_id: Business the booking belongs to
            service_id: Service being booked
            employee_id: Explicit employee, or None to auto-assign the
                least-loaded available employee
            day: Booking date (business-local)
            start_time: Slot start time (business-local)
            customer_id: Optional customer reference

        Returns:
            The stored appointment

        Raises:
            NotFoundError: If the business, service or employee is missing
            SlotUnavailableError: If nobody can take the slot anymore
        """
        snapshot = await self._availability.load_snapshot(
            business_id=business_id,
            service_id=service_id,
            date_from=day,
            date_to=day,
            employee_id=employee_id,
        )
        start = at(day, start_time, snapshot.timezone)

        slots = self._availability.calculate_slots(snapshot, day)
        slot = next((s for s in slots if s.time == start), None)
        if slot is None or not slot.available:
            raise SlotUnavailableError(
                f"No employee is available for service {service_id} at {start.format('DD.MM.YYYY HH:mm')}"
            )

        if employee_id is not None:
            chosen_id = employee_id
        else:
            chosen_id = choose_employee(
                slot.available_employees,
                snapshot.appointments_for(day),
            ).id

        async with self._repository.booking_lock(chosen_id, day):
            fresh = await self._availability.load_snapshot(
                business_id=business_id,
                service_id=service_id,
                date_from=day,
                date_to=day,
                employee_id=chosen_id,
            )
            employee = employees_by_id(fresh.employees).get(chosen_id)

            if employee is None or not self._availability.fits(fresh, employee, day, start):
                logger.info(
                    "Slot %s for employee %s was taken before commit",
                    start,
                    chosen_id,
                )
                raise SlotUnavailableError(
                    f"Employee {chosen_id} is no longer available at {start.format('DD.MM.YYYY HH:mm')}"
                )

            status = (
                AppointmentStatus.CONFIRMED
                if fresh.business.accept_appointments_automatically
                else AppointmentStatus.PENDING
            )
            appointment = Appointment(
                id=self._id_factory(),
                business_id=business_id,
                employee_id=chosen_id,
                service_id=service_id,
                start=start,
                end=start.add(minutes=fresh.service.duration),
                status=status,
                customer_id=customer_id,
            )
            stored = await self._repository.insert_appointment(appointment)

        logger.info(
            "Booked appointment %s: service %s with employee %s at %s (%s)",
            stored.id,
            service_id,
            chosen_id,
            start,
            status.value,
        )

        return stored
