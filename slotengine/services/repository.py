"""
Protocol describing the storage behaviour the scheduling services need.

The availability pipeline only ever reads snapshots; the booking commit is
the single write path and runs inside ``booking_lock`` so two commits for
the same employee and date cannot interleave.
"""

from __future__ import annotations

from typing import AsyncContextManager, List, Protocol, Sequence

from pendulum import Date, DateTime

from ..domain.models import (
    Appointment,
    Business,
    Employee,
    ScheduleException,
    Service,
)


class SchedulingRepositoryProtocol(Protocol):
    """Protocol describing the data access needed by the services."""

    async def get_business(self, business_id: str) -> Business | None:
        """Return the business, or None if it does not exist."""

    async def get_service(self, service_id: str) -> Service | None:
        """Return the service, or None if it does not exist."""

    async def list_services(self, business_id: str) -> List[Service]:
        """Return all services of a business."""

    async def get_employee(self, employee_id: str) -> Employee | None:
        """Return the employee, or None if it does not exist."""

    async def list_employees(self, business_id: str) -> List[Employee]:
        """Return all employees of a business."""

    async def list_exceptions(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
        employee_id: str | None = None,
    ) -> List[ScheduleException]:
        """Return exceptions dated within [date_from, date_to]."""

    async def list_appointments(
        self,
        business_id: str,
        start: DateTime,
        end: DateTime,
        employee_id: str | None = None,
    ) -> List[Appointment]:
        """Return appointments overlapping [start, end), in any status."""

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        """
        Store a new appointment.

        Must refuse an appointment that overlaps another blocking appointment
        of the same employee by raising SlotUnavailableError.
        """

    async def insert_exceptions(
        self, exceptions: Sequence[ScheduleException]
    ) -> List[ScheduleException]:
        """Store new schedule exceptions."""

    async def delete_exceptions(self, exception_ids: Sequence[str]) -> int:
        """Delete schedule exceptions by id and return how many were removed."""

    def booking_lock(self, employee_id: str, day: Date) -> AsyncContextManager[None]:
        """Serialize booking commits for one employee and date."""
