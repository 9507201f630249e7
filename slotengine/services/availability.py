"""
Application service computing bookable slots.

The service fetches one snapshot of everything a date range depends on
(business hours, employees, exceptions, appointments, services), issuing
independent reads concurrently, and then runs the pure pipeline:

    resolve working hours -> apply exceptions -> filter conflicts
    -> generate slots -> aggregate over employees

Dependency inversion toward a repository protocol keeps the pipeline free
of I/O and lets tests plug in the in-memory repository.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import time
from typing import Callable, Dict, List, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.aggregator import aggregate_slots
from ..domain.conflict_filter import blocked_range, filter_conflicts
from ..domain.exception_applier import apply_exceptions
from ..domain.exceptions import InvalidRangeError, NotFoundError
from ..domain.models import (
    Appointment,
    AvailableEmployee,
    Business,
    DayAvailability,
    Employee,
    ScheduleException,
    Service,
    TimeRange,
    TimeSlot,
    at,
    iter_dates,
)
from ..domain.slot_generator import SlotGenerator
from ..domain.working_hours import resolve_working_hours
from .repository import SchedulingRepositoryProtocol

logger = logging.getLogger(__name__)

Clock = Callable[[str], DateTime]


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Point-in-time data needed to compute availability for a date range."""
    business: Business
    service: Service
    employees: Tuple[Employee, ...]
    services: Dict[str, Service]
    exceptions: Tuple[ScheduleException, ...]
    appointments: Tuple[Appointment, ...]
    now: DateTime

    @property
    def timezone(self) -> str:
        return self.business.timezone

    @property
    def today(self) -> Date:
        return self.now.date()

    def day_window(self, day: Date) -> TimeRange:
        start = at(day, time(0, 0), self.timezone)
        return TimeRange(start=start, end=start.add(days=1))

    def exceptions_for(self, employee_id: str, day: Date) -> List[ScheduleException]:
        return [
            exception
            for exception in self.exceptions
            if exception.employee_id == employee_id and exception.date == day
        ]

    def appointments_for(self, day: Date, employee_id: str | None = None) -> List[Appointment]:
        """Appointments whose booked time overlaps the date."""
        window = self.day_window(day)
        return [
            appointment
            for appointment in self.appointments
            if (employee_id is None or appointment.employee_id == employee_id)
            and appointment.time_range.overlaps(window)
        ]

    def conflicts_for(self, employee_id: str, day: Date) -> List[Appointment]:
        """
        Appointments of an employee whose buffered time reaches into the date.

        A late appointment on the previous day can block the first minutes
        after midnight through its buffer.
        """
        window = self.day_window(day)
        return [
            appointment
            for appointment in self.appointments
            if appointment.employee_id == employee_id
            and blocked_range(
                appointment, self.services.get(appointment.service_id)
            ).overlaps(window)
        ]


class AvailabilityService:
    """
    Orchestrates data retrieval and the availability pipeline.
    """

    def __init__(
        self,
        repository: SchedulingRepositoryProtocol,
        slot_generator: SlotGenerator,
        clock: Clock = pendulum.now,
    ) -> None:
        self._repository = repository
        self._slot_generator = slot_generator
        self._clock = clock

    @property
    def repository(self) -> SchedulingRepositoryProtocol:
        return self._repository

    async def compute_available_slots(
        self,
        business_id: str,
        service_id: str,
        day: Date,
        employee_id: str | None = None,
    ) -> List[TimeSlot]:
        """
        Return the aggregated slots of a service on a date.

        Without an employee every active, qualified employee is considered
        and slots list all employees free at that time.

        Raises:
            NotFoundError: If the business, service or employee is missing
        """
        snapshot = await self.load_snapshot(
            business_id=business_id,
            service_id=service_id,
            date_from=day,
            date_to=day,
            employee_id=employee_id,
        )
        return self.calculate_slots(snapshot, day)

    async def get_available_dates(
        self,
        business_id: str,
        service_id: str,
        start_date: Date,
        end_date: Date,
        employee_id: str | None = None,
    ) -> List[DayAvailability]:
        """
        Report for each date in a range whether any slot is free.

        Raises:
            InvalidRangeError: If end_date is before start_date
        """
        if end_date < start_date:
            raise InvalidRangeError(f"End date {end_date} is before start date {start_date}")

        snapshot = await self.load_snapshot(
            business_id=business_id,
            service_id=service_id,
            date_from=start_date,
            date_to=end_date,
            employee_id=employee_id,
        )

        return [
            DayAvailability(
                date=day,
                has_availability=bool(self.calculate_slots(snapshot, day)),
            )
            for day in iter_dates(start_date, end_date)
        ]

    async def is_slot_available(
        self,
        business_id: str,
        service_id: str,
        employee_id: str,
        day: Date,
        start_time: time,
    ) -> bool:
        """Check if one employee can still take the service at a given time."""
        snapshot = await self.load_snapshot(
            business_id=business_id,
            service_id=service_id,
            date_from=day,
            date_to=day,
            employee_id=employee_id,
        )
        if not snapshot.employees:
            return False

        return self.fits(
            snapshot,
            snapshot.employees[0],
            day,
            at(day, start_time, snapshot.timezone),
        )

    async def load_snapshot(
        self,
        *,
        business_id: str,
        service_id: str,
        date_from: Date,
        date_to: Date,
        employee_id: str | None = None,
    ) -> ScheduleSnapshot:
        """Fetch everything the pipeline needs for a date range."""
        if employee_id is not None:
            employee_lookup = self._fetch_employee(business_id, employee_id)
        else:
            employee_lookup = self._repository.list_employees(business_id)

        business, service, employees, services = await asyncio.gather(
            self._repository.get_business(business_id),
            self._repository.get_service(service_id),
            employee_lookup,
            self._repository.list_services(business_id),
        )

        if business is None:
            raise NotFoundError(f"Business {business_id} not found")
        if service is None or service.business_id != business_id:
            raise NotFoundError(f"Service {service_id} not found for business {business_id}")

        qualified = tuple(
            employee for employee in employees if employee.can_perform(service_id)
        )

        services_by_id = {s.id: s for s in services}
        services_by_id[service.id] = service

        # Buffers of appointments on neighbouring days may cross midnight
        margin = max(
            (max(s.buffer_before, s.buffer_after) for s in services_by_id.values()),
            default=0,
        )
        window_start = at(date_from, time(0, 0), business.timezone).subtract(minutes=margin)
        window_end = at(date_to, time(0, 0), business.timezone).add(days=1, minutes=margin)

        exceptions, appointments = await asyncio.gather(
            self._repository.list_exceptions(business_id, date_from, date_to, employee_id),
            self._repository.list_appointments(business_id, window_start, window_end, employee_id),
        )

        return ScheduleSnapshot(
            business=business,
            service=service,
            employees=qualified,
            services=services_by_id,
            exceptions=tuple(exceptions),
            appointments=tuple(appointments),
            now=self._clock(business.timezone),
        )

    async def _fetch_employee(self, business_id: str, employee_id: str) -> List[Employee]:
        employee = await self._repository.get_employee(employee_id)
        if employee is None or employee.business_id != business_id:
            raise NotFoundError(f"Employee {employee_id} not found for business {business_id}")
        return [employee]

    # --- Pure pipeline --------------------------------------------------

    def calculate_slots(self, snapshot: ScheduleSnapshot, day: Date) -> List[TimeSlot]:
        """Run the pipeline for every employee in the snapshot and merge the results."""
        per_employee: Dict[AvailableEmployee, List[DateTime]] = {}

        for employee in snapshot.employees:
            slot_times = self.employee_slot_times(snapshot, employee, day)
            if slot_times:
                per_employee[AvailableEmployee(id=employee.id, name=employee.name)] = slot_times

        slots = aggregate_slots(per_employee)

        logger.debug(
            "%d slot(s) for service %s on %s across %d employee(s)",
            len(slots),
            snapshot.service.id,
            day,
            len(snapshot.employees),
        )

        return slots

    def free_intervals(
        self, snapshot: ScheduleSnapshot, employee: Employee, day: Date
    ) -> List[TimeRange]:
        """Working hours, adjusted by exceptions, minus booked time."""
        working = resolve_working_hours(
            day,
            snapshot.business.business_hours,
            employee.working_hours,
            snapshot.timezone,
        )
        available = apply_exceptions(
            working,
            snapshot.exceptions_for(employee.id, day),
            day,
            snapshot.timezone,
        )
        return filter_conflicts(
            available,
            snapshot.conflicts_for(employee.id, day),
            snapshot.services,
        )

    def employee_slot_times(
        self, snapshot: ScheduleSnapshot, employee: Employee, day: Date
    ) -> List[DateTime]:
        """Slot start times of one employee on one date."""
        free = self.free_intervals(snapshot, employee, day)
        not_before = snapshot.now if day == snapshot.today else None

        return self._slot_generator.generate(
            free,
            snapshot.service.duration,
            day,
            snapshot.today,
            not_before=not_before,
        )

    def fits(
        self,
        snapshot: ScheduleSnapshot,
        employee: Employee,
        day: Date,
        start: DateTime,
    ) -> bool:
        """
        Check if the service fits at an exact start time for an employee.

        Applies the same horizon and conflict rules as slot generation but
        does not require the start to lie on a slot boundary.
        """
        if not self._slot_generator.is_bookable_date(day, snapshot.today):
            return False
        if day == snapshot.today and start < snapshot.now:
            return False

        wanted = TimeRange(start=start, end=start.add(minutes=snapshot.service.duration))
        return any(
            interval.contains(wanted)
            for interval in self.free_intervals(snapshot, employee, day)
        )


def employees_by_id(employees: Sequence[Employee]) -> Dict[str, Employee]:
    return {employee.id: employee for employee in employees}
