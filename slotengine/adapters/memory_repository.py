"""
In-memory scheduling repository.

Serves a snapshot loaded from a JSON or YAML file (or built in code) and
is used by the CLI's offline mode and by the tests. Writes stay in memory.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Sequence

import yaml
from pendulum import Date, DateTime

from ..domain.exceptions import SlotUnavailableError
from ..domain.models import (
    DEFAULT_TIMEZONE,
    Appointment,
    Business,
    Employee,
    ScheduleException,
    Service,
)
from .locks import KeyedLock
from .records import (
    AppointmentRecord,
    BusinessRecord,
    EmployeeRecord,
    ScheduleExceptionRecord,
    ServiceRecord,
)

logger = logging.getLogger(__name__)


class InMemoryRepository:
    """
    Repository backed by plain dictionaries.

    Appointment inserts are checked for overlaps with other blocking
    appointments of the same employee, the same guarantee a database
    exclusion constraint gives the REST adapter.
    """

    def __init__(
        self,
        businesses: Iterable[Business] = (),
        services: Iterable[Service] = (),
        employees: Iterable[Employee] = (),
        exceptions: Iterable[ScheduleException] = (),
        appointments: Iterable[Appointment] = (),
    ):
        self._businesses: Dict[str, Business] = {b.id: b for b in businesses}
        self._services: Dict[str, Service] = {s.id: s for s in services}
        self._employees: Dict[str, Employee] = {e.id: e for e in employees}
        self._exceptions: Dict[str, ScheduleException] = {e.id: e for e in exceptions}
        self._appointments: Dict[str, Appointment] = {a.id: a for a in appointments}
        self._locks = KeyedLock()

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "InMemoryRepository":
        """
        Build a repository from snapshot rows.

        Expected keys: businesses, services, employees, scheduleExceptions,
        appointments (each a list of camelCase rows).
        """
        businesses = [
            BusinessRecord.model_validate(row).to_domain()
            for row in data.get("businesses") or []
        ]
        timezones = {business.id: business.timezone for business in businesses}

        appointments = []
        for row in data.get("appointments") or []:
            record = AppointmentRecord.model_validate(row)
            timezone = timezones.get(record.business_id, DEFAULT_TIMEZONE)
            appointments.append(record.to_domain(timezone))

        return cls(
            businesses=businesses,
            services=[
                ServiceRecord.model_validate(row).to_domain()
                for row in data.get("services") or []
            ],
            employees=[
                EmployeeRecord.model_validate(row).to_domain()
                for row in data.get("employees") or []
            ],
            exceptions=[
                ScheduleExceptionRecord.model_validate(row).to_domain()
                for row in data.get("scheduleExceptions") or []
            ],
            appointments=appointments,
        )

    @classmethod
    def load_from_file(cls, data_path: Path) -> "InMemoryRepository":
        """
        Load a snapshot from a JSON or YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a valid snapshot
        """
        if not data_path.exists():
            raise FileNotFoundError(f"Data file not found: {data_path}")

        try:
            with open(data_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid data file {data_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Data file must contain a mapping at the root level.")

        repository = cls.from_snapshot(data)
        logger.info(
            "Loaded snapshot from %s: %d employee(s), %d exception(s), %d appointment(s)",
            data_path,
            len(repository._employees),
            len(repository._exceptions),
            len(repository._appointments),
        )
        return repository

    async def get_business(self, business_id: str) -> Business | None:
        return self._businesses.get(business_id)

    async def get_service(self, service_id: str) -> Service | None:
        return self._services.get(service_id)

    async def list_services(self, business_id: str) -> List[Service]:
        return [s for s in self._services.values() if s.business_id == business_id]

    async def get_employee(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)

    async def list_employees(self, business_id: str) -> List[Employee]:
        employees = [e for e in self._employees.values() if e.business_id == business_id]
        return sorted(employees, key=lambda e: e.id)

    async def list_exceptions(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
        employee_id: str | None = None,
    ) -> List[ScheduleException]:
        result: List[ScheduleException] = []

        for exception in self._exceptions.values():
            employee = self._employees.get(exception.employee_id)
            if employee is None or employee.business_id != business_id:
                continue
            if employee_id is not None and exception.employee_id != employee_id:
                continue
            if date_from <= exception.date <= date_to:
                result.append(exception)

        return sorted(result, key=lambda e: (e.date, e.employee_id, e.id))

    async def list_appointments(
        self,
        business_id: str,
        start: DateTime,
        end: DateTime,
        employee_id: str | None = None,
    ) -> List[Appointment]:
        result = [
            appointment
            for appointment in self._appointments.values()
            if appointment.business_id == business_id
            and (employee_id is None or appointment.employee_id == employee_id)
            and appointment.start < end
            and appointment.end > start
        ]
        return sorted(result, key=lambda a: a.start)

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        if appointment.blocks_time:
            for existing in self._appointments.values():
                if (
                    existing.employee_id == appointment.employee_id
                    and existing.blocks_time
                    and existing.time_range.overlaps(appointment.time_range)
                ):
                    raise SlotUnavailableError(
                        f"Appointment overlaps {existing.id} of employee {appointment.employee_id}"
                    )

        self._appointments[appointment.id] = appointment
        return appointment

    async def insert_exceptions(
        self, exceptions: Sequence[ScheduleException]
    ) -> List[ScheduleException]:
        for exception in exceptions:
            self._exceptions[exception.id] = exception
        return list(exceptions)

    async def delete_exceptions(self, exception_ids: Sequence[str]) -> int:
        deleted = 0
        for exception_id in exception_ids:
            if self._exceptions.pop(exception_id, None) is not None:
                deleted += 1
        return deleted

    @asynccontextmanager
    async def booking_lock(self, employee_id: str, day: Date) -> AsyncIterator[None]:
        async with self._locks.hold((employee_id, day)):
            yield
