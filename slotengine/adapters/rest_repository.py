"""
Scheduling repository backed by the booking application's REST database API.

Talks to a PostgREST endpoint (as exposed by Supabase). Requests are
blocking, so every call is moved off the event loop with
``asyncio.to_thread``; independent reads issued with ``asyncio.gather``
still run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Sequence, Tuple

import requests
from pendulum import Date, DateTime

from ..domain.exceptions import RepositoryError, SlotUnavailableError
from ..domain.models import (
    Appointment,
    Business,
    Employee,
    ScheduleException,
    Service,
)
from .locks import KeyedLock
from .records import (
    LOCAL_TIMESTAMP_FORMAT,
    AppointmentRecord,
    BusinessRecord,
    EmployeeRecord,
    ScheduleExceptionRecord,
    ServiceRecord,
)

logger = logging.getLogger(__name__)

Params = List[Tuple[str, str]]

# Postgres error codes that mean "this time range is already taken"
OVERLAP_ERROR_CODES = ("23P01", "23505")


class RestRepository:
    """
    Repository for the PostgREST tables Business, Service, Employee,
    ScheduleException and Appointment.

    The Appointment table is expected to carry an exclusion constraint on
    (employeeId, tsrange(startTime, endTime)) for pending and confirmed
    rows; a violated constraint is reported as SlotUnavailableError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30,
        session: requests.Session | None = None,
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: API key sent as ``apikey`` and bearer token
            timeout_seconds: Per-request timeout
            session: Optional pre-configured requests session
        """
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1"
        self.timeout_seconds = timeout_seconds
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._session = session or requests.Session()
        self._locks = KeyedLock()

    # --- HTTP helpers -----------------------------------------------------

    def _request(
        self,
        method: str,
        table: str,
        params: Params | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> requests.Response:
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self._session.request(
                method,
                f"{self.endpoint}/{table}",
                headers=headers,
                params=params,
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise RepositoryError(f"Request to {table} failed: {e}") from e

        return response

    def _get_rows(self, table: str, params: Params) -> List[Dict[str, Any]]:
        response = self._request("GET", table, params=params)

        try:
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise RepositoryError(f"Failed to fetch {table}: {e}") from e

        if not isinstance(data, list):
            raise RepositoryError(f"Unexpected response for {table}: {data!r}")
        return data

    def _first(self, table: str, params: Params) -> Dict[str, Any] | None:
        rows = self._get_rows(table, params + [("limit", "1")])
        return rows[0] if rows else None

    @staticmethod
    def _employee_row(row: Dict[str, Any]) -> Dict[str, Any]:
        # Qualifications come embedded from the EmployeeService join table
        if "serviceIds" not in row:
            row = dict(row)
            row["serviceIds"] = [
                link["serviceId"] for link in row.get("EmployeeService") or []
            ]
        return row

    # --- Reads ------------------------------------------------------------

    async def get_business(self, business_id: str) -> Business | None:
        row = await asyncio.to_thread(
            self._first, "Business", [("select", "*"), ("id", f"eq.{business_id}")]
        )
        return BusinessRecord.model_validate(row).to_domain() if row else None

    async def get_service(self, service_id: str) -> Service | None:
        row = await asyncio.to_thread(
            self._first, "Service", [("select", "*"), ("id", f"eq.{service_id}")]
        )
        return ServiceRecord.model_validate(row).to_domain() if row else None

    async def list_services(self, business_id: str) -> List[Service]:
        rows = await asyncio.to_thread(
            self._get_rows,
            "Service",
            [("select", "*"), ("businessId", f"eq.{business_id}")],
        )
        return [ServiceRecord.model_validate(row).to_domain() for row in rows]

    async def get_employee(self, employee_id: str) -> Employee | None:
        row = await asyncio.to_thread(
            self._first,
            "Employee",
            [("select", "*,EmployeeService(serviceId)"), ("id", f"eq.{employee_id}")],
        )
        if not row:
            return None
        return EmployeeRecord.model_validate(self._employee_row(row)).to_domain()

    async def list_employees(self, business_id: str) -> List[Employee]:
        rows = await asyncio.to_thread(
            self._get_rows,
            "Employee",
            [
                ("select", "*,EmployeeService(serviceId)"),
                ("businessId", f"eq.{business_id}"),
                ("order", "id.asc"),
            ],
        )
        return [
            EmployeeRecord.model_validate(self._employee_row(row)).to_domain()
            for row in rows
        ]

    async def list_exceptions(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
        employee_id: str | None = None,
    ) -> List[ScheduleException]:
        params: Params = [
            ("select", "*,employee:Employee!inner(businessId)"),
            ("employee.businessId", f"eq.{business_id}"),
            ("date", f"gte.{date_from.format('YYYY-MM-DD')}"),
            ("date", f"lte.{date_to.format('YYYY-MM-DD')}"),
            ("order", "date.asc"),
        ]
        if employee_id is not None:
            params.append(("employeeId", f"eq.{employee_id}"))

        rows = await asyncio.to_thread(self._get_rows, "ScheduleException", params)
        return [ScheduleExceptionRecord.model_validate(row).to_domain() for row in rows]

    async def list_appointments(
        self,
        business_id: str,
        start: DateTime,
        end: DateTime,
        employee_id: str | None = None,
    ) -> List[Appointment]:
        params: Params = [
            ("select", "*"),
            ("businessId", f"eq.{business_id}"),
            ("startTime", f"lt.{end.format(LOCAL_TIMESTAMP_FORMAT)}"),
            ("endTime", f"gt.{start.format(LOCAL_TIMESTAMP_FORMAT)}"),
            ("order", "startTime.asc"),
        ]
        if employee_id is not None:
            params.append(("employeeId", f"eq.{employee_id}"))

        rows = await asyncio.to_thread(self._get_rows, "Appointment", params)
        timezone = start.timezone_name or "UTC"
        return [AppointmentRecord.model_validate(row).to_domain(timezone) for row in rows]

    # --- Writes -----------------------------------------------------------

    def _insert_appointment(self, appointment: Appointment) -> None:
        payload = AppointmentRecord.from_domain(appointment).model_dump(by_alias=True, mode="json")
        response = self._request(
            "POST", "Appointment", payload=payload, prefer="return=minimal"
        )

        if response.status_code == 409:
            code = ""
            try:
                code = str(response.json().get("code", ""))
            except ValueError:
                pass
            if not code or code in OVERLAP_ERROR_CODES:
                raise SlotUnavailableError(
                    f"Appointment overlaps an existing booking of employee {appointment.employee_id}"
                )

        try:
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise RepositoryError(f"Failed to create appointment: {e}") from e

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        await asyncio.to_thread(self._insert_appointment, appointment)
        return appointment

    def _insert_exceptions(self, exceptions: Sequence[ScheduleException]) -> None:
        payload = [
            ScheduleExceptionRecord.from_domain(exception).model_dump(by_alias=True, mode="json")
            for exception in exceptions
        ]
        response = self._request(
            "POST", "ScheduleException", payload=payload, prefer="return=minimal"
        )
        try:
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise RepositoryError(f"Failed to create schedule exceptions: {e}") from e

    async def insert_exceptions(
        self, exceptions: Sequence[ScheduleException]
    ) -> List[ScheduleException]:
        if exceptions:
            await asyncio.to_thread(self._insert_exceptions, exceptions)
        return list(exceptions)

    def _delete_exceptions(self, exception_ids: Sequence[str]) -> int:
        response = self._request(
            "DELETE",
            "ScheduleException",
            params=[("id", f"in.({','.join(exception_ids)})")],
            prefer="return=representation",
        )
        try:
            response.raise_for_status()
            return len(response.json())
        except (requests.exceptions.RequestException, ValueError) as e:
            raise RepositoryError(f"Failed to delete schedule exceptions: {e}") from e

    async def delete_exceptions(self, exception_ids: Sequence[str]) -> int:
        if not exception_ids:
            return 0
        return await asyncio.to_thread(self._delete_exceptions, exception_ids)

    @asynccontextmanager
    async def booking_lock(self, employee_id: str, day: Date) -> AsyncIterator[None]:
        # Serializes commits within this process; across processes the
        # database exclusion constraint rejects the loser of a race.
        async with self._locks.hold((employee_id, day)):
            yield
