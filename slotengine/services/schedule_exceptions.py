"""
Application service for schedule exceptions: consolidated views, bulk
deletion and bulk creation.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import time
from typing import Callable, Iterable, List, Sequence

import pendulum
from pendulum import Date, DateTime

from ..domain.consolidator import consolidate_exceptions, exception_ids_for, merge_into_ranges
from ..domain.exceptions import (
    ExceptionAlreadyExistsError,
    InvalidRangeError,
    NotFoundError,
)
from ..domain.models import (
    Business,
    ConsolidatedExceptionGroup,
    CreateExceptionsResult,
    ExceptionDateRange,
    ExceptionType,
    ScheduleException,
    iter_dates,
)
from .repository import SchedulingRepositoryProtocol

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _validate_range(date_from: Date, date_to: Date) -> None:
    if date_to < date_from:
        raise InvalidRangeError(f"End date {date_to} is before start date {date_from}")


class ScheduleExceptionService:
    """
    Reads, groups, creates and deletes schedule exceptions of a business.
    """

    def __init__(
        self,
        repository: SchedulingRepositoryProtocol,
        clock: Callable[[str], DateTime] = pendulum.now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory

    async def _get_business(self, business_id: str) -> Business:
        business = await self._repository.get_business(business_id)
        if business is None:
            raise NotFoundError(f"Business {business_id} not found")
        return business

    async def consolidate_exceptions(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
    ) -> List[ConsolidatedExceptionGroup]:
        """
        Group the exceptions in [date_from, date_to] by date, type and reason.

        Raises:
            InvalidRangeError: If date_to is before date_from
        """
        _validate_range(date_from, date_to)

        exceptions, employees = await asyncio.gather(
            self._repository.list_exceptions(business_id, date_from, date_to),
            self._repository.list_employees(business_id),
        )
        names = {employee.id: employee.name for employee in employees}

        return consolidate_exceptions(exceptions, names)

    async def consolidate_ranges(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
    ) -> List[ExceptionDateRange]:
        """Consolidated groups merged into ranges of consecutive dates."""
        groups = await self.consolidate_exceptions(business_id, date_from, date_to)
        return merge_into_ranges(groups)

    async def delete_groups(
        self,
        business_id: str,
        items: Iterable[ConsolidatedExceptionGroup | ExceptionDateRange],
    ) -> int:
        """
        Delete every exception row behind the given groups or ranges.

        Past exceptions are history and cannot be deleted. A range counts as
        past only when its last date lies before today; a running range is
        deleted as a whole.

        Returns:
            Number of deleted rows

        Raises:
            InvalidRangeError: If any group or range ended before today
        """
        items = list(items)
        business = await self._get_business(business_id)
        today = self._clock(business.timezone).date()

        for item in items:
            last_date = item.date if isinstance(item, ConsolidatedExceptionGroup) else item.end_date
            if last_date < today:
                raise InvalidRangeError(
                    f"Past exceptions cannot be deleted ({last_date} is before {today})"
                )

        exception_ids = exception_ids_for(items)
        deleted = await self._repository.delete_exceptions(exception_ids)

        logger.info(
            "Deleted %d schedule exception(s) from %d group(s)",
            deleted,
            len(items),
        )
        return deleted

    async def create_exception(
        self,
        business_id: str,
        employee_id: str,
        day: Date,
        exception_type: ExceptionType,
        start_time: time | None = None,
        end_time: time | None = None,
        reason: str | None = None,
    ) -> ScheduleException:
        """
        Create one exception for an employee and date.

        Raises:
            NotFoundError: If the employee does not belong to the business
            ExceptionAlreadyExistsError: If the date already has an exception
            ValueError: If the times do not match the exception type
        """
        await self._get_employee(business_id, employee_id)

        existing = await self._repository.list_exceptions(business_id, day, day, employee_id)
        if existing:
            raise ExceptionAlreadyExistsError(
                f"Employee {employee_id} already has an exception on {day}"
            )

        exception = ScheduleException(
            id=self._id_factory(),
            employee_id=employee_id,
            date=day,
            type=exception_type,
            start_time=start_time if exception_type is ExceptionType.MODIFIED_HOURS else None,
            end_time=end_time if exception_type is ExceptionType.MODIFIED_HOURS else None,
            reason=reason,
        )
        created = await self._repository.insert_exceptions([exception])
        return created[0]

    async def create_range(
        self,
        business_id: str,
        employee_id: str,
        date_from: Date,
        date_to: Date,
        reason: str | None = None,
    ) -> List[ScheduleException]:
        """
        Mark an employee unavailable on every date of a range.

        Raises:
            InvalidRangeError: If date_to is before date_from
            ExceptionAlreadyExistsError: If any date already has an exception
        """
        _validate_range(date_from, date_to)
        await self._get_employee(business_id, employee_id)

        existing = await self._repository.list_exceptions(
            business_id, date_from, date_to, employee_id
        )
        if existing:
            taken = ", ".join(sorted({str(exception.date) for exception in existing}))
            raise ExceptionAlreadyExistsError(
                f"Exceptions already exist for the following dates: {taken}"
            )

        exceptions = [
            ScheduleException(
                id=self._id_factory(),
                employee_id=employee_id,
                date=day,
                type=ExceptionType.UNAVAILABLE,
                reason=reason,
            )
            for day in iter_dates(date_from, date_to)
        ]
        return await self._repository.insert_exceptions(exceptions)

    async def create_for_all_employees(
        self,
        business_id: str,
        date_from: Date,
        date_to: Date,
        reason: str | None,
        employee_ids: Sequence[str] | None = None,
    ) -> CreateExceptionsResult:
        """
        Mark every active employee (or a subset) unavailable for a range.

        Employee/date pairs that already have an exception are skipped.

        Raises:
            InvalidRangeError: If date_to is before date_from
            NotFoundError: If no active employee matches
        """
        _validate_range(date_from, date_to)

        employees = [
            employee
            for employee in await self._repository.list_employees(business_id)
            if employee.is_active and employee.can_perform_services
        ]
        if employee_ids:
            wanted = set(employee_ids)
            employees = [employee for employee in employees if employee.id in wanted]

        if not employees:
            raise NotFoundError(f"No active employees found for business {business_id}")

        existing = await self._repository.list_exceptions(business_id, date_from, date_to)
        existing_keys = {(exception.employee_id, exception.date) for exception in existing}

        to_create: List[ScheduleException] = []
        skipped = 0

        for employee in employees:
            for day in iter_dates(date_from, date_to):
                if (employee.id, day) in existing_keys:
                    skipped += 1
                    continue
                to_create.append(
                    ScheduleException(
                        id=self._id_factory(),
                        employee_id=employee.id,
                        date=day,
                        type=ExceptionType.UNAVAILABLE,
                        reason=reason,
                    )
                )

        if to_create:
            await self._repository.insert_exceptions(to_create)

        logger.info(
            "Created %d and skipped %d exception(s) for %d employee(s)",
            len(to_create),
            skipped,
            len(employees),
        )

        return CreateExceptionsResult(
            created=len(to_create),
            skipped=skipped,
            employee_names=tuple(employee.name for employee in employees),
        )

    async def _get_employee(self, business_id: str, employee_id: str) -> None:
        employee = await self._repository.get_employee(employee_id)
        if employee is None or employee.business_id != business_id:
            raise NotFoundError(f"Employee {employee_id} not found for business {business_id}")
