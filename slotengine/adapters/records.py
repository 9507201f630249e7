"""
Row schemas shared by the storage adapters.

Rows arrive as camelCase JSON (the booking application's database
columns). Pydantic validates them and converts them into domain objects;
the loosely shaped hours JSON becomes the explicit ``OpenDay`` /
``ClosedDay`` variant here, so nothing downstream has to guess.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..domain.models import (
    CLOSED,
    DEFAULT_TIMEZONE,
    WEEKDAY_NAMES,
    Appointment,
    AppointmentStatus,
    Business,
    DayHours,
    Employee,
    ExceptionType,
    LunchBreak,
    OpenDay,
    ScheduleException,
    Service,
    WeeklyHours,
    parse_clock,
    parse_date,
)

LOCAL_TIMESTAMP_FORMAT = "YYYY-MM-DDTHH:mm:ss"


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class DayHoursRecord(_Record):
    """
    One weekday of stored hours.

    Two shapes exist: business hours use ``open``/``close`` and imply a
    lunch break by the presence of ``lunchStart``; employee hours use
    ``start``/``end`` with an explicit ``hasLunchBreak`` flag.
    """
    is_open: bool | None = None
    open: str | None = None
    close: str | None = None
    start: str | None = None
    end: str | None = None
    has_lunch_break: bool | None = None
    lunch_start: str | None = None
    lunch_end: str | None = None

    def to_day_hours(self) -> DayHours:
        if self.is_open is False:
            return CLOSED

        opening = self.open or self.start
        closing = self.close or self.end
        if not opening or not closing:
            return CLOSED

        wants_lunch = (
            self.has_lunch_break
            if self.has_lunch_break is not None
            else bool(self.lunch_start)
        )
        lunch = None
        if wants_lunch and self.lunch_start and self.lunch_end:
            lunch = LunchBreak(
                start=parse_clock(self.lunch_start),
                end=parse_clock(self.lunch_end),
            )

        return OpenDay(
            open=parse_clock(opening),
            close=parse_clock(closing),
            lunch=lunch,
        )


def parse_weekly_hours(raw: Mapping[str, Any] | None) -> WeeklyHours:
    """
    Convert a ``{"monday": {...}, ...}`` mapping into WeeklyHours.

    Weekdays that are missing or null are left out, which keeps employee
    overrides sparse.
    """
    days: Dict[int, DayHours] = {}

    for index, name in enumerate(WEEKDAY_NAMES):
        value = (raw or {}).get(name)
        if value is None:
            continue
        days[index] = DayHoursRecord.model_validate(value).to_day_hours()

    return WeeklyHours(days=days)


def parse_timestamp(value: str, timezone: str) -> DateTime:
    """
    Parse a stored timestamp into the business timezone.

    Timestamps without an offset are business-local wall-clock times.
    """
    parsed = pendulum.parse(value, tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse timestamp: {value}")
    return parsed.in_timezone(timezone)


class BusinessRecord(_Record):
    id: str
    name: str = ""
    timezone: str = DEFAULT_TIMEZONE
    business_hours: Dict[str, Any] = Field(default_factory=dict)
    accept_appointments_automatically: bool = True

    def to_domain(self) -> Business:
        return Business(
            id=self.id,
            name=self.name,
            business_hours=parse_weekly_hours(self.business_hours),
            timezone=self.timezone,
            accept_appointments_automatically=self.accept_appointments_automatically,
        )


class ServiceRecord(_Record):
    id: str
    business_id: str
    name: str = ""
    duration: int
    buffer_before: int = 0
    buffer_after: int = 0

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            business_id=self.business_id,
            name=self.name,
            duration=self.duration,
            buffer_before=self.buffer_before,
            buffer_after=self.buffer_after,
        )


class EmployeeRecord(_Record):
    id: str
    business_id: str
    name: str
    service_ids: List[str] = Field(default_factory=list)
    is_active: bool = True
    can_perform_services: bool = True
    working_hours: Dict[str, Any] | None = None

    def to_domain(self) -> Employee:
        return Employee(
            id=self.id,
            business_id=self.business_id,
            name=self.name,
            service_ids=tuple(self.service_ids),
            is_active=self.is_active,
            can_perform_services=self.can_perform_services,
            working_hours=(
                parse_weekly_hours(self.working_hours)
                if self.working_hours is not None
                else None
            ),
        )


class ScheduleExceptionRecord(_Record):
    id: str
    employee_id: str
    date: str
    type: ExceptionType
    start_time: str | None = None
    end_time: str | None = None
    reason: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, value: Any) -> str:
        """Keep only the date part of timestamps (YAML may hand us date objects)."""
        return str(value)[:10]

    def to_domain(self) -> ScheduleException:
        # Whole-day rows may still carry stale times from an earlier edit
        timed = self.type is ExceptionType.MODIFIED_HOURS
        return ScheduleException(
            id=self.id,
            employee_id=self.employee_id,
            date=parse_date(self.date),
            type=self.type,
            start_time=parse_clock(self.start_time) if timed and self.start_time else None,
            end_time=parse_clock(self.end_time) if timed and self.end_time else None,
            reason=self.reason,
        )

    @classmethod
    def from_domain(cls, exception: ScheduleException) -> "ScheduleExceptionRecord":
        return cls(
            id=exception.id,
            employee_id=exception.employee_id,
            date=exception.date.format("YYYY-MM-DD"),
            type=exception.type,
            start_time=exception.start_time.strftime("%H:%M") if exception.start_time else None,
            end_time=exception.end_time.strftime("%H:%M") if exception.end_time else None,
            reason=exception.reason,
        )


class AppointmentRecord(_Record):
    id: str
    business_id: str
    employee_id: str
    service_id: str
    start_time: str
    end_time: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    customer_id: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_timestamp(cls, value: Any) -> Any:
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return value

    def to_domain(self, timezone: str = DEFAULT_TIMEZONE) -> Appointment:
        return Appointment(
            id=self.id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            service_id=self.service_id,
            start=parse_timestamp(self.start_time, timezone),
            end=parse_timestamp(self.end_time, timezone),
            status=self.status,
            customer_id=self.customer_id,
        )

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentRecord":
        return cls(
            id=appointment.id,
            business_id=appointment.business_id,
            employee_id=appointment.employee_id,
            service_id=appointment.service_id,
            start_time=appointment.start.format(LOCAL_TIMESTAMP_FORMAT),
            end_time=appointment.end.format(LOCAL_TIMESTAMP_FORMAT),
            status=appointment.status,
            customer_id=appointment.customer_id,
        )
