"""
Domain models for working hours, schedule exceptions, appointments and slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import List, Mapping, Tuple, Union

import pendulum
from pendulum import Date, DateTime


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_TIMEZONE = "Europe/Zurich"


def at(day: Date, clock: time, timezone: str) -> DateTime:
    """Combine a calendar date and a wall-clock time in the given timezone."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        clock.hour,
        clock.minute,
        tz=timezone,
    )


def parse_date(value: str) -> Date:
    """Parse a ``YYYY-MM-DD`` string into a pendulum Date."""
    return pendulum.from_format(value, "YYYY-MM-DD").date()


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a time of day."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: '{value}' (expected HH:MM)")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid time of day: '{value}' (expected HH:MM)") from exc
    return time(hour=hour, minute=minute)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies completely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def expand(self, before_minutes: int = 0, after_minutes: int = 0) -> "TimeRange":
        """Return a copy widened by the given minutes on each side."""
        return TimeRange(
            start=self.start.subtract(minutes=before_minutes),
            end=self.end.add(minutes=after_minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


# --- Working hours -------------------------------------------------------


@dataclass(frozen=True)
class LunchBreak:
    """A daily break that splits the working day in two."""
    start: time
    end: time


@dataclass(frozen=True)
class ClosedDay:
    """Nobody works on this day."""

    is_open = False


@dataclass(frozen=True)
class OpenDay:
    """
    Opening hours of a single day, optionally split by a lunch break.

    Invariants: open < close; with a lunch break
    open <= lunch.start < lunch.end <= close.
    """
    open: time
    close: time
    lunch: LunchBreak | None = None

    is_open = True

    def __post_init__(self):
        if self.open >= self.close:
            raise ValueError(f"Opening time {self.open} must be before closing time {self.close}")
        if self.lunch is not None:
            if not self.open <= self.lunch.start < self.lunch.end <= self.close:
                raise ValueError(
                    f"Lunch break {self.lunch.start}-{self.lunch.end} must lie within "
                    f"{self.open}-{self.close}"
                )


DayHours = Union[ClosedDay, OpenDay]

CLOSED = ClosedDay()


@dataclass(frozen=True)
class WeeklyHours:
    """
    Weekly schedule keyed by weekday (0=Monday, 6=Sunday).

    Business hours list every day they know about; employee overrides are
    sparse and only contain the weekdays they replace.
    """
    days: Mapping[int, DayHours] = field(default_factory=dict)

    def __post_init__(self):
        invalid_days = [day for day in self.days if day not in range(7)]
        if invalid_days:
            raise ValueError(f"Weekdays must be between 0 and 6, got {invalid_days}")

    def for_weekday(self, weekday: int) -> DayHours | None:
        """Return the hours for a weekday, or None if the weekday is not set."""
        return self.days.get(weekday)

    def for_date(self, day: Date) -> DayHours | None:
        """Return the hours that apply to a calendar date."""
        return self.for_weekday(day.weekday())


# --- Exceptions, services, employees -------------------------------------


class ExceptionType(str, Enum):
    UNAVAILABLE = "unavailable"
    MODIFIED_HOURS = "modified_hours"
    HOLIDAY = "holiday"

    @property
    def is_whole_day(self) -> bool:
        """Whole-day exceptions take the employee off for the entire date."""
        return self is not ExceptionType.MODIFIED_HOURS


@dataclass(frozen=True)
class ScheduleException:
    """
    A dated override of one employee's working hours.

    Modified hours need both times with start before end; whole-day
    exceptions carry no times at all.
    """
    id: str
    employee_id: str
    date: Date
    type: ExceptionType
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None

    def __post_init__(self):
        if self.type is ExceptionType.MODIFIED_HOURS:
            if self.start_time is None or self.end_time is None:
                raise ValueError("Modified hours require a start and an end time")
            if self.start_time >= self.end_time:
                raise ValueError(
                    f"Start time {self.start_time} must be before end time {self.end_time}"
                )
        elif self.start_time is not None or self.end_time is not None:
            raise ValueError(f"Exception type '{self.type.value}' must not carry times")


@dataclass(frozen=True)
class Service:
    """A bookable service with its duration and setup/cleanup buffers (minutes)."""
    id: str
    business_id: str
    name: str
    duration: int
    buffer_before: int = 0
    buffer_after: int = 0

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError("duration must be greater than zero")
        if self.buffer_before < 0 or self.buffer_after < 0:
            raise ValueError("buffers must not be negative")


@dataclass(frozen=True)
class Employee:
    """An employee who may perform services, with an optional hours override."""
    id: str
    business_id: str
    name: str
    service_ids: Tuple[str, ...] = ()
    is_active: bool = True
    can_perform_services: bool = True
    working_hours: WeeklyHours | None = None

    def can_perform(self, service_id: str) -> bool:
        """Check if the employee is bookable for a service."""
        return (
            self.is_active
            and self.can_perform_services
            and service_id in self.service_ids
        )


@dataclass(frozen=True)
class Business:
    """The business owning the default weekly hours."""
    id: str
    name: str
    business_hours: WeeklyHours
    timezone: str = DEFAULT_TIMEZONE
    accept_appointments_automatically: bool = True


# --- Appointments ---------------------------------------------------------


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    COMPLETED = "completed"

    @property
    def blocks_time(self) -> bool:
        """Only pending and confirmed appointments occupy the employee."""
        return self in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


@dataclass(frozen=True)
class Appointment:
    """A booked appointment (read-only to the availability pipeline)."""
    id: str
    business_id: str
    employee_id: str
    service_id: str
    start: DateTime
    end: DateTime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    customer_id: str | None = None

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    @property
    def blocks_time(self) -> bool:
        return self.status.blocks_time


# --- Engine output --------------------------------------------------------


@dataclass(frozen=True)
class AvailableEmployee:
    id: str
    name: str


@dataclass(frozen=True)
class TimeSlot:
    """
    A bookable start time together with the employees free at that time.
    """
    time: DateTime
    available_employees: Tuple[AvailableEmployee, ...] = ()

    @property
    def available_employee_count(self) -> int:
        return len(self.available_employees)

    @property
    def available(self) -> bool:
        return self.available_employee_count > 0

    def employee_ids(self) -> List[str]:
        return [employee.id for employee in self.available_employees]

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM Uhr | Name, Name (n verfügbar)
        """
        names = ", ".join(employee.name for employee in self.available_employees)
        return (
            f"{self.time.format('HH:mm')} Uhr | {names} "
            f"({self.available_employee_count} verfügbar)"
        )


@dataclass(frozen=True)
class DayAvailability:
    """Whether a calendar date offers at least one slot."""
    date: Date
    has_availability: bool


@dataclass(frozen=True)
class ConsolidatedExceptionGroup:
    """
    All exceptions sharing date, type and reason.

    A view over the source rows; it is never persisted on its own.
    """
    date: Date
    type: ExceptionType
    reason: str | None
    employee_ids: Tuple[str, ...]
    employee_names: Tuple[str, ...]
    source_exception_ids: Tuple[str, ...]


@dataclass(frozen=True)
class ExceptionDateRange:
    """Consecutive-date groups with identical type and reason."""
    start_date: Date
    end_date: Date
    type: ExceptionType
    reason: str | None
    groups: Tuple[ConsolidatedExceptionGroup, ...]

    @property
    def day_count(self) -> int:
        return len(self.groups)

    @property
    def source_exception_ids(self) -> Tuple[str, ...]:
        return tuple(
            exception_id
            for group in self.groups
            for exception_id in group.source_exception_ids
        )

    @property
    def employee_names(self) -> Tuple[str, ...]:
        # Preserve order while removing duplicates
        seen: set[str] = set()
        names: List[str] = []
        for group in self.groups:
            for name in group.employee_names:
                if name not in seen:
                    names.append(name)
                    seen.add(name)
        return tuple(names)

    def format_display(self) -> str:
        """
        Format the range for display.
        Format: DD.MM.YYYY – DD.MM.YYYY | reason
        """
        if self.start_date == self.end_date:
            dates = self.start_date.format("DD.MM.YYYY")
        else:
            dates = f"{self.start_date.format('DD.MM.YYYY')} – {self.end_date.format('DD.MM.YYYY')}"
        return f"{dates} | {self.reason or '-'}"


@dataclass(frozen=True)
class CreateExceptionsResult:
    """Outcome of creating exceptions for several employees at once."""
    created: int
    skipped: int
    employee_names: Tuple[str, ...]


def iter_dates(date_from: Date, date_to: Date) -> List[Date]:
    """Return every calendar date in [date_from, date_to]."""
    dates: List[Date] = []
    current = date_from

    while current <= date_to:
        dates.append(current)
        current = current.add(days=1)

    return dates
