"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .aggregator import aggregate_slots, choose_employee
from .conflict_filter import filter_conflicts
from .consolidator import consolidate_exceptions, exception_ids_for, merge_into_ranges
from .exception_applier import apply_exceptions
from .models import (
    CLOSED,
    Appointment,
    AppointmentStatus,
    AvailableEmployee,
    Business,
    ClosedDay,
    ConsolidatedExceptionGroup,
    DayAvailability,
    Employee,
    ExceptionDateRange,
    ExceptionType,
    LunchBreak,
    OpenDay,
    ScheduleException,
    Service,
    TimeRange,
    TimeSlot,
    WeeklyHours,
)
from .slot_generator import SlotGenerator
from .working_hours import resolve_working_hours

__all__ = [
    "CLOSED",
    "Appointment",
    "AppointmentStatus",
    "AvailableEmployee",
    "Business",
    "ClosedDay",
    "ConsolidatedExceptionGroup",
    "DayAvailability",
    "Employee",
    "ExceptionDateRange",
    "ExceptionType",
    "LunchBreak",
    "OpenDay",
    "ScheduleException",
    "Service",
    "SlotGenerator",
    "TimeRange",
    "TimeSlot",
    "WeeklyHours",
    "aggregate_slots",
    "apply_exceptions",
    "choose_employee",
    "consolidate_exceptions",
    "exception_ids_for",
    "filter_conflicts",
    "merge_into_ranges",
    "resolve_working_hours",
]
