"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .availability import AvailabilityService, ScheduleSnapshot
from .booking import BookingService
from .repository import SchedulingRepositoryProtocol
from .schedule_exceptions import ScheduleExceptionService

__all__ = [
    "AvailabilityService",
    "BookingService",
    "ScheduleExceptionService",
    "ScheduleSnapshot",
    "SchedulingRepositoryProtocol",
]
