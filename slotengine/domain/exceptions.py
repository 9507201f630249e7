"""
Domain-specific exception hierarchy for the scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class NotFoundError(SchedulingError):
    """Raised when a business, service or employee does not exist."""


class InvalidRangeError(SchedulingError):
    """Raised when a date range is reversed or targets dates that may not be touched."""


class InvariantViolationError(SchedulingError):
    """Raised when upstream data breaks a data-model invariant (e.g. two exceptions per day)."""


class SlotUnavailableError(SchedulingError):
    """
    Raised when a slot can no longer be booked.

    This is the lost-race outcome of a booking commit; callers recover by
    recomputing availability and offering fresh slots.
    """

    retryable = True


class ExceptionAlreadyExistsError(SchedulingError):
    """Raised when an employee already has a schedule exception on a date."""


class RepositoryError(SchedulingError):
    """Raised when scheduling data cannot be fetched or stored."""
