"""Scheduling error taxonomy

Raised by the scheduling core and translated to HTTP status codes by the API
layer. None of these are retried inside the core.
"""


class SchedulingError(Exception):
    """Base error type for reservation scheduling errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    """Raised when a reservation or table does not exist for the tenant."""


class ConflictError(SchedulingError):
    """Raised when a table is already booked for an overlapping window."""


class InvalidTransitionError(SchedulingError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot change status from {_name(from_status)} to {_name(to_status)}"
        )


class BadRequestError(SchedulingError):
    """Raised for missing tenant context, capacity mismatch or a malformed window."""


def _name(status) -> str:
    return getattr(status, "value", str(status))
