"""
Domain-specific exception hierarchy for the booking backend.

Every error carries the HTTP status a caller should answer with, so the
outer layers can map failures without inspecting messages.
"""

from __future__ import annotations

from enum import Enum


class BookingError(Exception):
    """Base class for all application-level errors."""

    status_code = 500


class ValidationError(BookingError, ValueError):
    """Raised for malformed date, time or party-size input."""

    status_code = 400


class SlotConflictError(BookingError):
    """Raised when the requested slot is no longer free."""

    status_code = 409

    def __init__(self, date: str, time_slot: str, busy_label: str | None = None):
        self.date = date
        self.time_slot = time_slot
        self.busy_label = busy_label
        super().__init__(f"Selected time slot {date} {time_slot} is already booked")


class ErrorKind(str, Enum):
    """Classification of failures talking to the calendar backend."""

    PERMISSION = "permission"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


_STATUS_BY_KIND = {
    ErrorKind.PERMISSION: 403,
    ErrorKind.TRANSIENT: 503,
    ErrorKind.UNKNOWN: 500,
}


class ExternalServiceError(BookingError):
    """Raised when calendar data cannot be fetched or an event cannot be created."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN):
        self.kind = kind
        super().__init__(message)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _STATUS_BY_KIND[self.kind]


class AuthenticationError(ExternalServiceError):
    """Raised when service-account credentials are missing or unusable."""

    def __init__(self, message: str):
        super().__init__(message, kind=ErrorKind.PERMISSION)
