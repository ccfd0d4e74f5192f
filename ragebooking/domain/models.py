"""
Domain models for slots, busy intervals and bookings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict

import pendulum
from pendulum import Date, DateTime

from .exceptions import ValidationError

SLOT_MINUTES = 30

_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def parse_calendar_date(value: str) -> Date:
    """
    Parse a ``YYYY-MM-DD`` string into a calendar date.

    The string is split into integer components directly so no timezone can
    shift the day.

    Raises:
        ValidationError: If the string is malformed or not a real date
    """
    match = _DATE_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return pendulum.date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def parse_party_size(value: Any, maximum: int) -> int:
    """Parse a party size and check it lies within 1..maximum."""
    if isinstance(value, bool):
        raise ValidationError(f"Group size must be between 1 and {maximum}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or not 1 <= value <= maximum:
        raise ValidationError(f"Group size must be between 1 and {maximum}")
    return value


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A slot start time on the 30-minute grid.

    Invariant: 0 <= hour <= 23 and minute is 0 or 30.
    """
    hour: int
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValidationError(f"Hour must be between 0 and 23, got {self.hour}")
        if self.minute % SLOT_MINUTES != 0 or not 0 <= self.minute < 60:
            raise ValidationError(
                f"Minute must be on the {SLOT_MINUTES}-minute grid, got {self.minute}"
            )

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse an ``HH:MM`` 24-hour string."""
        match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValidationError("Invalid time slot format. Use HH:MM (24-hour format)")
        hour, minute = (int(part) for part in match.groups())
        return cls(hour=hour, minute=minute)

    def minutes_since_midnight(self) -> int:
        return self.hour * 60 + self.minute

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeOfDay":
        return cls(hour=minutes // 60, minute=minutes % 60)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


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

    def overlaps(self, other: "TimeRange | BusyInterval") -> bool:
        """
        Check if this range overlaps with another.

        Ranges are half-open, so touching endpoints do not overlap.
        """
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class Slot:
    """A bookable 30-minute interval identified by its date and start time."""
    date: Date
    time: TimeOfDay

    def to_time_range(self, timezone: str) -> TimeRange:
        """Build the slot's [start, start + 30min) range in the given timezone."""
        start = pendulum.datetime(
            self.date.year,
            self.date.month,
            self.date.day,
            self.time.hour,
            self.time.minute,
            tz=timezone,
        )
        return TimeRange(start=start, end=start.add(minutes=SLOT_MINUTES))

    def __str__(self) -> str:
        return f"{self.date.to_date_string()} {self.time}"


@dataclass(frozen=True)
class BusyInterval:
    """
    An occupied [start, end) range reported by the calendar backend.

    Zero-length intervals are accepted since calendars allow them.
    """
    start: DateTime
    end: DateTime
    label: str | None = None

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Busy interval ends ({self.end}) before it starts ({self.start})")

    def __str__(self) -> str:
        label = f" ({self.label})" if self.label else ""
        return f"{self.start.to_iso8601_string()} - {self.end.to_iso8601_string()}{label}"


@dataclass(frozen=True)
class CustomerDetails:
    """Customer metadata passed through to the calendar event untouched."""
    first_name: str
    last_name: str
    phone_number: str
    email: str = ""
    special_requests: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class BookingRequest:
    slot: Slot
    party_size: int
    customer: CustomerDetails


@dataclass(frozen=True)
class EventHandle:
    """Reference to an event created by the calendar backend."""
    event_id: str
    html_link: str | None = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Reservation:
    """Confirmation returned for an accepted booking."""
    event: EventHandle
    slot: Slot
    party_size: int
    time_range: TimeRange

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event.event_id,
            "date": self.slot.date.to_date_string(),
            "timeSlot": str(self.slot.time),
            "groupSize": self.party_size,
            "eventLink": self.event.html_link,
            "startTime": self.time_range.start.to_iso8601_string(),
            "endTime": self.time_range.end.to_iso8601_string(),
        }
