"""
Domain layer - Pure business logic without external dependencies.
"""

from .business_hours import (
    DEFAULT_WEEKLY_SCHEDULE,
    BusinessHoursCalendar,
    OperatingWindow,
    WeeklySchedule,
    weekday_of,
)
from .models import (
    BookingRequest,
    BusyInterval,
    CustomerDetails,
    EventHandle,
    Reservation,
    Slot,
    TimeOfDay,
    TimeRange,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "DEFAULT_WEEKLY_SCHEDULE",
    "BookingRequest",
    "BusinessHoursCalendar",
    "BusyInterval",
    "CustomerDetails",
    "EventHandle",
    "OperatingWindow",
    "Reservation",
    "Slot",
    "SlotCalculator",
    "TimeOfDay",
    "TimeRange",
    "WeeklySchedule",
    "weekday_of",
]
