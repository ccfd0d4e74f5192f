"""
Shared fixtures and stubs for the test suite.
"""

from typing import Dict, List

import pendulum
import pytest

from ragebooking.domain.business_hours import BusinessHoursCalendar
from ragebooking.domain.models import BusyInterval, EventHandle
from ragebooking.domain.slot_calculator import SlotCalculator
from ragebooking.services.availability_resolver import AvailabilityResolver

TZ = "Europe/Paris"


def busy(date: str, start: str, end: str, label: str = "Booked") -> BusyInterval:
    """Build a busy interval on a date from HH:MM bounds in the business timezone."""
    return BusyInterval(
        start=pendulum.parse(f"{date} {start}", tz=TZ),
        end=pendulum.parse(f"{date} {end}", tz=TZ),
        label=label,
    )


class StubCalendarClient:
    """
    Minimal stub matching CalendarClientProtocol.

    Each list call pops the next response; the last one repeats. A response
    that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses=None, create_error: Exception | None = None):
        self._responses = list(responses) if responses is not None else [[]]
        self._create_error = create_error
        self.list_calls: List[Dict[str, str]] = []
        self.create_calls: List[Dict[str, object]] = []

    async def list_busy_intervals(self, start_time, end_time, timezone):
        self.list_calls.append(
            {
                "start": start_time.to_datetime_string(),
                "end": end_time.to_datetime_string(),
                "timezone": timezone,
            }
        )
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return list(response)

    async def create_event(self, booking, time_range, timezone):
        self.create_calls.append(
            {"booking": booking, "time_range": time_range, "timezone": timezone}
        )
        if self._create_error is not None:
            raise self._create_error
        return EventHandle(event_id=f"evt_{len(self.create_calls)}", html_link="https://calendar.test/evt")


def fixed_clock(value: str):
    """Clock returning a fixed instant in the business timezone."""
    now = pendulum.parse(value, tz=TZ)
    return lambda: now


def build_resolver(client, now: str = "2024-11-01 09:00", **kwargs) -> AvailabilityResolver:
    calculator = SlotCalculator(business_hours=BusinessHoursCalendar(), timezone=TZ)
    return AvailabilityResolver(
        calendar_client=client,
        slot_calculator=calculator,
        clock=fixed_clock(now),
        **kwargs,
    )


@pytest.fixture
def calculator() -> SlotCalculator:
    return SlotCalculator(business_hours=BusinessHoursCalendar(), timezone=TZ)
