"""
Mock calendar client for running without Google credentials.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.business_hours import weekday_of
from ..domain.models import BookingRequest, BusyInterval, EventHandle, TimeOfDay, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that simulates the Google Calendar backend in memory.

    Busy blocks come from a JSON file with two lists:
    - "recurring": weekly blocks ({"weekday": 0-6 with 0=Sunday, "start": "HH:MM", "end": "HH:MM"})
    - "events": absolute blocks ({"start": ISO 8601, "end": ISO 8601})

    Created bookings are kept in memory and show up as busy afterwards.
    They are never evicted, so a long-running mock server grows with every
    booking until it is restarted.
    """

    def __init__(self, data_file: Path | None = DEFAULT_DATA_FILE):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file with seed data, or None to start empty
        """
        self.data_file = data_file
        self.recurring: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.created: List[BusyInterval] = []
        self._load_calendar_data()

    def _load_calendar_data(self):
        """Load mock calendar data from the JSON file."""
        if self.data_file is None or not self.data_file.exists():
            return

        with open(self.data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        self.recurring = list(data.get("recurring", []))
        self.events = list(data.get("events", []))

    async def list_busy_intervals(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyInterval]:
        """
        Return the seeded and created blocks overlapping the time window.
        """
        window = TimeRange(start=start_time, end=end_time)
        busy = self._recurring_intervals(window, timezone)

        for event in self.events:
            try:
                interval = BusyInterval(
                    start=pendulum.parse(event["start"], tz=timezone).in_timezone(timezone),
                    end=pendulum.parse(event["end"], tz=timezone).in_timezone(timezone),
                    label=event.get("summary"),
                )
            except (KeyError, ValueError) as e:
                logger.warning("Skipping invalid mock event %s: %s", event, e)
                continue
            busy.append(interval)

        busy.extend(self.created)
        return sorted(
            (interval for interval in busy if window.overlaps(interval)),
            key=lambda interval: interval.start,
        )

    def _recurring_intervals(self, window: TimeRange, timezone: str) -> List[BusyInterval]:
        intervals: List[BusyInterval] = []
        current = window.start.in_timezone(timezone).date()
        last = window.end.in_timezone(timezone).date()

        while current <= last:
            for block in self.recurring:
                if block.get("weekday") != weekday_of(current):
                    continue
                start_time = TimeOfDay.parse(block["start"])
                end_time = TimeOfDay.parse(block["end"])
                start = pendulum.datetime(
                    current.year, current.month, current.day,
                    start_time.hour, start_time.minute, tz=timezone,
                )
                end = pendulum.datetime(
                    current.year, current.month, current.day,
                    end_time.hour, end_time.minute, tz=timezone,
                )
                intervals.append(BusyInterval(start=start, end=end, label=block.get("summary")))
            current = current.add(days=1)

        return intervals

    async def create_event(
        self,
        booking: BookingRequest,
        time_range: TimeRange,
        timezone: str,
    ) -> EventHandle:
        """Record the booking so later queries see the slot as busy."""
        event_id = f"mock_event_{len(self.created) + 1}"
        self.created.append(
            BusyInterval(
                start=time_range.start,
                end=time_range.end,
                label=f"Booking for {booking.customer.full_name}",
            )
        )
        logger.info("Mock calendar event created: %s at %s", event_id, time_range)
        return EventHandle(event_id=event_id, html_link=None)

    def test_connection(self) -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock calendar metadata
        """
        return {
            "id": "mock",
            "summary": "Mock booking calendar",
            "timeZone": "n/a",
        }
