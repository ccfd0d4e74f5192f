"""
Tests for the in-memory mock calendar.
"""

import asyncio
import json

import pendulum

from conftest import build_resolver

from ragebooking.adapters.mock_calendar_client import MockCalendarClient
from ragebooking.domain.models import BookingRequest, CustomerDetails, Slot, TimeOfDay

TZ = "Europe/Paris"


def _write_data(tmp_path, data):
    path = tmp_path / "calendar.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_recurring_blocks_apply_to_matching_weekday(tmp_path):
    path = _write_data(tmp_path, {
        "recurring": [{"weekday": 6, "start": "14:00", "end": "15:00", "summary": "Party"}],
    })
    client = MockCalendarClient(data_file=path)
    start = pendulum.datetime(2024, 11, 30, tz=TZ)

    saturday = asyncio.run(client.list_busy_intervals(start, start.end_of("day"), TZ))
    sunday = asyncio.run(client.list_busy_intervals(start.add(days=1), start.add(days=1).end_of("day"), TZ))

    assert [i.label for i in saturday] == ["Party"]
    assert saturday[0].start.to_datetime_string() == "2024-11-30 14:00:00"
    assert sunday == []


def test_absolute_events_are_filtered_by_window(tmp_path):
    path = _write_data(tmp_path, {
        "events": [
            {"start": "2024-11-30T10:00:00+01:00", "end": "2024-11-30T11:00:00+01:00", "summary": "In"},
            {"start": "2024-12-05T10:00:00+01:00", "end": "2024-12-05T11:00:00+01:00", "summary": "Out"},
        ],
    })
    client = MockCalendarClient(data_file=path)
    start = pendulum.datetime(2024, 11, 30, tz=TZ)

    intervals = asyncio.run(client.list_busy_intervals(start, start.end_of("day"), TZ))

    assert [i.label for i in intervals] == ["In"]


def test_created_booking_blocks_the_slot():
    client = MockCalendarClient(data_file=None)
    resolver = build_resolver(client)
    booking = BookingRequest(
        slot=Slot(date=pendulum.date(2024, 11, 30), time=TimeOfDay(16, 0)),
        party_size=2,
        customer=CustomerDetails(first_name="Ada", last_name="Lovelace", phone_number="12345678"),
    )

    reservation = asyncio.run(resolver.guard_and_reserve(booking))
    slots = asyncio.run(resolver.available_slots(pendulum.date(2024, 11, 30)))

    assert reservation.event.event_id == "mock_event_1"
    assert "16:00" not in [str(slot.time) for slot in slots]
    assert "15:30" in [str(slot.time) for slot in slots]


def test_default_data_file_loads():
    client = MockCalendarClient()

    assert client.recurring
    assert client.test_connection()["id"] == "mock"
