"""
Tests for building the calendar client and resolver from configuration.
"""

import asyncio
import json
import time

import pendulum
import requests

from ragebooking.adapters.google_calendar_client import GoogleCalendarClient
from ragebooking.adapters.mock_calendar_client import MockCalendarClient
from ragebooking.config import AppConfig
from ragebooking.domain.models import BookingRequest, CustomerDetails, Slot, TimeOfDay
from ragebooking.wiring import build_calendar_client, build_resolver


class SlowInsertSession:
    """Answers list calls at once and inserts after a delay, recording both."""

    def __init__(self, insert_delay: float):
        self.insert_delay = insert_delay
        self.timeouts = []
        self.inserted = []

    def request(self, method, url, timeout=None, **kwargs):
        self.timeouts.append(timeout)
        response = requests.Response()
        response.status_code = 200
        if method == "POST":
            time.sleep(self.insert_delay)
            self.inserted.append(kwargs["json"]["summary"])
            payload = {"id": "evt_slow", "htmlLink": "https://calendar.google.com/event?eid=slow"}
        else:
            payload = {"items": []}
        response._content = json.dumps(payload).encode("utf-8")
        return response


def _google_client(monkeypatch, config: AppConfig, session) -> GoogleCalendarClient:
    monkeypatch.setattr(
        "ragebooking.wiring.GoogleAuthenticator.get_session",
        lambda self: session,
    )
    return build_calendar_client(config)


def test_mock_flag_returns_mock_client():
    assert isinstance(build_calendar_client(AppConfig(), mock=True), MockCalendarClient)


def test_google_client_uses_configured_timeout(monkeypatch):
    config = AppConfig(request_timeout_seconds=7, calendar_id="bookings@example.com")

    client = _google_client(monkeypatch, config, SlowInsertSession(0))

    assert isinstance(client, GoogleCalendarClient)
    assert client.timeout == 7
    assert client.calendar_id == "bookings@example.com"


def test_insert_slower_than_timeout_reports_the_created_event(monkeypatch):
    """The caller learns about an event the calendar actually created."""
    config = AppConfig(request_timeout_seconds=0.1)
    session = SlowInsertSession(insert_delay=0.3)
    client = _google_client(monkeypatch, config, session)
    resolver = build_resolver(
        config,
        client,
        clock=lambda: pendulum.datetime(2024, 11, 1, 9, tz=config.timezone),
    )
    booking = BookingRequest(
        slot=Slot(date=pendulum.date(2024, 11, 30), time=TimeOfDay(14, 0)),
        party_size=2,
        customer=CustomerDetails(first_name="Ada", last_name="Lovelace", phone_number="12345678"),
    )

    reservation = asyncio.run(resolver.guard_and_reserve(booking))

    assert session.inserted == ["Smash Room Session - 2 people"]
    assert reservation.event.event_id == "evt_slow"
    assert session.timeouts == [0.1, 0.1]
