"""
Google Calendar API client for reading busy intervals and inserting bookings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List
from urllib.parse import quote

import pendulum
import requests
from google.auth.exceptions import RefreshError, TransportError
from pendulum import DateTime

from ..domain.exceptions import ErrorKind, ExternalServiceError
from ..domain.models import BookingRequest, BusyInterval, EventHandle, TimeRange

logger = logging.getLogger(__name__)

RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded"}


def classify_response_error(response: requests.Response) -> ErrorKind:
    """
    Map a failed Calendar API response onto an error kind.

    Google reports rate limiting as 403 with a rate-limit reason, which is
    transient rather than a missing grant.
    """
    status = response.status_code
    if status in (408, 429) or status >= 500:
        return ErrorKind.TRANSIENT

    if status in (401, 403):
        if _error_reasons(response) & RATE_LIMIT_REASONS:
            return ErrorKind.TRANSIENT
        return ErrorKind.PERMISSION

    return ErrorKind.UNKNOWN


def _error_payload(response: requests.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    error = data.get("error") if isinstance(data, dict) else None
    return error if isinstance(error, dict) else {}


def _error_reasons(response: requests.Response) -> set[str]:
    errors = _error_payload(response).get("errors") or []
    return {item.get("reason", "") for item in errors if isinstance(item, dict)}


def _error_message(response: requests.Response) -> str:
    return _error_payload(response).get("message") or response.reason or "no details"


class GoogleCalendarClient:
    """
    Client for Google Calendar API v3 event operations.

    Uses events.list to read busy intervals and events.insert to create
    bookings. Blocking HTTP calls run in a worker thread for the async
    methods the availability service awaits.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(
        self,
        session: requests.Session,
        calendar_id: str = "primary",
        business_name: str = "Smash Room",
        timeout: float = 30,
    ):
        """
        Initialize the Calendar API client.

        Args:
            session: Authorized requests session (see GoogleAuthenticator)
            calendar_id: Calendar holding the bookings
            business_name: Name used in event summaries
            timeout: Per-request timeout in seconds
        """
        self.session = session
        self.calendar_id = calendar_id
        self.business_name = business_name
        self.timeout = timeout

    @property
    def _calendar_url(self) -> str:
        return f"{self.API_ENDPOINT}/calendars/{quote(self.calendar_id, safe='')}"

    async def list_busy_intervals(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyInterval]:
        return await asyncio.to_thread(self.get_busy_intervals, start_time, end_time, timezone)

    async def create_event(
        self,
        booking: BookingRequest,
        time_range: TimeRange,
        timezone: str,
    ) -> EventHandle:
        return await asyncio.to_thread(self.insert_event, booking, time_range, timezone)

    def get_busy_intervals(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyInterval]:
        """
        Get every event between start_time and end_time as busy intervals.

        Args:
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone identifier the intervals are returned in

        Returns:
            Busy intervals ordered by start time

        Raises:
            ExternalServiceError: If the API call fails
        """
        params: Dict[str, Any] = {
            "timeMin": start_time.to_rfc3339_string(),
            "timeMax": end_time.to_rfc3339_string(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeZone": timezone,
        }

        items: List[Dict[str, Any]] = []
        while True:
            data = self._request("GET", f"{self._calendar_url}/events", params=params)
            items.extend(data.get("items", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        logger.debug(
            "Fetched %d events between %s and %s",
            len(items),
            start_time.to_iso8601_string(),
            end_time.to_iso8601_string(),
        )
        return self._parse_events(items, timezone)

    def _parse_events(
        self,
        items: List[Dict[str, Any]],
        timezone: str,
    ) -> List[BusyInterval]:
        """
        Parse an events.list page into our domain model.

        Item format:
        {
            "summary": "...",
            "status": "confirmed",
            "start": {"dateTime": "2024-11-25T10:00:00+01:00"} or {"date": "2024-11-25"},
            "end": {"dateTime": "..."} or {"date": "..."}
        }
        """
        busy: List[BusyInterval] = []

        for item in items:
            if item.get("status") == "cancelled":
                continue

            try:
                start = self._parse_event_time(item["start"], timezone)
                end = self._parse_event_time(item["end"], timezone)
                busy.append(BusyInterval(start=start, end=end, label=item.get("summary")))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Could not parse calendar event %s: %s", item.get("id"), e)
                continue

        return busy

    def _parse_event_time(self, value: Dict[str, str], timezone: str) -> DateTime:
        """
        Parse an event start/end into a DateTime in the business timezone.

        All-day events only carry a date and start at local midnight.
        """
        if "dateTime" in value:
            dt = pendulum.parse(value["dateTime"])
            if isinstance(dt, DateTime):
                return dt.in_timezone(timezone)
            raise ValueError(f"Could not parse datetime: {value['dateTime']}")

        return pendulum.from_format(value["date"], "YYYY-MM-DD", tz=timezone)

    def insert_event(
        self,
        booking: BookingRequest,
        time_range: TimeRange,
        timezone: str,
    ) -> EventHandle:
        """
        Create the booking event.

        Raises:
            ExternalServiceError: If the insert is rejected or fails
        """
        body = self.build_event_body(booking, time_range, timezone)
        data = self._request(
            "POST",
            f"{self._calendar_url}/events",
            params={"sendUpdates": "none"},
            json=body,
        )

        event_id = data.get("id")
        if not event_id:
            raise ExternalServiceError("No event ID returned from Google Calendar API")

        return EventHandle(event_id=str(event_id), html_link=data.get("htmlLink"), raw=data)

    def build_event_body(
        self,
        booking: BookingRequest,
        time_range: TimeRange,
        timezone: str,
    ) -> Dict[str, Any]:
        """Build the events.insert resource for a booking."""
        people = "person" if booking.party_size == 1 else "people"
        customer = booking.customer

        lines = [
            f"{self.business_name} Booking",
            "",
            "Customer Information:",
            f"Name: {customer.full_name or 'Guest'}",
            f"Phone: {customer.phone_number or 'Not provided'}",
        ]
        if customer.email.strip():
            lines.append(f"Email: {customer.email.strip()}")
        lines += ["", f"Group Size: {booking.party_size} {people}"]
        if customer.special_requests.strip():
            lines += ["", "Special Requests:", customer.special_requests.strip()]
        lines += ["", f"Booked through {self.business_name} website."]

        return {
            "summary": f"{self.business_name} Session - {booking.party_size} {people}",
            "description": "\n".join(lines),
            "start": {
                "dateTime": time_range.start.to_iso8601_string(),
                "timeZone": timezone,
            },
            "end": {
                "dateTime": time_range.end.to_iso8601_string(),
                "timeZone": timezone,
            },
            "colorId": "11",
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 60},
                ],
            },
        }

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and credentials by fetching the calendar metadata.

        Returns:
            Calendar resource (summary, timeZone, ...)
        """
        return self._request("GET", self._calendar_url)

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransportError) as e:
            raise ExternalServiceError(
                f"Failed to reach Google Calendar: {e}", kind=ErrorKind.TRANSIENT
            ) from e
        except RefreshError as e:
            raise ExternalServiceError(
                f"Google rejected the service account credentials: {e}",
                kind=ErrorKind.PERMISSION,
            ) from e
        except requests.exceptions.RequestException as e:
            raise ExternalServiceError(f"Google Calendar request failed: {e}") from e

        if not response.ok:
            kind = classify_response_error(response)
            raise ExternalServiceError(
                f"Google Calendar API error {response.status_code}: {_error_message(response)}",
                kind=kind,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"Invalid JSON from Google Calendar: {e}") from e
