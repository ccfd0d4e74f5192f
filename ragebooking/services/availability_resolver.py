"""
Application service resolving availability and guarding new bookings.

The service coordinates fetching busy intervals via a calendar client adapter
and delegates the free/busy decision to the domain-level ``SlotCalculator``.
The calendar dependency is a simple protocol so the Google adapter, the mock
calendar or a test stub can be plugged in.

Booking creation is check-then-act: the slot is re-checked against freshly
fetched busy intervals right before the insert. Two concurrent bookings for
the same slot can still both pass the check, since the calendar offers no
atomic compare-and-insert.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, List, Protocol, TypeVar

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import (
    ErrorKind,
    ExternalServiceError,
    SlotConflictError,
    ValidationError,
)
from ..domain.models import (
    BookingRequest,
    BusyInterval,
    EventHandle,
    Reservation,
    Slot,
    TimeRange,
    parse_party_size,
)
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], DateTime]


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def list_busy_intervals(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyInterval]:
        """Return the occupied ranges between start_time and end_time."""

    async def create_event(
        self,
        booking: BookingRequest,
        time_range: TimeRange,
        timezone: str,
    ) -> EventHandle:
        """Insert a booking event and return its handle."""


class AvailabilityResolver:
    """
    Computes free slots for a date and creates bookings behind a conflict guard.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        slot_calculator: SlotCalculator,
        clock: Clock | None = None,
        request_timeout: float | None = None,
        max_party_size: int = 5,
    ) -> None:
        self._calendar_client = calendar_client
        self._slot_calculator = slot_calculator
        self._clock = clock or (lambda: pendulum.now(slot_calculator.timezone))
        self._request_timeout = request_timeout
        self.max_party_size = max_party_size

    @property
    def timezone(self) -> str:
        return self._slot_calculator.timezone

    def now(self) -> DateTime:
        return self._clock()

    async def available_slots(self, day: Date) -> List[Slot]:
        """
        Return the free slots of a date in chronological order.

        Transient and permission failures of the calendar fail open: the full
        weekday template is returned so the day does not look closed.
        Unknown failures propagate.
        """
        candidates = self._slot_calculator.candidate_slots(day)
        if not candidates:
            return []

        try:
            busy_intervals = await self.fetch_busy_intervals(day)
        except ExternalServiceError as exc:
            if exc.kind is ErrorKind.UNKNOWN:
                logger.error(
                    "Could not fetch busy intervals",
                    extra={"date": day.to_date_string(), "error_kind": exc.kind.value},
                    exc_info=True,
                )
                raise
            logger.warning(
                "Returning the unfiltered day template after calendar error: %s",
                exc,
                extra={"date": day.to_date_string(), "error_kind": exc.kind.value},
            )
            return candidates

        return self._slot_calculator.find_free_slots(
            day,
            busy_intervals,
            now=self.now(),
        )

    async def guard_and_reserve(self, booking: BookingRequest) -> Reservation:
        """
        Re-check the requested slot and create the calendar event if it is free.

        Raises:
            ValidationError: If the slot is not bookable or the party size is invalid
            SlotConflictError: If the slot overlaps a freshly fetched busy interval
            ExternalServiceError: If fetching or creating fails; never absorbed here
        """
        slot = booking.slot
        party_size = parse_party_size(booking.party_size, self.max_party_size)
        booking = replace(booking, party_size=party_size)
        self._ensure_bookable(slot)

        busy_intervals = await self.fetch_busy_intervals(slot.date)
        conflict = self._slot_calculator.find_conflict(slot, busy_intervals)
        if conflict is not None:
            logger.info(
                "Booking aborted, slot already taken by %s",
                conflict,
                extra={"date": slot.date.to_date_string(), "time_slot": str(slot.time)},
            )
            raise SlotConflictError(
                date=slot.date.to_date_string(),
                time_slot=str(slot.time),
                busy_label=conflict.label,
            )

        time_range = slot.to_time_range(self.timezone)
        try:
            event = await self._call(
                self._calendar_client.create_event(
                    booking=booking,
                    time_range=time_range,
                    timezone=self.timezone,
                ),
                bounded=False,
            )
        except ExternalServiceError as exc:
            logger.error(
                "Calendar event creation failed: %s",
                exc,
                extra={
                    "date": slot.date.to_date_string(),
                    "time_slot": str(slot.time),
                    "party_size": booking.party_size,
                    "error_kind": exc.kind.value,
                },
            )
            raise

        logger.info(
            "Booking created with event %s",
            event.event_id,
            extra={
                "date": slot.date.to_date_string(),
                "time_slot": str(slot.time),
                "party_size": booking.party_size,
            },
        )
        return Reservation(
            event=event,
            slot=slot,
            party_size=booking.party_size,
            time_range=time_range,
        )

    async def fetch_busy_intervals(self, day: Date) -> List[BusyInterval]:
        """Fetch busy intervals covering the whole business-timezone day."""
        window = self._slot_calculator.day_window(day)
        busy = await self._call(
            self._calendar_client.list_busy_intervals(
                start_time=window.start,
                end_time=window.end,
                timezone=self.timezone,
            )
        )
        return list(busy)

    def _ensure_bookable(self, slot: Slot) -> None:
        """Reject slots outside the day's template or already started today."""
        if slot.time not in self._slot_calculator.business_hours.slots_for_date(slot.date):
            raise ValidationError(
                f"{slot.time} is not a bookable time on {slot.date.to_date_string()}"
            )
        if self._slot_calculator.is_past(slot, self.now()):
            raise ValidationError(f"Time slot {slot} has already passed")

    async def _call(self, awaitable: Awaitable[T], bounded: bool = True) -> T:
        """
        Await a calendar call under the request timeout, classifying failures.

        Writes pass bounded=False: an abandoned insert may still commit, so
        the client's own HTTP timeout is the only deadline for them.
        """
        try:
            if self._request_timeout is None or not bounded:
                return await awaitable
            return await asyncio.wait_for(awaitable, timeout=self._request_timeout)
        except ExternalServiceError:
            raise
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise ExternalServiceError(
                "Calendar request timed out", kind=ErrorKind.TRANSIENT
            ) from exc
        except ConnectionError as exc:
            raise ExternalServiceError(
                f"Calendar unreachable: {exc}", kind=ErrorKind.TRANSIENT
            ) from exc
        except Exception as exc:
            raise ExternalServiceError(
                f"Unexpected calendar failure: {exc}", kind=ErrorKind.UNKNOWN
            ) from exc
