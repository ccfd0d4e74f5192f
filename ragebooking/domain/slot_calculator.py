"""
Core business logic for deciding which slots of a day are free.

Pure domain logic: the busy intervals and the current time are handed in,
nothing here talks to the calendar or reads the system clock.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import pendulum
from pendulum import Date, DateTime

from .business_hours import BusinessHoursCalendar
from .models import BusyInterval, Slot, TimeRange


class SlotCalculator:
    """
    Filters a day's slot template against busy intervals.

    Algorithm:
    1. Take the slot template for the date's weekday
    2. Build each candidate's [start, start + 30min) range in the business timezone
    3. Drop candidates overlapping any busy interval
    4. If the date is today, drop candidates starting at or before now
    """

    def __init__(self, business_hours: BusinessHoursCalendar, timezone: str):
        self.business_hours = business_hours
        self.timezone = timezone

    def candidate_slots(self, day: Date) -> List[Slot]:
        """Return the unfiltered slot template for a date, in chronological order."""
        return [Slot(date=day, time=time) for time in self.business_hours.slots_for_date(day)]

    def day_window(self, day: Date) -> TimeRange:
        """
        The calendar query window for a date: 00:00:00 to 23:59:59 local.

        Both bounds come from the same (year, month, day) as the slot ranges.
        """
        start = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        end = pendulum.datetime(day.year, day.month, day.day, 23, 59, 59, tz=self.timezone)
        return TimeRange(start=start, end=end)

    def find_conflict(
        self,
        slot: Slot,
        busy_intervals: Iterable[BusyInterval],
    ) -> BusyInterval | None:
        """Return the first busy interval overlapping the slot, if any."""
        slot_range = slot.to_time_range(self.timezone)
        for busy in busy_intervals:
            if slot_range.overlaps(busy):
                return busy
        return None

    def is_slot_busy(self, slot: Slot, busy_intervals: Iterable[BusyInterval]) -> bool:
        return self.find_conflict(slot, busy_intervals) is not None

    def is_today(self, day: Date, now: DateTime) -> bool:
        local_now = now.in_timezone(self.timezone)
        return local_now.date() == day

    def is_past(self, slot: Slot, now: DateTime) -> bool:
        """
        Whether a slot has already started.

        Only applies to today's slots; a slot starting exactly now counts as past.
        """
        if not self.is_today(slot.date, now):
            return False
        return slot.to_time_range(self.timezone).start <= now

    def find_free_slots(
        self,
        day: Date,
        busy_intervals: Sequence[BusyInterval],
        now: DateTime | None = None,
    ) -> List[Slot]:
        """
        Return the slots of a day not overlapping any busy interval.

        Args:
            day: Date to compute availability for
            busy_intervals: Occupied ranges reported for that date
            now: Current time; when given, today's started slots are removed

        Returns:
            Free slots in chronological order
        """
        free: List[Slot] = []

        for slot in self.candidate_slots(day):
            if self.is_slot_busy(slot, busy_intervals):
                continue
            if now is not None and self.is_past(slot, now):
                continue
            free.append(slot)

        return free
