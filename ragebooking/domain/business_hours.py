"""
Weekly opening hours and the bookable slot template derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from typing import Dict, Mapping, Tuple

from .models import SLOT_MINUTES, TimeOfDay

WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)


def weekday_of(day: date_type) -> int:
    """Return the weekday of a date with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class OperatingWindow:
    """
    Opening and closing time for one weekday.

    Invariant: open is strictly before close.
    """
    open: TimeOfDay
    close: TimeOfDay

    def __post_init__(self):
        if self.open >= self.close:
            raise ValueError(f"Opening time {self.open} must be before closing time {self.close}")

    def __str__(self) -> str:
        return f"{self.open} - {self.close}"


class WeeklySchedule:
    """
    Immutable mapping from weekday (0=Sunday) to an operating window.

    Weekdays without a window are closed.
    """

    def __init__(self, windows: Mapping[int, OperatingWindow | None]):
        invalid = [day for day in windows if day not in range(7)]
        if invalid:
            raise ValueError(f"Weekdays must be between 0 and 6, got {invalid}")
        self._windows: Dict[int, OperatingWindow] = {
            day: window for day, window in windows.items() if window is not None
        }

    def window_for(self, weekday: int) -> OperatingWindow | None:
        return self._windows.get(weekday)

    def is_open(self, weekday: int) -> bool:
        return weekday in self._windows

    def items(self) -> Tuple[Tuple[int, OperatingWindow | None], ...]:
        """All seven weekdays in order, with None for closed days."""
        return tuple((day, self._windows.get(day)) for day in range(7))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeeklySchedule):
            return NotImplemented
        return self._windows == other._windows

    def __repr__(self) -> str:
        opened = ", ".join(
            f"{WEEKDAY_NAMES[day]}={window}" for day, window in sorted(self._windows.items())
        )
        return f"WeeklySchedule({opened})"


_WEEKEND = OperatingWindow(open=TimeOfDay(10, 0), close=TimeOfDay(22, 0))
_WEEKDAY = OperatingWindow(open=TimeOfDay(11, 0), close=TimeOfDay(22, 0))

DEFAULT_WEEKLY_SCHEDULE = WeeklySchedule(
    {
        0: _WEEKEND,
        1: None,
        2: _WEEKDAY,
        3: _WEEKDAY,
        4: _WEEKDAY,
        5: _WEEKDAY,
        6: _WEEKEND,
    }
)


class BusinessHoursCalendar:
    """
    Derives the bookable slot starts for a weekday from a weekly schedule.

    The closing time itself is emitted as a bookable start, so a 22:00 close
    yields a final 22:00 slot that runs past closing. Availability counts
    depend on it, so it is kept.
    """

    def __init__(self, schedule: WeeklySchedule = DEFAULT_WEEKLY_SCHEDULE):
        self.schedule = schedule

    def slots_for_weekday(self, weekday: int) -> Tuple[TimeOfDay, ...]:
        """
        Return every slot start for the weekday, from opening up to and
        including closing time. Closed or out-of-range weekdays yield ().
        """
        window = self.schedule.window_for(weekday)
        if window is None:
            return ()

        first = window.open.minutes_since_midnight()
        last = window.close.minutes_since_midnight()
        return tuple(
            TimeOfDay.from_minutes(minutes)
            for minutes in range(first, last + 1, SLOT_MINUTES)
        )

    def slots_for_date(self, day: date_type) -> Tuple[TimeOfDay, ...]:
        return self.slots_for_weekday(weekday_of(day))
