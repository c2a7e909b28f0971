"""
Availability Evaluator

Decides whether an interval lies inside a doctor's recurring weekly window.

The window is a cyclic weekday range (ISO numbering 1=Monday..7=Sunday, may
wrap past Sunday) combined with a daily time range. Both are evaluated in the
clinic's local time, so the caller supplies the clinic timezone.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

import pytz

from clinicdesk.models import Doctor
from clinicdesk.scheduling.intervals import Interval


@dataclass(frozen=True)
class WeeklyWindow:
    """Predicate over (weekday, time-of-day) pairs; evaluation is O(1)."""

    from_weekday: int
    to_weekday: int
    from_time: time
    to_time: time

    @classmethod
    def from_doctor(cls, doctor: Doctor) -> "WeeklyWindow":
        return cls(
            from_weekday=doctor.available_from_weekday,
            to_weekday=doctor.available_to_weekday,
            from_time=doctor.available_from_time,
            to_time=doctor.available_to_time,
        )

    @property
    def wraps(self) -> bool:
        """True for ranges such as Friday -> Monday."""
        return self.from_weekday > self.to_weekday

    def includes_weekday(self, weekday: int) -> bool:
        if self.wraps:
            return weekday >= self.from_weekday or weekday <= self.to_weekday
        return self.from_weekday <= weekday <= self.to_weekday

    def contains(self, local_start: datetime, local_end: datetime) -> bool:
        """
        Check a local-time interval against the window.

        The whole interval must sit inside one available day: the start day
        must be an available weekday, the start no earlier than ``from_time``
        and the end no later than ``to_time`` on that same day.
        """
        if not self.includes_weekday(local_start.isoweekday()):
            return False
        if local_end.date() != local_start.date():
            return False
        start_time = local_start.time().replace(tzinfo=None)
        end_time = local_end.time().replace(tzinfo=None)
        return self.from_time <= start_time and end_time <= self.to_time


def get_timezone(name: str) -> pytz.BaseTzInfo:
    """Resolve a timezone name; unknown names raise ``ValueError``."""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown timezone: {name!r}")


def to_local(instant: datetime, timezone: str) -> datetime:
    """Project an instant onto the clinic's local calendar."""
    tz = get_timezone(timezone)
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    return instant.astimezone(tz)


def is_within_availability(doctor: Doctor, interval: Interval, timezone: str) -> bool:
    """
    Whether ``interval`` lies entirely inside the doctor's weekly window.

    Returns False (never raises) when the interval is outside; that is a
    business answer, not a fault.
    """
    window = WeeklyWindow.from_doctor(doctor)
    return window.contains(to_local(interval.start, timezone), to_local(interval.end, timezone))


def daily_window(doctor: Doctor, day: date, timezone: str) -> Optional[Interval]:
    """
    Bookable interval of a doctor on a local calendar day, or None.

    Args:
        doctor: the doctor whose schedule is evaluated
        day: calendar date in the clinic's local time
        timezone: clinic timezone name

    Returns:
        Interval in UTC covering ``from_time``..``to_time`` of that day, or
        None when the weekday is outside the doctor's range.
    """
    window = WeeklyWindow.from_doctor(doctor)
    if not window.includes_weekday(day.isoweekday()):
        return None
    tz = get_timezone(timezone)
    start = tz.localize(datetime.combine(day, window.from_time))
    end = tz.localize(datetime.combine(day, window.to_time))
    return Interval(start, end)
