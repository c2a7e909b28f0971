"""
Slot Generation

Splits a doctor's daily window into appointment-sized slots and drops the
ones that are taken or already in the past.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from clinicdesk.scheduling.intervals import Interval


def generate_slots(window: Interval, duration: timedelta) -> List[Interval]:
    """Consecutive ``duration`` slots that fit entirely inside ``window``."""
    slots = []
    current = window.start
    while current + duration <= window.end:
        slots.append(Interval(current, current + duration))
        current += duration
    return slots


def free_slots(
    window: Interval,
    duration: timedelta,
    booked: Iterable[Interval],
    not_before: Optional[datetime] = None
) -> List[Interval]:
    """
    Slots of ``window`` that overlap none of ``booked``.

    Args:
        window: bookable interval of the day
        duration: appointment length
        booked: intervals of active appointments
        not_before: slots starting at or before this instant are dropped

    Returns:
        list[Interval]: free slots, ascending
    """
    booked = list(booked)
    result = []
    for slot in generate_slots(window, duration):
        if not_before is not None and slot.start <= not_before:
            continue
        if any(slot.overlaps(taken) for taken in booked):
            continue
        result.append(slot)
    return result
