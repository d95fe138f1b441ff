# bistro/services/slots/generator.py
"""
Slot generation.

Produces candidate slots (no capacity information) from the operating
calendar:

  earliest = now + lead, rounded up to the granularity
  today:      start = max(earliest, open)
  later days: start = open
  walk forward in fixed steps until close

Every call recomputes the list from its arguments; nothing is cached.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional

from .calendar import OperatingCalendar
from .config import minutes_to_time_str, time_str_to_minutes

logger = logging.getLogger(__name__)

# Guard against misconfigured durations producing runaway loops
MAX_STEPS_PER_DAY = 100

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TimeSlot:
    """A single offerable time point."""
    date: date
    time: str  # "HH:MM"
    available: bool = True
    remaining_capacity: Optional[int] = None

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, datetime.min.time()) + timedelta(
            minutes=time_str_to_minutes(self.time)
        )

    def with_capacity(self, remaining: int) -> "TimeSlot":
        return replace(self, available=remaining > 0, remaining_capacity=remaining)


def ceil_to_granularity(minutes: int, granularity: int) -> int:
    """Round minutes since midnight up to the next multiple of granularity."""
    return -(-minutes // granularity) * granularity


def earliest_instant(now: datetime, lead_minutes: int) -> datetime:
    """now + lead, truncated to the minute and bumped if seconds remain."""
    earliest = now + timedelta(minutes=lead_minutes)
    if earliest.second or earliest.microsecond:
        earliest = earliest.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return earliest


def generate_day_slots(
    calendar: OperatingCalendar,
    day: date,
    now: datetime,
    lead_minutes: int,
    step_minutes: int,
    granularity_minutes: Optional[int] = None,
    close_inclusive: bool = True,
) -> list[TimeSlot]:
    """
    Candidate slots for one date.

    Returns an empty list when the day is closed, already past, or entirely
    inside the lead time. A non-positive step yields no slots.
    """
    if step_minutes <= 0:
        logger.warning(f"Slot step must be positive, got {step_minutes}; no slots generated")
        return []

    granularity = granularity_minutes if granularity_minutes and granularity_minutes > 0 else step_minutes

    hours = calendar.resolve_day(day)
    if hours is None:
        return []

    earliest = earliest_instant(now, lead_minutes)
    if earliest.date() > day:
        return []

    if earliest.date() == day:
        earliest_min = earliest.hour * 60 + earliest.minute
        start = max(ceil_to_granularity(earliest_min, granularity), hours.open_minutes)
    else:
        start = hours.open_minutes

    start = ceil_to_granularity(start, granularity)

    slots: list[TimeSlot] = []
    t = start
    steps = 0
    while (t <= hours.close_minutes if close_inclusive else t < hours.close_minutes) and t < MINUTES_PER_DAY:
        if steps >= MAX_STEPS_PER_DAY:
            logger.warning(
                f"Slot generation for {day.isoformat()} stopped after {MAX_STEPS_PER_DAY} steps "
                f"(step={step_minutes}min)"
            )
            break
        slots.append(TimeSlot(date=day, time=minutes_to_time_str(t)))
        t += step_minutes
        steps += 1

    return slots


def generate_slots(
    calendar: OperatingCalendar,
    now: datetime,
    horizon_days: int,
    lead_minutes: int,
    step_minutes: int,
    granularity_minutes: Optional[int] = None,
    close_inclusive: bool = True,
) -> list[TimeSlot]:
    """Candidate slots for [today, today + horizon_days), in order."""
    today = now.date()
    slots: list[TimeSlot] = []
    for offset in range(max(horizon_days, 0)):
        day = today + timedelta(days=offset)
        slots.extend(generate_day_slots(
            calendar,
            day,
            now,
            lead_minutes,
            step_minutes,
            granularity_minutes=granularity_minutes,
            close_inclusive=close_inclusive,
        ))
    return slots
