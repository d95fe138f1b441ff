# bistro/services/slots/calendar.py
"""
Operating calendar: open/close window for a given day.

Single source of truth for both surfaces that need hours:
- reservation availability (uniform window from reservation_settings)
- checkout time picker (per-weekday business hours from restaurant_settings)
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ConfigError, StoreError
from .config import (
    WEEKDAY_NAMES,
    ReservationConfig,
    minutes_to_time_str,
    parse_weekday,
    time_str_to_minutes,
)

logger = logging.getLogger(__name__)


# Mon-Thu 11-21, Fri-Sat 11-22, Sun 12-20
DEFAULT_BUSINESS_HOURS = {
    "monday": {"open": "11:00", "close": "21:00"},
    "tuesday": {"open": "11:00", "close": "21:00"},
    "wednesday": {"open": "11:00", "close": "21:00"},
    "thursday": {"open": "11:00", "close": "21:00"},
    "friday": {"open": "11:00", "close": "22:00"},
    "saturday": {"open": "11:00", "close": "22:00"},
    "sunday": {"open": "12:00", "close": "20:00"},
}


@dataclass(frozen=True)
class DayHours:
    """Open/close window in minutes since midnight."""
    open_minutes: int
    close_minutes: int

    @classmethod
    def parse(cls, open_str: str, close_str: str) -> "DayHours":
        open_min = time_str_to_minutes(open_str)
        close_min = time_str_to_minutes(close_str)
        if close_min <= open_min:
            raise ConfigError(f"Closing time {close_str!r} is not after opening time {open_str!r}")
        return cls(open_min, close_min)

    @property
    def open(self) -> str:
        return minutes_to_time_str(self.open_minutes)

    @property
    def close(self) -> str:
        return minutes_to_time_str(self.close_minutes)


@dataclass(frozen=True)
class OperatingCalendar:
    """
    Weekly schedule plus closed-day overrides.

    `hours` is indexed by weekday (Monday = 0); None means closed.
    """
    hours: tuple
    closed_weekdays: frozenset = field(default_factory=frozenset)
    closed_dates: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        if len(self.hours) != 7:
            raise ConfigError(f"Weekly schedule needs 7 days, got {len(self.hours)}")

    def resolve_day(self, day: date) -> Optional[DayHours]:
        """Return the day's window, or None when closed."""
        weekday = day.weekday()
        if weekday in self.closed_weekdays or day in self.closed_dates:
            return None
        return self.hours[weekday]

    def is_open_on(self, day: date) -> bool:
        return self.resolve_day(day) is not None

    # ── Constructors ─────────────────────────────────────────────────────

    @classmethod
    def uniform(
        cls,
        open_time: str,
        close_time: str,
        closed_weekdays=(),
        closed_dates=(),
    ) -> "OperatingCalendar":
        """Same window every day (reservation settings)."""
        day_hours = DayHours.parse(open_time, close_time)
        return cls(
            hours=(day_hours,) * 7,
            closed_weekdays=frozenset(parse_weekday(d) for d in closed_weekdays),
            closed_dates=frozenset(closed_dates),
        )

    @classmethod
    def from_reservation_config(cls, config: ReservationConfig) -> "OperatingCalendar":
        return cls.uniform(config.start_time, config.end_time, config.closed_weekdays)

    @classmethod
    def from_business_hours(cls, schedule: Mapping, closed_dates=()) -> "OperatingCalendar":
        """
        Build from a business_hours mapping.

        Keys are weekday names ("monday"/"mon") or numbers ("0" = Monday).
        Values: {"open", "close", "closed"?} or {"start", "end"}; None = closed.
        Days missing from the mapping are closed.
        """
        hours: list[Optional[DayHours]] = [None] * 7
        for key, value in schedule.items():
            weekday = parse_weekday(key)
            hours[weekday] = _parse_day_entry(key, value)
        return cls(hours=tuple(hours), closed_dates=frozenset(closed_dates))


def _parse_day_entry(key, value) -> Optional[DayHours]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigError(f"Business hours for {key!r} must be an object")
    if value.get("closed"):
        return None
    open_str = value.get("open") or value.get("start")
    close_str = value.get("close") or value.get("end")
    if not open_str or not close_str:
        raise ConfigError(f"Business hours for {key!r} need open and close")
    return DayHours.parse(open_str, close_str)


def load_order_calendar(db: Session) -> OperatingCalendar:
    """Calendar for the checkout time picker (restaurant business hours)."""
    from ...models.generated import RestaurantSettings

    try:
        row = db.query(RestaurantSettings).order_by(RestaurantSettings.id).first()
    except SQLAlchemyError as e:
        logger.error(f"Restaurant settings query failed: {e}")
        raise StoreError("Failed to load restaurant settings") from e

    schedule = None
    if row is not None and row.business_hours:
        try:
            schedule = json.loads(row.business_hours)
        except json.JSONDecodeError:
            raise ConfigError("business_hours is not valid JSON")

    if not schedule:
        schedule = DEFAULT_BUSINESS_HOURS

    return OperatingCalendar.from_business_hours(schedule)


def describe(calendar: OperatingCalendar) -> dict[str, Optional[dict]]:
    """Weekday name → {"open", "close"} or None, for display."""
    result = {}
    for idx, name in enumerate(WEEKDAY_NAMES):
        day_hours = None if idx in calendar.closed_weekdays else calendar.hours[idx]
        result[name] = {"open": day_hours.open, "close": day_hours.close} if day_hours else None
    return result
