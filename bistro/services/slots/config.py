# bistro/services/slots/config.py
"""
Reservation configuration for slots calculation.

One logical `reservation_settings` row; when it is missing the hardcoded
defaults below apply so the system works with zero admin configuration.
"""

import json
import logging
import re
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ConfigError, StoreError

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def time_str_to_minutes(value: str) -> int:
    """
    Convert "HH:MM" or "HH:MM:SS" to minutes since midnight.

    "24:00" is accepted as end of day.
    """
    match = _TIME_RE.match(str(value).strip()) if value is not None else None
    if not match:
        raise ConfigError(f"Malformed time of day: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
        raise ConfigError(f"Time of day out of range: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Database times come back as HH:MM:SS; slots use HH:MM."""
    return str(value)[:5] if value else value


def parse_weekday(value) -> int:
    """Accept 0-6 (Monday = 0) or an English weekday name."""
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 6:
            return value
    elif isinstance(value, str):
        name = value.strip().lower()
        if name.isdigit() and 0 <= int(name) <= 6:
            return int(name)
        for idx, day in enumerate(WEEKDAY_NAMES):
            if name == day or name == day[:3]:
                return idx
    raise ConfigError(f"Unknown weekday: {value!r}")


@dataclass(frozen=True)
class ReservationConfig:
    """
    Effective reservation settings.

    Attributes:
        start_time / end_time: daily reservation window, "HH:MM"
        slot_duration_minutes: grid step for offered slots
        max_capacity: capacity units (tables) per slot
        closed_weekdays: weekdays without reservations (Monday = 0)
        min_advance_hours: lead time before a slot can be booked
        booking_window_days: how far ahead bookings are accepted
    """
    start_time: str = "11:00"
    end_time: str = "21:00"
    slot_duration_minutes: int = 30
    max_capacity: int = 15
    max_party_size: int = 20
    closed_weekdays: frozenset = field(default_factory=frozenset)
    min_advance_hours: int = 2
    booking_window_days: int = 30
    auto_confirm: bool = False

    @property
    def lead_minutes(self) -> int:
        return self.min_advance_hours * 60

    @classmethod
    def from_row(cls, row) -> "ReservationConfig":
        defaults = cls()
        return cls(
            start_time=normalize_time(row.reservation_start_time) or defaults.start_time,
            end_time=normalize_time(row.reservation_end_time) or defaults.end_time,
            slot_duration_minutes=_or_default(row.slot_duration_minutes, defaults.slot_duration_minutes),
            max_capacity=_or_default(row.max_tables, defaults.max_capacity),
            max_party_size=_or_default(row.max_party_size, defaults.max_party_size),
            closed_weekdays=parse_closed_days(row.closed_days),
            min_advance_hours=_or_default(row.min_advance_hours, defaults.min_advance_hours),
            booking_window_days=_or_default(row.booking_window_days, defaults.booking_window_days),
            auto_confirm=bool(row.auto_confirm),
        )


DEFAULT_RESERVATION_CONFIG = ReservationConfig()


def _or_default(value, default):
    return default if value is None else value


def parse_closed_days(raw) -> frozenset:
    """closed_days is stored as a JSON list of weekday names or numbers."""
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise ConfigError(f"closed_days is not valid JSON: {raw!r}")
    if not isinstance(raw, (list, tuple, set, frozenset)):
        raise ConfigError("closed_days must be a list")
    return frozenset(parse_weekday(day) for day in raw)


def load_reservation_config(db: Session) -> ReservationConfig:
    """Read the settings row, falling back to defaults when it is absent."""
    from ...models.generated import ReservationSettings

    try:
        row = db.query(ReservationSettings).order_by(ReservationSettings.id).first()
    except SQLAlchemyError as e:
        logger.error(f"Reservation settings query failed: {e}")
        raise StoreError("Failed to load reservation settings") from e

    if row is None:
        logger.debug("No reservation_settings row, using defaults")
        return DEFAULT_RESERVATION_CONFIG

    return ReservationConfig.from_row(row)
