# bistro/services/admission.py
"""
Booking admission.

Checks run in a fixed order and the first failure wins:

  1. rate limit            → RATE_LIMITED
  2. strictly in future    → NOT_IN_FUTURE
  3. min advance hours     → MIN_ADVANCE_VIOLATED
  4. booking window        → WINDOW_EXCEEDED
  5. field validation      → VALIDATION_ERROR (per field)
  6. opening hours + grid  → VALIDATION_ERROR (reservation_time)

Nothing is persisted here; the admitted reservation is handed to
services.reservations for the conditional write.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping, Optional

from pydantic import ValidationError

from ..config import settings
from ..schemas.reservations import ReservationCreate
from .errors import BookingRejected, ErrorCode, field_error, pydantic_field_errors
from .rate_limit import RateLimiter
from .slots.calendar import OperatingCalendar
from .slots.config import ReservationConfig
from .slots.generator import generate_day_slots

logger = logging.getLogger(__name__)

RESERVATION_ACTION = "reservation"


@dataclass(frozen=True)
class AdmittedReservation:
    data: ReservationCreate
    status: str
    starts_at: datetime


def parse_requested_instant(payload: Mapping) -> datetime:
    """Combine reservation_date and reservation_time; VALIDATION_ERROR if unparseable."""
    date_str = payload.get("reservation_date")
    time_str = payload.get("reservation_time")

    fields = []
    if not isinstance(date_str, str) or not date_str:
        fields.append(field_error("reservation_date", "Date is required"))
    if not isinstance(time_str, str) or not time_str:
        fields.append(field_error("reservation_time", "Time is required"))
    if fields:
        raise BookingRejected(ErrorCode.VALIDATION_ERROR, "Missing reservation date or time", fields)

    try:
        return datetime.strptime(f"{date_str} {time_str[:5]}", "%Y-%m-%d %H:%M")
    except ValueError:
        raise BookingRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid reservation date or time",
            [field_error("reservation_date", "Date must be YYYY-MM-DD and time HH:MM")],
        )


def check_slot(requested: datetime, config: ReservationConfig, now: datetime) -> None:
    """The requested instant must be one of the slots the availability view offers."""
    calendar = OperatingCalendar.from_reservation_config(config)
    if not calendar.is_open_on(requested.date()):
        raise BookingRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid reservation details",
            [field_error("reservation_time", "Restaurant is closed on this day")],
        )

    offered = {
        slot.starts_at
        for slot in generate_day_slots(
            calendar,
            requested.date(),
            now,
            lead_minutes=config.lead_minutes,
            step_minutes=config.slot_duration_minutes,
            close_inclusive=False,
        )
    }
    if requested not in offered:
        raise BookingRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid reservation details",
            [field_error(
                "reservation_time",
                f"Choose a {config.slot_duration_minutes}-minute slot between "
                f"{config.start_time} and {config.end_time}",
            )],
        )


def admit(
    payload: Mapping,
    config: ReservationConfig,
    now: datetime,
    limiter: Optional[RateLimiter] = None,
    identifier: Optional[str] = None,
    max_requests: Optional[int] = None,
    window_ms: Optional[int] = None,
) -> AdmittedReservation:
    """
    Validate a booking request against settings and the clock.

    Raises:
        BookingRejected with the code of the first failed check.
    """
    # Step 1: rate limit
    if limiter is not None and identifier is not None:
        decision = limiter.check(
            identifier,
            max_requests if max_requests is not None else settings.reservation_rate_limit,
            window_ms if window_ms is not None else settings.rate_limit_window_ms,
        )
        if not decision.allowed:
            raise BookingRejected(
                ErrorCode.RATE_LIMITED,
                "Too many reservation requests. Please try again in a few minutes.",
            )

    requested = parse_requested_instant(payload)

    # Step 2: future
    if requested <= now:
        raise BookingRejected(ErrorCode.NOT_IN_FUTURE, "Reservation must be in the future")

    # Step 3: lead time
    if requested - now < timedelta(hours=config.min_advance_hours):
        raise BookingRejected(
            ErrorCode.MIN_ADVANCE_VIOLATED,
            f"Reservations must be made at least {config.min_advance_hours} hours in advance",
        )

    # Step 4: window
    if requested > now + timedelta(days=config.booking_window_days):
        raise BookingRejected(
            ErrorCode.WINDOW_EXCEEDED,
            f"Reservations can only be made up to {config.booking_window_days} days in advance",
        )

    # Step 5: fields
    try:
        data = ReservationCreate.model_validate(dict(payload))
    except ValidationError as e:
        raise BookingRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid reservation details",
            pydantic_field_errors(e),
        )

    if data.party_size > config.max_party_size:
        raise BookingRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid reservation details",
            [field_error("party_size", f"Party size cannot exceed {config.max_party_size}")],
        )

    # Step 6: the time must be an offered slot
    check_slot(requested, config, now)

    status = "confirmed" if config.auto_confirm else "pending"
    logger.info(
        f"Reservation admitted: {data.reservation_date} {data.reservation_time}, "
        f"party={data.party_size}, status={status}"
    )
    return AdmittedReservation(data=data, status=status, starts_at=requested)
