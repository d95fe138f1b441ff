# bistro/services/slots/availability.py
"""
Availability for both surfaces.

Reservations: calendar (reservation settings) + generator + capacity.
Checkout:     calendar (business hours) + generator, no capacity.

Both go through the same OperatingCalendar and generator so the two
surfaces cannot disagree about opening hours.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import settings
from ..errors import StoreError
from .calendar import OperatingCalendar, load_order_calendar
from .capacity import ACTIVE_STATUSES, annotate
from .config import ReservationConfig, load_reservation_config
from .generator import TimeSlot, generate_day_slots, generate_slots

logger = logging.getLogger(__name__)


def calculate_availability(
    db: Session,
    target_date: date,
    now: Optional[datetime] = None,
    config: Optional[ReservationConfig] = None,
) -> dict:
    """
    Reservation slots for one date.

    Returns:
        {"date", "slots": list[TimeSlot], "message": str | None}
    """
    now = now or datetime.now()
    config = config or load_reservation_config(db)

    result = {"date": target_date, "slots": [], "message": None}

    if target_date < now.date():
        result["message"] = "Date is in the past"
        return result

    window_end = now + timedelta(days=config.booking_window_days)
    if target_date > window_end.date():
        result["message"] = (
            f"Reservations can only be made up to {config.booking_window_days} days in advance"
        )
        return result

    calendar = OperatingCalendar.from_reservation_config(config)
    if not calendar.is_open_on(target_date):
        result["message"] = "Restaurant is closed on this day"
        return result

    candidates = generate_day_slots(
        calendar,
        target_date,
        now,
        lead_minutes=config.lead_minutes,
        step_minutes=config.slot_duration_minutes,
        close_inclusive=False,
    )
    # the last day of the window is cut at the same instant as admission
    candidates = [slot for slot in candidates if slot.starts_at <= window_end]

    bookings = _get_active_bookings(db, target_date)
    result["slots"] = annotate(
        candidates,
        bookings,
        config.max_capacity,
        seats_per_table=settings.seats_per_table,
    )

    logger.info(
        f"Availability {target_date.isoformat()}: {len(result['slots'])} slots, "
        f"{len(bookings)} active bookings"
    )
    return result


def calculate_order_time_slots(
    db: Session,
    now: Optional[datetime] = None,
    calendar: Optional[OperatingCalendar] = None,
) -> list[TimeSlot]:
    """Pickup/delivery times offered at checkout."""
    now = now or datetime.now()
    calendar = calendar or load_order_calendar(db)
    return generate_slots(
        calendar,
        now,
        horizon_days=settings.order_horizon_days,
        lead_minutes=settings.order_lead_minutes,
        step_minutes=settings.order_slot_minutes,
        close_inclusive=True,
    )


# ── Database helpers ─────────────────────────────────────────────────────


def _get_active_bookings(db: Session, target_date: date) -> list:
    """Pending/confirmed reservations on date."""
    from ...models.generated import Reservations

    try:
        return (
            db.query(Reservations)
            .filter(
                Reservations.reservation_date == target_date.isoformat(),
                Reservations.status.in_(sorted(ACTIVE_STATUSES)),
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Reservations query failed: {e}")
        raise StoreError("Failed to load reservations") from e
