# bistro/services/reservations.py
"""
Reservation persistence and admin status changes.

Creation is a conditional write: capacity for the slot is recounted inside
the write transaction and the row is inserted only if a unit remains.

Status machine (admin driven):
  pending   → confirmed | cancelled
  confirmed → cancelled | completed
  cancelled | completed → pending   (explicit restore only)
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import ReservationSettings, Reservations
from .admission import AdmittedReservation
from .errors import BookingRejected, ErrorCode, InvalidTransition, StoreError
from .slots.capacity import ACTIVE_STATUSES, units_used
from .slots.config import ReservationConfig

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"cancelled", "completed"}),
    "cancelled": frozenset(),
    "completed": frozenset(),
}

RESTORABLE = frozenset({"cancelled", "completed"})


def check_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(f"Cannot change reservation status from {current} to {target}")


def _now_str() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


# ── Create ───────────────────────────────────────────────────────────────


def create_reservation(
    db: Session,
    admitted: AdmittedReservation,
    config: ReservationConfig,
) -> Reservations:
    """
    Insert the reservation if its slot still has capacity.

    Raises:
        BookingRejected(SLOT_UNAVAILABLE) when the slot filled up meanwhile.
        StoreError on database failure.
    """
    data = admitted.data

    try:
        # Serialise concurrent writers on the settings row where the backend supports it
        db.query(ReservationSettings).with_for_update().first()

        existing = (
            db.query(Reservations)
            .filter(
                Reservations.reservation_date == data.reservation_date,
                Reservations.status.in_(sorted(ACTIVE_STATUSES)),
            )
            .all()
        )
        used = units_used(existing, data.reservation_date, data.reservation_time, settings.seats_per_table)
        if config.max_capacity - used <= 0:
            db.rollback()
            logger.info(
                f"Slot full: {data.reservation_date} {data.reservation_time} "
                f"({used}/{config.max_capacity} units)"
            )
            raise BookingRejected(
                ErrorCode.SLOT_UNAVAILABLE,
                "The selected time is no longer available. Please choose another time.",
            )

        reservation = Reservations(
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            reservation_date=data.reservation_date,
            reservation_time=data.reservation_time,
            party_size=data.party_size,
            special_requests=data.special_requests,
            status=admitted.status,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating reservation: {e}")
        raise StoreError("Failed to create reservation") from e

    logger.info(
        f"Reservation created: id={reservation.id}, "
        f"time={reservation.reservation_date} {reservation.reservation_time}, "
        f"party={reservation.party_size}, status={reservation.status}"
    )
    return reservation


# ── Read ─────────────────────────────────────────────────────────────────


def list_reservations(
    db: Session,
    target_date: Optional[str] = None,
    status: Optional[str] = None,
) -> list[Reservations]:
    try:
        query = db.query(Reservations)
        if target_date:
            query = query.filter(Reservations.reservation_date == target_date)
        if status:
            query = query.filter(Reservations.status == status)
        return query.order_by(Reservations.reservation_date, Reservations.reservation_time).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching reservations: {e}")
        raise StoreError("Failed to fetch reservations") from e


def get_reservation(db: Session, reservation_id: int) -> Optional[Reservations]:
    try:
        return db.get(Reservations, reservation_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching reservation {reservation_id}: {e}")
        raise StoreError("Failed to fetch reservation") from e


# ── Status changes ───────────────────────────────────────────────────────


def update_status(
    db: Session,
    reservation: Reservations,
    target: str,
    admin_notes: Optional[str] = None,
    table_number: Optional[str] = None,
) -> Reservations:
    check_transition(reservation.status, target)
    previous = reservation.status
    reservation.status = target
    if admin_notes is not None:
        reservation.admin_notes = admin_notes
    if table_number is not None:
        reservation.table_number = table_number
    _save(db, reservation)
    logger.info(f"Reservation {reservation.id}: {previous} → {target}")
    return reservation


def restore(db: Session, reservation: Reservations) -> Reservations:
    """Bring a cancelled/completed reservation back to pending."""
    if reservation.status not in RESTORABLE:
        raise InvalidTransition(f"Only cancelled or completed reservations can be restored, not {reservation.status}")
    previous = reservation.status
    reservation.status = "pending"
    _save(db, reservation)
    logger.info(f"Reservation {reservation.id} restored: {previous} → pending")
    return reservation


def delete_reservation(db: Session, reservation: Reservations) -> None:
    """Hard delete; frees the capacity the booking held."""
    reservation_id = reservation.id
    try:
        db.delete(reservation)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting reservation {reservation_id}: {e}")
        raise StoreError("Failed to delete reservation") from e
    logger.info(f"Reservation {reservation_id} deleted")


def _save(db: Session, reservation: Reservations) -> None:
    reservation.updated_at = _now_str()
    try:
        db.commit()
        db.refresh(reservation)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating reservation {reservation.id}: {e}")
        raise StoreError("Failed to update reservation") from e
