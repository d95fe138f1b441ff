# bistro/routers/settings.py

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import ReservationSettings as DBReservationSettings
from ..models.generated import RestaurantSettings as DBRestaurantSettings
from ..schemas.reservations import ReservationSettingsRead, ReservationSettingsUpdate
from ..schemas.restaurant import RestaurantSettingsRead, RestaurantSettingsUpdate
from ..services.errors import BistroError, ConfigError
from ..services.pricing import load_tax_rate
from ..services.slots import OperatingCalendar, ReservationConfig, load_order_calendar, load_reservation_config
from ..services.slots.calendar import describe
from ..services.slots.config import parse_closed_days
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def _to_read(config: ReservationConfig) -> ReservationSettingsRead:
    return ReservationSettingsRead(
        start_time=config.start_time,
        end_time=config.end_time,
        slot_duration_minutes=config.slot_duration_minutes,
        max_capacity=config.max_capacity,
        max_party_size=config.max_party_size,
        closed_weekdays=sorted(config.closed_weekdays),
        min_advance_hours=config.min_advance_hours,
        booking_window_days=config.booking_window_days,
        auto_confirm=config.auto_confirm,
    )


@router.get("/reservations", response_model=ReservationSettingsRead)
def get_reservation_settings(db: Session = Depends(get_db)):
    """Effective settings (defaults when no row exists)."""
    try:
        return _to_read(load_reservation_config(db))
    except BistroError as e:
        raise http_error(e)


@router.put("/reservations", response_model=ReservationSettingsRead)
def update_reservation_settings(
    data: ReservationSettingsUpdate,
    db: Session = Depends(get_db),
):
    try:
        closed = parse_closed_days(data.closed_days)
        OperatingCalendar.uniform(data.start_time, data.end_time, closed)
    except ConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.code.value, "message": e.message},
        )

    try:
        row = db.query(DBReservationSettings).order_by(DBReservationSettings.id).first()
        if row is None:
            row = DBReservationSettings()
            db.add(row)

        row.reservation_start_time = data.start_time
        row.reservation_end_time = data.end_time
        row.slot_duration_minutes = data.slot_duration_minutes
        row.max_tables = data.max_capacity
        row.max_party_size = data.max_party_size
        row.closed_days = json.dumps(sorted(closed))
        row.min_advance_hours = data.min_advance_hours
        row.booking_window_days = data.booking_window_days
        row.auto_confirm = 1 if data.auto_confirm else 0

        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving reservation settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to save settings")

    logger.info("Reservation settings updated")
    return _to_read(ReservationConfig.from_row(row))


# ── Restaurant (business hours, tax) ─────────────────────────────────────


def _restaurant_row(db: Session) -> Optional[DBRestaurantSettings]:
    return db.query(DBRestaurantSettings).order_by(DBRestaurantSettings.id).first()


def _restaurant_to_read(db: Session, row: Optional[DBRestaurantSettings]) -> RestaurantSettingsRead:
    return RestaurantSettingsRead(
        restaurant_name=row.restaurant_name if row is not None else "Bistro",
        phone=row.phone if row is not None else None,
        email=row.email if row is not None else None,
        notification_email=row.notification_email if row is not None else None,
        business_hours=describe(load_order_calendar(db)),
        tax_rate=load_tax_rate(db),
    )


@router.get("/restaurant", response_model=RestaurantSettingsRead)
def get_restaurant_settings(db: Session = Depends(get_db)):
    """Effective hours and tax rate (defaults when no row exists)."""
    try:
        return _restaurant_to_read(db, _restaurant_row(db))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to fetch settings")
    except BistroError as e:
        raise http_error(e)


@router.put("/restaurant", response_model=RestaurantSettingsRead)
def update_restaurant_settings(
    data: RestaurantSettingsUpdate,
    db: Session = Depends(get_db),
):
    try:
        calendar = OperatingCalendar.from_business_hours(data.business_hours)
    except ConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.code.value, "message": e.message},
        )

    try:
        row = _restaurant_row(db)
        if row is None:
            row = DBRestaurantSettings()
            db.add(row)

        row.restaurant_name = data.restaurant_name
        row.phone = data.phone
        row.email = data.email
        row.notification_email = data.notification_email
        row.business_hours = json.dumps(describe(calendar)) if data.business_hours else "{}"
        row.tax_rate = data.tax_rate

        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving restaurant settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to save settings")

    logger.info(f"Restaurant settings updated (tax_rate={row.tax_rate})")
    try:
        return _restaurant_to_read(db, row)
    except BistroError as e:
        raise http_error(e)
