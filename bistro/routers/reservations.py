# bistro/routers/reservations.py

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_client_ip, get_mailer, get_now, get_rate_limiter
from ..models.generated import Reservations as DBReservations
from ..schemas.reservations import ReservationRead, ReservationStatus, ReservationStatusUpdate
from ..services import reservations as reservation_service
from ..services.admission import RESERVATION_ACTION, admit
from ..services.errors import BistroError, BookingRejected
from ..services.mailer import Mailer
from ..services.rate_limit import RateLimiter, make_identifier
from ..services.slots import load_reservation_config
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def create_reservation(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    limiter: RateLimiter = Depends(get_rate_limiter),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Admit and persist a reservation.

    201 on success, 400 for validation/timing/capacity rejections,
    429 when rate limited.
    """
    identifier = make_identifier(RESERVATION_ACTION, get_client_ip(request))

    try:
        config = load_reservation_config(db)
        admitted = admit(payload, config, now, limiter=limiter, identifier=identifier)
        reservation = reservation_service.create_reservation(db, admitted, config)
    except BookingRejected as e:
        logger.info(f"Reservation rejected ({e.code.value}): {e.message}")
        raise http_error(e)
    except BistroError as e:
        raise http_error(e)

    background_tasks.add_task(mailer.reservation_received, reservation)
    return reservation


@router.get("", response_model=list[ReservationRead])
def list_reservations(
    date: Optional[str] = None,
    status: Optional[ReservationStatus] = None,
    db: Session = Depends(get_db),
):
    try:
        return reservation_service.list_reservations(db, date, status)
    except BistroError as e:
        raise http_error(e)


@router.get("/{id}", response_model=ReservationRead)
def get_reservation(id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, id)


@router.patch("/{id}/status", response_model=ReservationRead)
def update_reservation_status(
    id: int,
    data: ReservationStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    reservation = _get_or_404(db, id)
    try:
        reservation = reservation_service.update_status(
            db,
            reservation,
            data.status,
            admin_notes=data.admin_notes,
            table_number=data.table_number,
        )
    except BistroError as e:
        raise http_error(e)

    if data.status == "confirmed":
        background_tasks.add_task(mailer.reservation_confirmed, reservation)
    elif data.status == "cancelled":
        background_tasks.add_task(mailer.reservation_declined, reservation, data.reason)

    return reservation


@router.post("/{id}/restore", response_model=ReservationRead)
def restore_reservation(id: int, db: Session = Depends(get_db)):
    reservation = _get_or_404(db, id)
    try:
        return reservation_service.restore(db, reservation)
    except BistroError as e:
        raise http_error(e)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(id: int, db: Session = Depends(get_db)):
    reservation = _get_or_404(db, id)
    try:
        reservation_service.delete_reservation(db, reservation)
    except BistroError as e:
        raise http_error(e)


def _get_or_404(db: Session, reservation_id: int) -> DBReservations:
    try:
        obj = reservation_service.get_reservation(db, reservation_id)
    except BistroError as e:
        raise http_error(e)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj
