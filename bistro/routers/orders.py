# bistro/routers/orders.py

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_client_ip, get_mailer, get_now, get_rate_limiter
from ..models.generated import Orders as DBOrders
from ..schemas.orders import (
    CheckoutSlot,
    CheckoutSlotsResponse,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
)
from ..services import orders as order_service
from ..services.errors import BistroError, OrderRejected
from ..services.mailer import Mailer
from ..services.rate_limit import RateLimiter, make_identifier
from ..services.slots import calculate_order_time_slots, load_order_calendar
from ..services.slots.calendar import describe
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/time-slots", response_model=CheckoutSlotsResponse)
def get_checkout_time_slots(
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Pickup/delivery times for the checkout picker."""
    try:
        calendar = load_order_calendar(db)
        slots = calculate_order_time_slots(db, now, calendar=calendar)
    except BistroError as e:
        raise http_error(e)

    return CheckoutSlotsResponse(
        slots=[
            CheckoutSlot(value=slot.starts_at, date=slot.date.isoformat(), time=slot.time)
            for slot in slots
        ],
        hours=describe(calendar),
    )


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    limiter: RateLimiter = Depends(get_rate_limiter),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Re-price and persist an order.

    201 on success, 400 for validation/catalog rejections, 429 when rate
    limited, 500 when the store fails.
    """
    identifier = make_identifier(order_service.ORDER_ACTION, get_client_ip(request))

    try:
        order, priced = order_service.submit_order(db, payload, now, limiter=limiter, identifier=identifier)
    except OrderRejected as e:
        logger.info(f"Order rejected ({e.code.value}): {e.message}")
        raise http_error(e)
    except BistroError as e:
        raise http_error(e)

    background_tasks.add_task(mailer.order_confirmation, order, priced)
    return order


@router.get("", response_model=list[OrderRead])
def list_orders(
    status: Optional[OrderStatus] = None,
    db: Session = Depends(get_db),
):
    try:
        return order_service.list_orders(db, status)
    except BistroError as e:
        raise http_error(e)


@router.get("/{id}", response_model=OrderRead)
def get_order(id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, id)


@router.patch("/{id}", response_model=OrderRead)
def update_order(
    id: int,
    data: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    order = _get_or_404(db, id)
    try:
        order = order_service.update_order_status(db, order, data.status)
    except BistroError as e:
        raise http_error(e)

    background_tasks.add_task(mailer.order_status, order)
    return order


def _get_or_404(db: Session, order_id: int) -> DBOrders:
    try:
        obj = order_service.get_order(db, order_id)
    except BistroError as e:
        raise http_error(e)
    if not obj:
        raise HTTPException(status_code=404, detail="Order not found")
    return obj
