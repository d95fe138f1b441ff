# bistro/services/orders.py
"""
Order submission and admin status updates.

Submission:
  1. rate limit                       → RATE_LIMITED
  2. envelope validation (OrderCreate) → VALIDATION_ERROR
  3. scheduled time is an offered checkout slot
  4. authoritative pricing            → ITEM_NOT_FOUND / ITEM_UNAVAILABLE
  5. insert priced order

Only the PricedOrder totals are ever written.
"""

import json
import logging
from datetime import datetime
from typing import Mapping, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import Orders
from ..schemas.orders import OrderCreate
from .errors import ErrorCode, OrderRejected, StoreError, field_error, pydantic_field_errors
from .pricing import PricedOrder, price_from_store
from .rate_limit import RateLimiter
from .slots.availability import calculate_order_time_slots

logger = logging.getLogger(__name__)

ORDER_ACTION = "order"


def _now_str() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def validate_order(payload: Mapping) -> OrderCreate:
    try:
        return OrderCreate.model_validate(dict(payload))
    except ValidationError as e:
        raise OrderRejected(ErrorCode.VALIDATION_ERROR, "Invalid order details", pydantic_field_errors(e))


def check_scheduled_time(db: Session, scheduled: Optional[datetime], now: datetime) -> Optional[datetime]:
    """The requested time must be one of the checkout slots; None means ASAP."""
    if scheduled is None:
        return None
    scheduled = _to_local_naive(scheduled).replace(second=0, microsecond=0)
    offered = {slot.starts_at for slot in calculate_order_time_slots(db, now)}
    if scheduled not in offered:
        raise OrderRejected(
            ErrorCode.VALIDATION_ERROR,
            "Invalid order details",
            [field_error("scheduled_time", "Selected time is outside opening hours or too soon")],
        )
    return scheduled


def submit_order(
    db: Session,
    payload: Mapping,
    now: datetime,
    limiter: Optional[RateLimiter] = None,
    identifier: Optional[str] = None,
) -> tuple[Orders, PricedOrder]:
    if limiter is not None and identifier is not None:
        decision = limiter.check(identifier, settings.order_rate_limit, settings.rate_limit_window_ms)
        if not decision.allowed:
            raise OrderRejected(
                ErrorCode.RATE_LIMITED,
                "Too many orders. Please try again in a few minutes.",
            )

    data = validate_order(payload)
    scheduled = check_scheduled_time(db, data.scheduled_time, now)
    priced = price_from_store(db, data.items)
    order = create_order(db, data, priced, scheduled)
    return order, priced


def create_order(
    db: Session,
    data: OrderCreate,
    priced: PricedOrder,
    scheduled: Optional[datetime] = None,
) -> Orders:
    order = Orders(
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        customer_email=data.customer_email,
        delivery_address=data.delivery_address,
        order_type=data.order_type,
        scheduled_time=scheduled.strftime("%Y-%m-%dT%H:%M:%S") if scheduled else None,
        special_notes=data.special_notes,
        items=json.dumps(priced.items_payload(), ensure_ascii=False),
        subtotal=float(priced.subtotal),
        tax=float(priced.tax),
        total=float(priced.total),
        status="pending",
    )
    try:
        db.add(order)
        db.commit()
        db.refresh(order)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating order: {e}")
        raise StoreError("Failed to create order") from e

    logger.info(
        f"Order created: id={order.id}, type={order.order_type}, "
        f"lines={len(priced.lines)}, total={priced.total}"
    )
    return order


def list_orders(db: Session, status: Optional[str] = None) -> list[Orders]:
    try:
        query = db.query(Orders)
        if status:
            query = query.filter(Orders.status == status)
        return query.order_by(Orders.created_at.desc(), Orders.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching orders: {e}")
        raise StoreError("Failed to fetch orders") from e


def get_order(db: Session, order_id: int) -> Optional[Orders]:
    try:
        return db.get(Orders, order_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching order {order_id}: {e}")
        raise StoreError("Failed to fetch order") from e


def update_order_status(db: Session, order: Orders, status: str) -> Orders:
    previous = order.status
    order.status = status
    order.updated_at = _now_str()
    try:
        db.commit()
        db.refresh(order)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating order {order.id}: {e}")
        raise StoreError("Failed to update order") from e
    logger.info(f"Order {order.id}: {previous} → {status}")
    return order
