# bistro/services/pricing.py
"""
Authoritative order pricing.

Every line is re-priced from the menu catalog. Whatever price, name or
total the client submitted is never read:

  line_total = catalog.price × quantity
  subtotal   = round2(Σ line_total)
  tax        = round2(subtotal × tax_rate)
  total      = round2(subtotal + tax)

Any unknown or unavailable item rejects the whole order.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from .errors import ErrorCode, OrderRejected, StoreError, field_error

logger = logging.getLogger(__name__)

MIN_LINES = 1
MAX_LINES = 50
MIN_QUANTITY = 1
MAX_QUANTITY = 99

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value))


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    customizations: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": float(self.unit_price),
            "line_total": float(self.line_total),
            "customizations": self.customizations,
        }


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def items_payload(self) -> list[dict]:
        return [line.to_dict() for line in self.lines]


def _validate_lines(lines: Sequence) -> None:
    if not MIN_LINES <= len(lines) <= MAX_LINES:
        raise OrderRejected(
            ErrorCode.VALIDATION_ERROR,
            f"Order must contain between {MIN_LINES} and {MAX_LINES} items",
            [field_error("items", f"expected {MIN_LINES}-{MAX_LINES} lines, got {len(lines)}")],
        )

    fields = []
    for idx, line in enumerate(lines):
        qty = line.quantity
        if isinstance(qty, bool) or not isinstance(qty, int):
            fields.append(field_error(f"items.{idx}.quantity", "Quantity must be an integer"))
        elif not MIN_QUANTITY <= qty <= MAX_QUANTITY:
            fields.append(field_error(
                f"items.{idx}.quantity",
                f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}",
            ))
    if fields:
        raise OrderRejected(ErrorCode.VALIDATION_ERROR, "Invalid order items", fields)


def price_order(
    lines: Sequence,
    catalog: Mapping,
    tax_rate: float,
) -> PricedOrder:
    """
    Price submitted lines against a catalog snapshot.

    Args:
        lines: objects with item_id, quantity, customizations
        catalog: {item_id: entry} where entry has price, available, name
        tax_rate: fraction, e.g. 0.0875

    Raises:
        OrderRejected: VALIDATION_ERROR, ITEM_NOT_FOUND or ITEM_UNAVAILABLE
    """
    _validate_lines(lines)

    priced: list[PricedLine] = []
    for line in lines:
        entry = catalog.get(line.item_id)
        if entry is None:
            raise OrderRejected(
                ErrorCode.ITEM_NOT_FOUND,
                f"Item not found: {line.item_id}",
                item_id=line.item_id,
            )
        if not entry.available:
            raise OrderRejected(
                ErrorCode.ITEM_UNAVAILABLE,
                f"Item unavailable: {entry.name}",
                item_id=line.item_id,
            )

        unit_price = to_money(entry.price)
        priced.append(PricedLine(
            item_id=line.item_id,
            name=entry.name,
            quantity=line.quantity,
            unit_price=unit_price,
            line_total=unit_price * line.quantity,
            customizations=dict(line.customizations or {}),
        ))

    subtotal = round2(sum((p.line_total for p in priced), Decimal("0")))
    tax = round2(subtotal * to_money(tax_rate))

    return PricedOrder(
        lines=tuple(priced),
        subtotal=subtotal,
        tax=tax,
        total=round2(subtotal + tax),
    )


# ── Database helpers ─────────────────────────────────────────────────────


def load_catalog(db: Session, item_ids: Iterable[str]) -> dict:
    """Catalog snapshot for the requested ids: {id: MenuItems}."""
    from ..models.generated import MenuItems

    ids = sorted(set(item_ids))
    if not ids:
        return {}
    try:
        rows = db.query(MenuItems).filter(MenuItems.id.in_(ids)).all()
    except SQLAlchemyError as e:
        logger.error(f"Menu query failed: {e}")
        raise StoreError("Failed to load menu items") from e
    return {row.id: row for row in rows}


def load_tax_rate(db: Session) -> float:
    """Restaurant settings override, configured default otherwise."""
    from ..models.generated import RestaurantSettings

    try:
        row = db.query(RestaurantSettings).order_by(RestaurantSettings.id).first()
    except SQLAlchemyError as e:
        logger.error(f"Restaurant settings query failed: {e}")
        raise StoreError("Failed to load restaurant settings") from e

    if row is not None and row.tax_rate is not None:
        return row.tax_rate
    return settings.tax_rate


def price_from_store(db: Session, lines: Sequence, tax_rate: Optional[float] = None) -> PricedOrder:
    _validate_lines(lines)
    catalog = load_catalog(db, (line.item_id for line in lines))
    rate = tax_rate if tax_rate is not None else load_tax_rate(db)
    return price_order(lines, catalog, rate)
