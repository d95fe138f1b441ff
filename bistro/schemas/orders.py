# bistro/schemas/orders.py

import json
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .reservations import EMAIL_RE, NAME_RE, PHONE_RE, normalize_phone

OrderType = Literal["delivery", "pickup"]
OrderStatus = Literal["pending", "accepted", "preparing", "ready", "completed", "cancelled"]


class OrderLineIn(BaseModel):
    """
    A cart line as submitted by the client.

    `price` and `name` are accepted so carts validate, but pricing never
    reads them.
    """
    item_id: str = Field(alias="id", min_length=1)
    quantity: int
    price: Optional[float] = None
    name: Optional[str] = None
    customizations: dict[str, Any] = {}

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("customizations", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return {} if v is None else v


class OrderCreate(BaseModel):
    customer_name: str = Field(min_length=2, max_length=100)
    customer_phone: str
    customer_email: Optional[str] = Field(None, max_length=255)
    delivery_address: Optional[str] = Field(None, max_length=500)
    order_type: OrderType
    scheduled_time: Optional[datetime] = None
    special_notes: Optional[str] = Field(None, max_length=1000)
    items: list[OrderLineIn]

    # subtotal / tax / total from the client are dropped here
    model_config = {"extra": "ignore"}

    @field_validator("customer_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not NAME_RE.match(v):
            raise ValueError("Name contains invalid characters")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = normalize_phone(v)
        if not PHONE_RE.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("customer_email", "delivery_address", "special_notes", "scheduled_time", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("delivery_address")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) < 5:
            raise ValueError("Address must be at least 5 characters")
        return v

    @model_validator(mode="after")
    def address_required_for_delivery(self):
        if self.order_type == "delivery" and not self.delivery_address:
            raise ValueError("Delivery address is required for delivery orders")
        return self


class PricedLineRead(BaseModel):
    id: str
    name: str
    quantity: int
    price: float
    line_total: float
    customizations: dict[str, Any] = {}


class OrderRead(BaseModel):
    id: int

    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    order_type: str
    scheduled_time: Optional[str] = None
    special_notes: Optional[str] = None

    items: list[PricedLineRead]
    subtotal: float
    tax: float
    total: float

    status: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v else []
        return v


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class CheckoutSlot(BaseModel):
    value: datetime
    date: str
    time: str


class CheckoutSlotsResponse(BaseModel):
    slots: list[CheckoutSlot]
    hours: dict[str, Optional[dict[str, str]]]
