# bistro/schemas/reservations.py

import re
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")

ReservationStatus = Literal["pending", "confirmed", "cancelled", "completed"]


def normalize_phone(v: str) -> str:
    """Drop spaces, dashes, dots and parentheses, keep a leading +."""
    v = v.strip()
    return re.sub(r"[\s\-().]", "", v)


class ReservationCreate(BaseModel):
    customer_name: str = Field(min_length=2, max_length=100)
    customer_email: str = Field(max_length=255)
    customer_phone: str
    reservation_date: str = Field(description="Date in YYYY-MM-DD format")
    reservation_time: str = Field(description="Time in HH:MM format")
    party_size: int = Field(ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=1000)

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

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = normalize_phone(v)
        if not PHONE_RE.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("reservation_date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @field_validator("reservation_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not re.match(r"^\d{2}:\d{2}$", v):
            raise ValueError("Time must be in HH:MM format")
        return v

    @field_validator("special_requests")
    @classmethod
    def strip_requests(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ReservationRead(BaseModel):
    id: int

    customer_name: str
    customer_email: str
    customer_phone: str

    reservation_date: str
    reservation_time: str
    party_size: int

    status: str
    special_requests: Optional[str] = None
    table_number: Optional[str] = None
    admin_notes: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus
    admin_notes: Optional[str] = Field(None, max_length=1000)
    table_number: Optional[str] = Field(None, max_length=20)
    reason: Optional[str] = Field(None, max_length=500, description="Shown to the guest on cancellation")


class ReservationSettingsRead(BaseModel):
    start_time: str
    end_time: str
    slot_duration_minutes: int
    max_capacity: int
    max_party_size: int
    closed_weekdays: list[int]
    min_advance_hours: int
    booking_window_days: int
    auto_confirm: bool


class ReservationSettingsUpdate(BaseModel):
    start_time: str = Field("11:00", pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    end_time: str = Field("21:00", pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    slot_duration_minutes: int = Field(30, ge=5, le=240)
    max_capacity: int = Field(15, ge=1, le=500)
    max_party_size: int = Field(20, ge=1, le=20)
    closed_days: list[str] = []
    min_advance_hours: int = Field(2, ge=0, le=168)
    booking_window_days: int = Field(30, ge=1, le=365)
    auto_confirm: bool = False


class AvailabilitySlot(BaseModel):
    time: str
    available: bool
    remainingCapacity: int


class AvailabilityResponse(BaseModel):
    date: date
    slots: list[AvailabilitySlot]
    message: Optional[str] = None
