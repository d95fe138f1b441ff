# bistro/schemas/restaurant.py

from typing import Optional

from pydantic import BaseModel, Field


class RestaurantSettingsRead(BaseModel):
    restaurant_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notification_email: Optional[str] = None
    business_hours: dict[str, Optional[dict]]
    tax_rate: float


class RestaurantSettingsUpdate(BaseModel):
    restaurant_name: str = Field("Bistro", min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    notification_email: Optional[str] = Field(None, max_length=255)
    # weekday → {"open", "close"} | {"closed": true} | null; empty = default hours
    business_hours: dict[str, Optional[dict]] = {}
    # None = configured default
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
