# bistro/schemas/menu.py

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MenuItemRead(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image: Optional[str] = None
    popular: bool = False
    available: bool = True
    sort_order: int = 0

    model_config = {"from_attributes": True}

    @field_validator("popular", "available", mode="before")
    @classmethod
    def int_to_bool(cls, v):
        return bool(v)


def _to_cents(v: float) -> float:
    """Catalog prices are stored in whole cents."""
    return float(Decimal(str(v)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class MenuItemBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: float = Field(ge=0, le=10_000)
    category: str = Field("main", min_length=1, max_length=50)
    image: Optional[str] = None
    popular: bool = False
    available: bool = True
    sort_order: int = 0

    @field_validator("price")
    @classmethod
    def round_price(cls, v: float) -> float:
        return _to_cents(v)


class MenuItemCreate(MenuItemBase):
    id: str = Field(pattern=r"^[a-z0-9][a-z0-9-]{0,63}$")


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[float] = Field(None, ge=0, le=10_000)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    image: Optional[str] = None
    popular: Optional[bool] = None
    available: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("price")
    @classmethod
    def round_price(cls, v: Optional[float]) -> Optional[float]:
        return None if v is None else _to_cents(v)
