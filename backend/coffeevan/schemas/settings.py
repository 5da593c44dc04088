# backend/coffeevan/schemas/settings.py

from typing import Optional
from pydantic import BaseModel, Field


class ProductOptionRead(BaseModel):
    id: str
    title: str
    price: float
    is_default: bool = False

    model_config = {"from_attributes": True}


class ProductOptionCreate(BaseModel):
    title: str = Field(min_length=1)
    price: float = Field(0.0, ge=0)
    is_default: bool = False


class ProductOptionUpdate(BaseModel):
    title: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_default: Optional[bool] = None


class ShopSettingsRead(BaseModel):
    max_orders_per_slot: int
    blocked_dates: list[str]
    product_options: list[ProductOptionRead]


class MaxOrdersUpdate(BaseModel):
    max_orders_per_slot: int = Field(ge=1)


class BlockedDateToggle(BaseModel):
    date: str
    blocked: bool
    blocked_dates: list[str]
