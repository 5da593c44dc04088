# backend/coffeevan/schemas/cart.py

from typing import Optional
from pydantic import BaseModel, Field


class CartItemIn(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    selected_option_id: Optional[str] = None


class CartQuoteRequest(BaseModel):
    items: list[CartItemIn]


class CartLineRead(BaseModel):
    product_id: int
    name: str
    unit_price: float
    quantity: int
    selected_option_id: Optional[str] = None
    option_price: float
    total: float


class CartQuoteResponse(BaseModel):
    lines: list[CartLineRead]
    total: float
    priced: bool = True
