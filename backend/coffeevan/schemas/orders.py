# backend/coffeevan/schemas/orders.py

import json
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..services.slots.config import is_valid_time_str
from .cart import CartItemIn

OrderStatus = Literal["new", "processing", "ready", "completed", "cancelled"]


class OrderCreate(BaseModel):
    items: list[CartItemIn] = []
    pickup_date: Optional[str] = Field(None, description="Date in YYYY-MM-DD format")
    pickup_time: Optional[str] = Field(None, description="Time in HH:MM format")
    terms_accepted: bool = False
    user_email: Optional[str] = None
    notes: Optional[str] = None
    expected_total: Optional[float] = Field(None, description="Total shown in the cart")

    @field_validator("pickup_date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        """Validate date format."""
        if v is None:
            return v
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @field_validator("pickup_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        """Validate time format."""
        if v is not None and not is_valid_time_str(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class OrderRead(BaseModel):
    id: int
    items: list[dict[str, Any]]
    total: float
    pickup_date: str
    pickup_time: str
    status: str
    payment_status: str
    user_email: str
    notes: Optional[str] = None
    payment_intent_id: Optional[str] = None
    created_at: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v else []
        return v


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
