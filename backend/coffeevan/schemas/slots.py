# backend/coffeevan/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date, datetime
from pydantic import BaseModel, Field


class BookableDateRead(BaseModel):
    """A date the customer can pick for collection."""
    date: date
    is_today: bool

    model_config = {"from_attributes": True}


class SlotsDatesResponse(BaseModel):
    dates: list[BookableDateRead]
    allowed_weekdays: list[int] = Field(description="Monday = 0")

    model_config = {"from_attributes": True}


class SlotInfo(BaseModel):
    """Information about a single slot."""
    time: str  # "HH:MM"
    available: bool

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Collection slots for a day, ascending by time."""
    date: date
    blocked: bool
    trading_day: bool
    slots: list[SlotInfo]

    # Metadata
    opening_time: str
    closing_time: str
    slot_step_minutes: int
    lead_time_minutes: int

    model_config = {"from_attributes": True}


class SlotAvailabilityResponse(BaseModel):
    date: date
    time: str
    reservations: int
    max_orders_per_slot: int
    available: bool


class SlotDebugEntry(BaseModel):
    """Single slot with its expiry instant (admin/debug)."""
    time: str
    expires_at: datetime


class SlotsGridResponse(BaseModel):
    """Cached base grid for a date (admin/debug)."""
    date: date
    slots: list[SlotDebugEntry]
    total_slots: int
    cached: bool


class SlotsInvalidateRequest(BaseModel):
    date_start: date | None = None
    date_end: date | None = None  # Defaults to date_start
