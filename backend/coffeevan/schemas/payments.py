# backend/coffeevan/schemas/payments.py

from typing import Optional
from pydantic import BaseModel


class PaymentIntentCreate(BaseModel):
    order_id: int


class PaymentIntentRead(BaseModel):
    order_id: int
    payment_intent_id: str
    client_secret: str
    amount: int  # minor units
    currency: str


class PaymentConfirm(BaseModel):
    order_id: int
    payment_method: Optional[str] = None


class PaymentConfirmRead(BaseModel):
    order_id: int
    payment_status: str
