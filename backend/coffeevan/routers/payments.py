# backend/coffeevan/routers/payments.py
"""
Payments API.

POST /payments/intent  - Create a processor intent for an order's total
POST /payments/confirm - Confirm / re-check the intent, record the outcome

A declined payment marks the order failed and nothing else; the client
can retry with a new intent.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_payment_processor
from ..errors import PaymentFailure
from ..models.generated import Orders as DBOrders
from ..schemas.payments import (
    PaymentConfirm,
    PaymentConfirmRead,
    PaymentIntentCreate,
    PaymentIntentRead,
)
from ..services.payments import PaymentProcessor, to_minor_units

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def _get_unpaid_order(db: Session, order_id: int) -> DBOrders:
    order = db.get(DBOrders, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Not found")
    if order.payment_status == "completed":
        raise HTTPException(status_code=409, detail="Order is already paid")
    return order


@router.post("/intent", response_model=PaymentIntentRead)
def create_payment_intent(
    data: PaymentIntentCreate,
    db: Session = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    order = _get_unpaid_order(db, data.order_id)
    amount = to_minor_units(order.total)

    intent = processor.create_payment_intent(amount, processor.currency)

    order.payment_intent_id = intent.id
    order.payment_status = "pending"
    db.commit()

    return PaymentIntentRead(
        order_id=order.id,
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
        amount=amount,
        currency=processor.currency,
    )


@router.post("/confirm", response_model=PaymentConfirmRead)
def confirm_payment(
    data: PaymentConfirm,
    db: Session = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    order = _get_unpaid_order(db, data.order_id)
    if not order.payment_intent_id:
        raise HTTPException(status_code=400, detail="No payment started for this order")

    try:
        succeeded = processor.confirm_payment(order.payment_intent_id, data.payment_method)
    except PaymentFailure:
        order.payment_status = "failed"
        db.commit()
        logger.warning(f"Payment failed: order_id={order.id}, intent={order.payment_intent_id}")
        raise

    if succeeded:
        order.payment_status = "completed"
        db.commit()
        logger.info(f"Payment completed: order_id={order.id}, total={order.total:.2f}")

    return PaymentConfirmRead(order_id=order.id, payment_status=order.payment_status)
