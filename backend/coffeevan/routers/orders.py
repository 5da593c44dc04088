# backend/coffeevan/routers/orders.py
# POST = checkout (order + slot reservation), status changes are admin-only

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_cart_pricing, get_settings_service, require_admin
from ..models.generated import Orders as DBOrders
from ..schemas.orders import OrderCreate, OrderRead, OrderStatusUpdate
from ..services.cart import CartPricing
from ..services.checkout import CheckoutItem, CheckoutRequest, CheckoutService
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    settings_service: SettingsService = Depends(get_settings_service),
    pricing: CartPricing = Depends(get_cart_pricing),
):
    request = CheckoutRequest(
        items=[CheckoutItem(**item.model_dump()) for item in data.items],
        pickup_date=date.fromisoformat(data.pickup_date) if data.pickup_date else None,
        pickup_time=data.pickup_time,
        terms_accepted=data.terms_accepted,
        user_email=data.user_email or "guest",
        notes=data.notes,
        expected_total=data.expected_total,
    )
    return CheckoutService(db, settings_service, pricing).place_order(request)


@router.get("/", response_model=list[OrderRead], dependencies=[Depends(require_admin)])
def list_orders(
    status: Optional[str] = None,
    pickup_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    q = db.query(DBOrders)
    if status:
        q = q.filter(DBOrders.status == status)
    if pickup_date:
        q = q.filter(DBOrders.pickup_date == pickup_date.isoformat())
    return q.order_by(DBOrders.pickup_date, DBOrders.pickup_time, DBOrders.id).all()


@router.get("/{id}", response_model=OrderRead)
def get_order(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBOrders, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.patch("/{id}/status", response_model=OrderRead, dependencies=[Depends(require_admin)])
def update_order_status(
    id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBOrders, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    obj.status = data.status
    db.commit()
    db.refresh(obj)
    return obj
