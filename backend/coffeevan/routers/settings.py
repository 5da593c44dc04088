# backend/coffeevan/routers/settings.py
"""
Shop settings API.

GET is public (the menu needs options and blocked dates).
Every mutation is admin-only, persists first and refreshes the cached snapshot.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis

from ..dependencies import get_settings_service, require_admin
from ..redis_client import get_redis
from ..schemas.settings import (
    BlockedDateToggle,
    MaxOrdersUpdate,
    ProductOptionCreate,
    ProductOptionRead,
    ProductOptionUpdate,
    ShopSettingsRead,
)
from ..services.settings_service import ProductOption, SettingsService, ShopSettings
from ..services.slots import invalidate_slots_cache

router = APIRouter(prefix="/settings", tags=["settings"])


def _to_read(snapshot: ShopSettings) -> ShopSettingsRead:
    return ShopSettingsRead(
        max_orders_per_slot=snapshot.max_orders_per_slot,
        blocked_dates=sorted(snapshot.blocked_dates),
        product_options=[ProductOptionRead(**opt.to_dict()) for opt in snapshot.product_options],
    )


@router.get("/", response_model=ShopSettingsRead)
def get_settings(settings_service: SettingsService = Depends(get_settings_service)):
    return _to_read(settings_service.load())


@router.put("/max-orders", response_model=ShopSettingsRead, dependencies=[Depends(require_admin)])
def update_max_orders(
    data: MaxOrdersUpdate,
    settings_service: SettingsService = Depends(get_settings_service),
):
    return _to_read(settings_service.update_max_orders_per_slot(data.max_orders_per_slot))


@router.post("/blocked-dates/{target_date}", response_model=BlockedDateToggle, dependencies=[Depends(require_admin)])
def toggle_blocked_date(
    target_date: date,
    settings_service: SettingsService = Depends(get_settings_service),
    redis: Optional[Redis] = Depends(get_redis),
):
    """Block an open date or unblock a blocked one."""
    snapshot, blocked = settings_service.toggle_blocked_date(target_date.isoformat())

    # The cached grid bakes blocked dates in
    invalidate_slots_cache(redis, [target_date])

    return BlockedDateToggle(
        date=target_date.isoformat(),
        blocked=blocked,
        blocked_dates=sorted(snapshot.blocked_dates),
    )


@router.post(
    "/options",
    response_model=ProductOptionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_option(
    data: ProductOptionCreate,
    settings_service: SettingsService = Depends(get_settings_service),
):
    option = settings_service.add_product_option(data.title, data.price, data.is_default)
    return ProductOptionRead(**option.to_dict())


@router.patch("/options/{option_id}", response_model=ProductOptionRead, dependencies=[Depends(require_admin)])
def update_option(
    option_id: str,
    data: ProductOptionUpdate,
    settings_service: SettingsService = Depends(get_settings_service),
):
    current = settings_service.load().get_option(option_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    option = ProductOption(
        id=option_id,
        title=changes.get("title") or current.title,
        price=changes["price"] if changes.get("price") is not None else current.price,
        is_default=changes["is_default"] if changes.get("is_default") is not None else current.is_default,
    )
    return ProductOptionRead(**settings_service.update_product_option(option).to_dict())


@router.delete("/options/{option_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_option(
    option_id: str,
    settings_service: SettingsService = Depends(get_settings_service),
):
    if not settings_service.delete_product_option(option_id):
        raise HTTPException(status_code=404, detail="Not found")
