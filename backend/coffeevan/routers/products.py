# backend/coffeevan/routers/products.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)

import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_settings_service, require_admin
from ..models.generated import Products as DBProducts
from ..redis_client import get_redis
from ..schemas.products import (
    CategoryCount,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from ..schemas.settings import ProductOptionRead
from ..services.catalog import (
    category_counts,
    invalidate_products_cache,
    list_active_products,
    product_to_dict,
)
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/products", tags=["products"])


def _get_active(db: Session, id: int) -> DBProducts:
    obj = db.get(DBProducts, id)
    if not obj or not obj.is_active:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("/", response_model=list[ProductRead])
def list_products(
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    return list_active_products(db, redis)


@router.get("/categories", response_model=list[CategoryCount])
def list_categories(
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    return category_counts(list_active_products(db, redis))


@router.get("/{id}", response_model=ProductRead)
def get_product(id: int, db: Session = Depends(get_db)):
    return product_to_dict(_get_active(db, id))


@router.get("/{id}/options", response_model=list[ProductOptionRead])
def get_product_options(
    id: int,
    db: Session = Depends(get_db),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """Shared options this product offers, in the order they are configured."""
    product = product_to_dict(_get_active(db, id))
    allowed = set(product["available_options"])

    return [
        opt.to_dict()
        for opt in settings_service.load().product_options
        if opt.id in allowed
    ]


@router.post(
    "/",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    payload = data.model_dump()
    payload["available_options"] = json.dumps(payload["available_options"])

    obj = DBProducts(**payload)
    db.add(obj)
    db.commit()
    db.refresh(obj)

    invalidate_products_cache(redis)
    return product_to_dict(obj)


@router.patch("/{id}", response_model=ProductRead, dependencies=[Depends(require_admin)])
def update_product(
    id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    obj = db.get(DBProducts, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "available_options":
            value = json.dumps(value or [])
        elif field == "is_active":
            value = 1 if value else 0
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)

    invalidate_products_cache(redis)
    return product_to_dict(obj)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_product(
    id: int,
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    obj = db.get(DBProducts, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    obj.is_active = 0
    db.commit()

    invalidate_products_cache(redis)
