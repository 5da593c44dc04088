# backend/coffeevan/services/catalog.py
"""Product catalog reads with a Redis copy of the last good list."""

import json
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailable
from ..models.generated import Products as DBProducts

logger = logging.getLogger(__name__)

CACHE_PRODUCTS_KEY = "cache:products"

CATEGORIES = ("Coffees", "Teas", "Cakes", "Hot Chocolate")


def product_to_dict(obj: DBProducts) -> dict:
    try:
        options = json.loads(obj.available_options) if obj.available_options else []
    except (json.JSONDecodeError, TypeError):
        options = []

    return {
        "id": obj.id,
        "name": obj.name,
        "description": obj.description,
        "price": obj.price,
        "category": obj.category,
        "image": obj.image,
        "available_options": options,
        "default_option": obj.default_option,
        "is_active": bool(obj.is_active),
    }


def _get_cached(redis: Optional[Redis]) -> list[dict] | None:
    if redis is None:
        return None
    try:
        cached = redis.get(CACHE_PRODUCTS_KEY)
    except RedisError as e:
        logger.warning(f"Product cache unavailable: {e}")
        return None
    return json.loads(cached) if cached else None


def list_active_products(db: Session, redis: Optional[Redis] = None) -> list[dict]:
    """
    Active products ordered by category and name.

    On database failure the last list written to Redis is served instead;
    with no cached copy the failure surfaces as BackendUnavailable.
    """
    try:
        rows = (
            db.query(DBProducts)
            .filter(DBProducts.is_active == 1)
            .order_by(DBProducts.category, DBProducts.name)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to load products: {e}")
        cached = _get_cached(redis)
        if cached is None:
            raise BackendUnavailable("Menu temporarily unavailable") from e
        logger.warning(f"Serving {len(cached)} cached products")
        return cached

    products = [product_to_dict(obj) for obj in rows]

    if redis is not None:
        try:
            redis.set(CACHE_PRODUCTS_KEY, json.dumps(products))
        except RedisError as e:
            logger.warning(f"Failed to refresh product cache: {e}")

    return products


def category_counts(products: list[dict]) -> list[dict]:
    counts = {category: 0 for category in CATEGORIES}
    for product in products:
        counts[product["category"]] = counts.get(product["category"], 0) + 1
    return [{"category": name, "count": count} for name, count in counts.items()]


def invalidate_products_cache(redis: Optional[Redis]) -> None:
    if redis is None:
        return
    try:
        redis.delete(CACHE_PRODUCTS_KEY)
    except RedisError as e:
        logger.warning(f"Failed to invalidate product cache: {e}")
