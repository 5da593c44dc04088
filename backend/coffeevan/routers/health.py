# backend/coffeevan/routers/health.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
):
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unreachable: {e}")
        database_ok = False

    redis_ok = None
    if redis is not None:
        try:
            redis_ok = bool(redis.ping())
        except RedisError as e:
            logger.error(f"Health check: redis unreachable: {e}")
            redis_ok = False

    return {
        "status": "ok" if database_ok and redis_ok is not False else "degraded",
        "database": database_ok,
        "redis": redis_ok,
    }
