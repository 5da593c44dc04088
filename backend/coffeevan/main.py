# backend/coffeevan/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .config import settings
from .database import init_db
from .errors import AvailabilityConflict, ShopError
from .middleware.audit import audit_middleware
from .routers import cart, health, orders, payments, products, slots
from .routers import settings as settings_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Coffee van API started (demo_mode={settings.demo_mode})")
    yield


app = FastAPI(title="Coffee Van API", lifespan=lifespan)

app.middleware("http")(audit_middleware)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    content = {"detail": exc.message}
    if isinstance(exc, AvailabilityConflict):
        content["action"] = "reselect_time"
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RedisError)
async def redis_error_handler(request: Request, exc: RedisError):
    logger.error(f"Redis error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Cache temporarily unavailable"})


app.include_router(products.router)
app.include_router(slots.router)
app.include_router(cart.router)
app.include_router(orders.router)
app.include_router(settings_router.router)
app.include_router(payments.router)
app.include_router(health.router)
