# backend/coffeevan/middleware/audit.py
# Access log for the storefront API, one JSON object per request.
# Admin token values are never logged, only whether one was sent.

import json
import logging
import time

from fastapi import Request

logger = logging.getLogger("coffeevan.audit")


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Real-IP")
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


async def audit_middleware(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    logger.info(json.dumps({
        "ts": int(time.time()),
        "method": request.method,
        "path": request.url.path,
        "query": str(request.url.query) or None,
        "status": response.status_code,
        "admin": "X-Admin-Token" in request.headers,
        "ip": _client_ip(request),
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": round(elapsed * 1000),
    }, ensure_ascii=False))

    return response
