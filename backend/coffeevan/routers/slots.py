# backend/coffeevan/routers/slots.py
"""
Collection slots API endpoints.

GET /slots/dates        - Offerable collection dates
GET /slots/day          - Time slots for a date
GET /slots/availability - Capacity check for one slot
GET /slots/grid         - Cached base grid (admin)
POST /slots/invalidate  - Drop cached grids (admin)
"""

from datetime import date, datetime
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_settings_service, require_admin
from ..redis_client import get_redis
from ..schemas.slots import (
    BookableDateRead,
    SlotAvailabilityResponse,
    SlotDebugEntry,
    SlotInfo,
    SlotsDatesResponse,
    SlotsDayResponse,
    SlotsGridResponse,
    SlotsInvalidateRequest,
)
from ..services.booking import BookingCoordinator
from ..services.settings_service import SettingsService
from ..services.slots import (
    SlotsRedisStore,
    calculate_day_slots,
    day_slots,
    get_affected_dates,
    get_booking_config,
    invalidate_slots_cache,
    is_valid_time_str,
    list_offerable_dates,
)


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/dates", response_model=SlotsDatesResponse)
def get_offerable_dates(
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """Dates customers can pick for collection, soonest first."""
    config = get_booking_config()
    coordinator = BookingCoordinator(db, settings_service)
    shop_settings = settings_service.load()

    dates = list_offerable_dates(
        shop_settings,
        partial(coordinator.booked_times, max_orders=shop_settings.max_orders_per_slot),
        config=config,
        redis=redis,
    )

    return SlotsDatesResponse(
        dates=[BookableDateRead(date=d.date, is_today=d.is_today) for d in dates],
        allowed_weekdays=sorted(config.allowed_weekdays),
    )


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Optional[Redis] = Depends(get_redis),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """
    Collection slots for a day; fully booked slots are returned unavailable.

    Days the van does not trade on and blocked days have no slots.
    """
    config = get_booking_config()

    if target_date < date.today():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    shop_settings = settings_service.load()
    blocked = target_date.isoformat() in shop_settings.blocked_dates
    trading_day = target_date.weekday() in config.allowed_weekdays

    slots = []
    if trading_day and not blocked:
        booked = BookingCoordinator(db, settings_service).booked_times(
            target_date, shop_settings.max_orders_per_slot,
        )
        slots = day_slots(target_date, shop_settings, booked, config=config, redis=redis)

    return SlotsDayResponse(
        date=target_date,
        blocked=blocked,
        trading_day=trading_day,
        slots=[SlotInfo(time=s.time, available=s.available) for s in slots],
        opening_time=config.opening_time,
        closing_time=config.closing_time,
        slot_step_minutes=config.slot_step_minutes,
        lead_time_minutes=config.lead_time_minutes,
    )


@router.get("/availability", response_model=SlotAvailabilityResponse)
def get_slot_availability(
    target_date: date = Query(..., alias="date"),
    time: str = Query(..., pattern=r"^\d{2}:\d{2}$"),
    db: Session = Depends(get_db),
    settings_service: SettingsService = Depends(get_settings_service),
):
    if not is_valid_time_str(time):
        raise HTTPException(status_code=422, detail="Time must be in HH:MM format")

    coordinator = BookingCoordinator(db, settings_service)
    max_orders = settings_service.load().max_orders_per_slot
    reservations = coordinator.count_reservations(target_date, time)

    return SlotAvailabilityResponse(
        date=target_date,
        time=time,
        reservations=reservations,
        max_orders_per_slot=max_orders,
        available=reservations < max_orders,
    )


@router.get("/grid", response_model=SlotsGridResponse, dependencies=[Depends(require_admin)])
def get_slots_grid(
    target_date: date = Query(..., alias="date"),
    force_recalc: bool = False,
    redis: Optional[Redis] = Depends(get_redis),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """Get sorted set debug view for a date (admin/debug endpoint)."""
    config = get_booking_config()
    now = datetime.now()

    cached = False
    slot_data: list[tuple[str, float]] | None = None
    store = SlotsRedisStore(redis, config) if redis is not None else None

    if store is not None and not force_recalc:
        slot_data = store.get_all_slots_with_scores(target_date)
        cached = slot_data is not None

    if slot_data is None:
        slot_data = calculate_day_slots(target_date, config, settings_service.load().blocked_dates, now)
        if store is not None:
            store.store_day_slots(target_date, slot_data)

    debug_slots = [
        SlotDebugEntry(
            time=time_str,
            expires_at=datetime.fromtimestamp(expire_ts),
        )
        for time_str, expire_ts in slot_data
    ]

    return SlotsGridResponse(
        date=target_date,
        slots=debug_slots,
        total_slots=len(debug_slots),
        cached=cached,
    )


@router.post("/invalidate", dependencies=[Depends(require_admin)])
def invalidate_slots(
    data: SlotsInvalidateRequest | None = None,
    redis: Optional[Redis] = Depends(get_redis),
):
    """Manually invalidate cached grids (admin endpoint)."""
    dates = None
    if data is not None and data.date_start is not None:
        dates = get_affected_dates(data.date_start, data.date_end or data.date_start)

    deleted = invalidate_slots_cache(redis, dates)

    return {
        "deleted_keys": deleted,
        "dates": [d.isoformat() for d in dates] if dates else "all",
    }
