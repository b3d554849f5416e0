"""Delivery pricing router: public settings and quotes, admin updates."""

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.cache import TTLCache, get_store_cache
from services.store_service.schemas import (
    DeliveryQuoteRequest,
    DeliveryQuoteResponse,
    DeliverySettingsResponse,
    DeliverySettingsUpdate,
)
from services.store_service.services.delivery_settings import (
    get_delivery_pricing,
    get_delivery_settings,
    update_delivery_settings,
)
from services.store_service.services.pricing import compute_delivery_cost, to_money
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])
admin_router = APIRouter(tags=["admin-store"])


@router.get("/delivery", response_model=DeliverySettingsResponse)
async def read_delivery_settings(db: AsyncSession = Depends(get_async_db)):
    """Delivery tiers, free-delivery threshold and bank details for offline payment."""
    return await get_delivery_settings(db)


@router.post("/delivery/quote", response_model=DeliveryQuoteResponse)
async def quote_delivery(
    payload: DeliveryQuoteRequest,
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """Preview delivery cost for a subtotal. Checkout recomputes it."""
    pricing = await get_delivery_pricing(db, cache)
    try:
        cost = compute_delivery_cost(payload.subtotal, payload.delivery_type, pricing)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    subtotal = to_money(payload.subtotal)
    return DeliveryQuoteResponse(
        subtotal=subtotal,
        delivery_type=payload.delivery_type,
        delivery_cost=cost,
        total=subtotal + cost,
        free_delivery_threshold=pricing.free_delivery_threshold,
    )


@admin_router.put("/delivery", response_model=DeliverySettingsResponse)
async def replace_delivery_settings(
    payload: DeliverySettingsUpdate,
    current_user: AuthUser = Depends(require_admin),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    return await update_delivery_settings(db, payload, cache)
