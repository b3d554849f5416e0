"""Delivery pricing settings (single row, created on first read)."""

from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.cache import DELIVERY_SETTINGS_KEY, TTLCache
from services.store_service.models import (
    DEFAULT_DELIVERY_TYPES,
    DEFAULT_FREE_DELIVERY_THRESHOLD,
    DeliverySettings,
)
from services.store_service.schemas import DeliverySettingsUpdate
from services.store_service.services.pricing import DeliveryPricing
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SETTINGS_ROW_ID = 1


async def get_delivery_settings(db: AsyncSession) -> DeliverySettings:
    """Return the settings row, inserting the defaults if none exists yet."""
    query = select(DeliverySettings).where(DeliverySettings.id == SETTINGS_ROW_ID)
    settings = (await db.execute(query)).scalar_one_or_none()
    if settings is not None:
        return settings

    settings = DeliverySettings(
        id=SETTINGS_ROW_ID,
        delivery_types={k: dict(v) for k, v in DEFAULT_DELIVERY_TYPES.items()},
        free_delivery_threshold=DEFAULT_FREE_DELIVERY_THRESHOLD,
        bank_account_details="",
    )
    db.add(settings)
    await db.commit()
    await db.refresh(settings)
    logger.info("Created default delivery settings")
    return settings


async def get_delivery_pricing(
    db: AsyncSession, cache: Optional[TTLCache] = None
) -> DeliveryPricing:
    """Pricing snapshot for checkout and quotes, served from cache when given one."""
    if cache is not None:
        cached = cache.get(DELIVERY_SETTINGS_KEY)
        if cached is not None:
            return cached

    pricing = DeliveryPricing.from_settings(await get_delivery_settings(db))
    if cache is not None:
        cache.set(DELIVERY_SETTINGS_KEY, pricing)
    return pricing


async def update_delivery_settings(
    db: AsyncSession,
    payload: DeliverySettingsUpdate,
    cache: Optional[TTLCache] = None,
) -> DeliverySettings:
    settings = await get_delivery_settings(db)

    settings.delivery_types = {
        delivery_type.value: {"name": tier.name, "cost": float(tier.cost)}
        for delivery_type, tier in payload.delivery_types.items()
    }
    settings.free_delivery_threshold = Decimal(payload.free_delivery_threshold)
    settings.bank_account_details = payload.bank_account_details

    await db.commit()
    await db.refresh(settings)
    if cache is not None:
        cache.invalidate(DELIVERY_SETTINGS_KEY)

    logger.info(
        "Delivery settings updated (threshold=%s)", settings.free_delivery_threshold
    )
    return settings
