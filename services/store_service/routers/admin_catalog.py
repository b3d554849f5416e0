"""Admin store catalog router: product price, stock and visibility."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.cache import TTLCache, get_store_cache, invalidate_catalog
from services.store_service.models import InventoryMovement, Product
from services.store_service.schemas import (
    InventoryMovementResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from services.store_service.services.inventory import set_stock
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


async def _get_product_or_404(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    product = Product(**product_in.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)

    invalidate_catalog(cache)
    logger.info("Product %s created by %s", product.id, current_user.user_id)
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """Partial update. A stock change is recorded as an inventory adjustment."""
    product = await _get_product_or_404(db, product_id)
    update_data = product_in.model_dump(exclude_unset=True)

    new_stock = update_data.pop("stock", None)
    if new_stock is not None:
        await set_stock(
            db,
            product,
            new_stock,
            performed_by=current_user.user_id,
            notes="Manual adjustment",
        )

    for field, value in update_data.items():
        if value is None and field in {"name", "price", "images", "draft"}:
            continue
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)

    invalidate_catalog(cache)
    return product


@router.get(
    "/products/{product_id}/movements",
    response_model=list[InventoryMovementResponse],
)
async def list_product_movements(
    product_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Stock history for one product, newest first."""
    await _get_product_or_404(db, product_id)
    query = (
        select(InventoryMovement)
        .where(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.created_at.desc())
        .limit(limit)
    )
    return (await db.execute(query)).scalars().all()
