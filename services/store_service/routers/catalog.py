"""Store catalog router: public product reads, served through the store cache."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.db.session import get_async_db
from services.store_service.cache import (
    TTLCache,
    get_store_cache,
    product_detail_key,
    product_list_key,
)
from services.store_service.models import Product
from services.store_service.schemas import ProductListResponse, ProductResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """Browse published products, newest first."""
    cache_key = product_list_key(search=search, page=page, limit=limit)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    query = select(Product).where(Product.draft.is_(False))

    # Search filter
    if search:
        search_term = f"%{search}%"
        query = query.where(
            Product.name.ilike(search_term) | Product.description.ilike(search_term)
        )

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    # Pagination
    query = query.order_by(Product.created_at.desc(), Product.id)
    query = query.offset((page - 1) * limit).limit(limit)
    products = (await db.execute(query)).scalars().all()

    response = ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        has_more=page * limit < total,
        total_products=total,
    )
    cache.set(cache_key, response)
    return response


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    cache_key = product_detail_key(product_id)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    product = await db.get(Product, product_id)
    if not product or product.draft:
        raise HTTPException(status_code=404, detail="Product not found")

    response = ProductResponse.model_validate(product)
    cache.set(cache_key, response)
    return response
