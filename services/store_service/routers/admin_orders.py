"""Admin store orders router: payment review, delivery and deletion."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.cache import TTLCache, get_store_cache
from services.store_service.models import OrderStatus
from services.store_service.schemas import (
    AdminOrderAction,
    OrderActionResponse,
    OrderDeletedResponse,
    OrderListResponse,
    OrderResponse,
)
from services.store_service.services import fulfillment
from services.store_service.services.notifications import (
    OrderNotifier,
    get_order_notifier,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/orders", response_model=OrderListResponse)
async def list_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(5, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all orders with optional status filter."""
    orders, has_more, total = await fulfillment.list_orders(
        db, page=page, limit=limit, status_filter=status_filter
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        has_more=has_more,
        total_orders=total,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order_admin(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await fulfillment.get_order_or_404(db, order_id)


@router.put("/orders", response_model=OrderActionResponse)
async def update_order(
    action: AdminOrderAction,
    current_user: AuthUser = Depends(require_admin),
    notifier: OrderNotifier = Depends(get_order_notifier),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Apply an admin decision to an order.

    - ``confirmPayment: true``: mark paid, move to processing, decrement stock
    - ``rejectPayment: true`` + ``rejectionReason``: cancel with a reason
    - neither flag: mark delivered
    """
    if action.confirm_payment and action.reject_payment:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Choose either confirmPayment or rejectPayment",
        )

    if action.confirm_payment:
        order = await fulfillment.confirm_payment(
            db,
            action.order_id,
            performed_by=current_user.user_id,
            notifier=notifier,
            cache=cache,
        )
        message = "Payment confirmed"
    elif action.reject_payment:
        order = await fulfillment.reject_payment(
            db,
            action.order_id,
            action.rejection_reason,
            performed_by=current_user.user_id,
            notifier=notifier,
        )
        message = "Payment rejected"
    else:
        order = await fulfillment.mark_delivered(
            db, action.order_id, performed_by=current_user.user_id
        )
        message = "Order marked as delivered"

    return OrderActionResponse(message=message, order=OrderResponse.model_validate(order))


@router.delete("/orders", response_model=OrderDeletedResponse)
async def delete_order(
    order_id: uuid.UUID = Query(..., alias="orderId"),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Permanently delete an order. Stock is not restored."""
    deleted_id = await fulfillment.delete_order(db, order_id)
    return OrderDeletedResponse(message="Order deleted", order_id=deleted_id)
