"""Store orders router: the customer's order history and payment proof resubmission."""

import uuid

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    OrderActionResponse,
    OrderListResponse,
    OrderResponse,
    PaymentProofUpdate,
)
from services.store_service.services import fulfillment
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.get("/orders", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(5, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the current user's orders, newest first."""
    orders, has_more, total = await fulfillment.list_orders(
        db, page=page, limit=limit, user_id=current_user.user_id
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        has_more=has_more,
        total_orders=total,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    order = await fulfillment.get_order_or_404(db, order_id)
    fulfillment.ensure_can_view(order, current_user)
    return order


@router.put("/orders/{order_id}", response_model=OrderActionResponse)
async def resubmit_payment_proof(
    order_id: uuid.UUID,
    payload: PaymentProofUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Upload a new payment proof for a rejected order; it goes back to review."""
    order = await fulfillment.resubmit_payment_proof(
        db, order_id, payload.payment_proof_url, user=current_user
    )
    return OrderActionResponse(
        message="Payment proof updated successfully",
        order=OrderResponse.model_validate(order),
    )


@router.put("/orders/{order_id}/received", response_model=OrderResponse)
async def confirm_order_received(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Customer confirms the parcel arrived."""
    return await fulfillment.confirm_receipt(db, order_id, user=current_user)
