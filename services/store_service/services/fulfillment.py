"""Order fulfillment - the order state machine.

    pending --confirm--> processing --deliver--> delivered
    pending --reject---> cancelled  --resubmit--> pending

Every transition locks the order row (``SELECT ... FOR UPDATE``), checks the
current status, and commits once. The ``version`` column is an ORM version
counter, so a write based on a stale read fails instead of overwriting.
Stock decrement and the paid/status change of a confirmation share a single
transaction. Emails go out only after the commit and can never undo it.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.cache import TTLCache, invalidate_catalog
from services.store_service.models import Order, OrderStatus, PaymentMethod
from services.store_service.schemas import PROOF_URL_ERROR, is_proof_url
from services.store_service.services.inventory import apply_order_sale
from services.store_service.services.notifications import (
    OrderNotifier,
    notify_best_effort,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)

CONCURRENT_UPDATE_DETAIL = "Order was modified by another request, please retry"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_order_or_404(
    db: AsyncSession, order_id: uuid.UUID, *, for_update: bool = False
) -> Order:
    query = (
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    order = (await db.execute(query)).scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Order not found"
        )
    return order


def ensure_can_view(order: Order, user: AuthUser) -> None:
    if not user.is_admin and order.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your order")


async def list_orders(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 20,
    status_filter: Optional[OrderStatus] = None,
    user_id: Optional[str] = None,
) -> tuple[list[Order], bool, int]:
    """Newest-first page of orders. Returns ``(orders, has_more, total_orders)``."""
    filters = []
    if status_filter:
        filters.append(Order.status == status_filter)
    if user_id is not None:
        filters.append(Order.user_id == user_id)

    total = (
        await db.execute(select(func.count()).select_from(Order).where(*filters))
    ).scalar_one()

    query = (
        select(Order)
        .where(*filters)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    orders = list((await db.execute(query)).scalars().all())
    return orders, page * limit < total, total


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _require_status(order: Order, expected: OrderStatus, action: str) -> None:
    if order.status != expected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} for order in status: {order.status.value}",
        )


async def _commit(db: AsyncSession) -> None:
    """Commit a transition, mapping a lost race to 409."""
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=CONCURRENT_UPDATE_DETAIL
        )


async def confirm_payment(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    performed_by: Optional[str] = None,
    notifier: Optional[OrderNotifier] = None,
    cache: Optional[TTLCache] = None,
) -> Order:
    """pending -> processing: mark paid and take the ordered quantities out of stock."""
    order = await get_order_or_404(db, order_id, for_update=True)
    _require_status(order, OrderStatus.PENDING, "confirm payment")

    try:
        await apply_order_sale(db, order, performed_by=performed_by)
        order.paid = True
        order.status = OrderStatus.PROCESSING
        order.paid_at = utc_now()
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=CONCURRENT_UPDATE_DETAIL
        )
    except IntegrityError:
        await db.rollback()
        logger.error("Stock for order %s was already adjusted", order_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Stock for this order was already adjusted",
        )
    except Exception:
        await db.rollback()
        logger.exception("Payment confirmation for order %s rolled back", order_id)
        raise

    if cache is not None:
        invalidate_catalog(cache)
    logger.info("Payment confirmed for order %s by %s", order_id, performed_by)

    order = await get_order_or_404(db, order_id)
    if notifier is not None:
        await notify_best_effort(notifier, "payment_confirmed", order)
    return order


async def reject_payment(
    db: AsyncSession,
    order_id: uuid.UUID,
    rejection_reason: Optional[str],
    *,
    performed_by: Optional[str] = None,
    notifier: Optional[OrderNotifier] = None,
) -> Order:
    """pending -> cancelled with a reason the customer will see."""
    reason = (rejection_reason or "").strip()
    if not reason:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rejection reason is required",
        )

    order = await get_order_or_404(db, order_id, for_update=True)
    _require_status(order, OrderStatus.PENDING, "reject payment")

    order.status = OrderStatus.CANCELLED
    order.rejection_reason = reason
    await _commit(db)
    logger.info("Payment rejected for order %s by %s: %s", order_id, performed_by, reason)

    order = await get_order_or_404(db, order_id)
    if notifier is not None:
        await notify_best_effort(notifier, "payment_rejected", order)
    return order


async def mark_delivered(
    db: AsyncSession, order_id: uuid.UUID, *, performed_by: Optional[str] = None
) -> Order:
    """processing -> delivered."""
    order = await get_order_or_404(db, order_id, for_update=True)
    _require_status(order, OrderStatus.PROCESSING, "mark as delivered")

    order.status = OrderStatus.DELIVERED
    order.delivered_at = utc_now()
    await _commit(db)
    logger.info("Order %s marked delivered by %s", order_id, performed_by)
    return await get_order_or_404(db, order_id)


async def confirm_receipt(
    db: AsyncSession, order_id: uuid.UUID, *, user: AuthUser
) -> Order:
    """Customer-side delivery confirmation; same transition as mark_delivered."""
    order = await get_order_or_404(db, order_id)
    if order.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your order")
    return await mark_delivered(db, order_id, performed_by=user.user_id)


async def resubmit_payment_proof(
    db: AsyncSession,
    order_id: uuid.UUID,
    payment_proof_url: Optional[str],
    *,
    user: AuthUser,
) -> Order:
    """cancelled -> pending with a fresh proof; clears the rejection reason."""
    proof_url = (payment_proof_url or "").strip()
    if not proof_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment proof URL is required",
        )
    if not is_proof_url(proof_url):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=PROOF_URL_ERROR
        )

    order = await get_order_or_404(db, order_id, for_update=True)
    ensure_can_view(order, user)
    _require_status(order, OrderStatus.CANCELLED, "resubmit payment proof")

    order.payment_proof_url = proof_url
    order.status = OrderStatus.PENDING
    order.rejection_reason = None
    await _commit(db)
    logger.info("Payment proof resubmitted for order %s", order_id)
    return await get_order_or_404(db, order_id)


async def delete_order(db: AsyncSession, order_id: uuid.UUID) -> uuid.UUID:
    """Hard delete. Stock taken by a confirmed order is not given back."""
    order = await get_order_or_404(db, order_id, for_update=True)
    order_status = order.status
    await db.delete(order)
    await db.commit()
    logger.info("Order %s deleted (status was %s)", order_id, order_status.value)
    return order_id


async def handle_payment_completed(
    db: AsyncSession,
    order_id: uuid.UUID,
    session_id: Optional[str] = None,
    *,
    performed_by: Optional[str] = None,
    notifier: Optional[OrderNotifier] = None,
    cache: Optional[TTLCache] = None,
) -> tuple[Order, bool]:
    """Apply a gateway "session paid" signal.

    Returns ``(order, applied)``; ``applied`` is False when the order was
    already paid, so a replayed signal never decrements stock twice.
    """
    order = await get_order_or_404(db, order_id)
    if order.payment_method != PaymentMethod.ONLINE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Order was not placed through online checkout",
        )
    if session_id and order.gateway_session_id and session_id != order.gateway_session_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payment session does not belong to this order",
        )
    if order.paid:
        logger.info("Payment signal for order %s already applied", order_id)
        return order, False

    try:
        order = await confirm_payment(
            db, order_id, performed_by=performed_by, notifier=notifier, cache=cache
        )
    except HTTPException as e:
        if e.status_code != status.HTTP_409_CONFLICT:
            raise
        # Lost the race against another delivery of the same signal.
        order = await get_order_or_404(db, order_id)
        if not order.paid:
            raise
        return order, False
    return order, True
