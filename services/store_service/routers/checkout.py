"""Store checkout router: online (hosted gateway) and offline (bank transfer) checkout."""

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import get_current_user, require_service_role
from libs.auth.models import AuthUser
from libs.common.rate_limit import checkout_limit
from libs.db.session import get_async_db
from services.store_service.cache import TTLCache, get_store_cache
from services.store_service.payment_gateway import PaymentGateway, get_payment_gateway
from services.store_service.schemas import (
    OfflineCheckoutRequest,
    OfflineCheckoutResponse,
    OnlineCheckoutRequest,
    OnlineCheckoutResponse,
    OrderActionResponse,
    OrderResponse,
    PaymentCompletedEvent,
)
from services.store_service.services import checkout, fulfillment
from services.store_service.services.notifications import (
    OrderNotifier,
    get_order_notifier,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.post("/checkout", response_model=OnlineCheckoutResponse)
@checkout_limit()
async def create_online_checkout(
    request: Request,
    payload: OnlineCheckoutRequest,
    current_user: AuthUser = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a pending order and return the hosted payment page URL."""
    session = await checkout.create_online_checkout(
        db, payload, user=current_user, gateway=gateway, cache=cache
    )
    return OnlineCheckoutResponse(url=session.url, session_id=session.id)


@router.post("/checkout/offline-payment", response_model=OfflineCheckoutResponse)
@checkout_limit()
async def create_offline_checkout(
    request: Request,
    payload: OfflineCheckoutRequest,
    current_user: AuthUser = Depends(get_current_user),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a pending order carrying the customer's bank transfer proof."""
    order_id = await checkout.create_offline_checkout(
        db, payload, user=current_user, cache=cache
    )
    return OfflineCheckoutResponse(success=True, order_id=order_id)


@router.post("/checkout/payment-completed", response_model=OrderActionResponse)
async def payment_completed(
    payload: PaymentCompletedEvent,
    caller: AuthUser = Depends(require_service_role),
    notifier: OrderNotifier = Depends(get_order_notifier),
    cache: TTLCache = Depends(get_store_cache),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Gateway relay: the hosted session for this order was paid.

    Safe to deliver more than once.
    """
    order, applied = await fulfillment.handle_payment_completed(
        db,
        payload.order_id,
        payload.session_id,
        performed_by=caller.user_id,
        notifier=notifier,
        cache=cache,
    )
    message = "Payment confirmed" if applied else "Payment already recorded"
    return OrderActionResponse(message=message, order=OrderResponse.model_validate(order))
