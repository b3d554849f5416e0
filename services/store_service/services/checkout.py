"""Checkout: turn a cart snapshot into a pending order.

Prices always come from the catalog at the moment of checkout; whatever price
the storefront sent is ignored. No stock moves here.
"""

import uuid
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.error_handler import error_body
from libs.common.logging import get_logger
from services.store_service.cache import TTLCache
from services.store_service.models import (
    DEFAULT_DELIVERY_TYPE,
    DeliveryType,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Product,
)
from services.store_service.payment_gateway import (
    CheckoutSession,
    GatewayLineItem,
    PaymentGateway,
    PaymentGatewayError,
)
from services.store_service.schemas import (
    CartItemIn,
    OfflineCheckoutRequest,
    OnlineCheckoutRequest,
    ShippingDetails,
)
from services.store_service.services.delivery_settings import get_delivery_pricing
from services.store_service.services.pricing import (
    compute_delivery_cost,
    line_total,
    to_money,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _to_cents(amount: Decimal) -> int:
    return int((to_money(amount) * 100).to_integral_value())


async def build_order_items(
    db: AsyncSession, cart_items: list[CartItemIn]
) -> tuple[list[OrderItem], Decimal]:
    """Snapshot cart lines against the live catalog.

    Lines with quantity 0 are skipped. Products that no longer exist are
    dropped with a warning; if nothing survives the checkout is refused.
    """
    product_ids = {item.id for item in cart_items}
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in result.scalars().all()}

    missing = product_ids - products.keys()
    if missing:
        logger.warning(
            "Dropping unknown products from cart: %s",
            ", ".join(sorted(str(pid) for pid in missing)),
        )

    items: list[OrderItem] = []
    total = to_money(0)
    for cart_item in cart_items:
        product = products.get(cart_item.id)
        if product is None or cart_item.quantity < 1:
            continue
        amount = line_total(product.price, cart_item.quantity)
        total += amount
        items.append(
            OrderItem(
                product_id=product.id,
                position=len(items),
                product_name=product.name,
                product_description=product.description,
                product_images=list(product.images or []),
                quantity=cart_item.quantity,
                unit_price=to_money(product.price),
                line_total=amount,
            )
        )

    if not items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No products found"
        )
    return items, total


async def _create_order(
    db: AsyncSession,
    *,
    user: AuthUser,
    shipping: ShippingDetails,
    cart_items: list[CartItemIn],
    delivery_type: Optional[DeliveryType],
    payment_method: PaymentMethod,
    cache: Optional[TTLCache],
    **payment_fields,
) -> Order:
    items, total = await build_order_items(db, cart_items)

    delivery_type = delivery_type or DEFAULT_DELIVERY_TYPE
    pricing = await get_delivery_pricing(db, cache)
    try:
        delivery_cost = compute_delivery_cost(total, delivery_type, pricing)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    order = Order(
        user_id=user.user_id,
        name=shipping.name,
        email=shipping.email,
        city=shipping.city,
        postal_code=shipping.postal_code,
        street_address=shipping.street_address,
        country=shipping.country,
        total=total,
        delivery_type=delivery_type,
        delivery_cost=delivery_cost,
        status=OrderStatus.PENDING,
        paid=False,
        payment_method=payment_method,
        items=items,
        **payment_fields,
    )
    db.add(order)
    await db.commit()

    logger.info(
        "Order %s created for %s (total=%s, delivery=%s, method=%s)",
        order.id,
        user.user_id,
        order.total,
        order.delivery_cost,
        payment_method.value,
    )
    return order


async def _discard_order(db: AsyncSession, order: Order) -> None:
    """Compensating delete for an order whose payment session never came to be."""
    await db.delete(order)
    await db.commit()
    logger.info("Deleted order %s after failed payment session creation", order.id)


async def create_online_checkout(
    db: AsyncSession,
    payload: OnlineCheckoutRequest,
    *,
    user: AuthUser,
    gateway: PaymentGateway,
    cache: Optional[TTLCache] = None,
) -> CheckoutSession:
    """Create a pending order and a hosted payment session for it."""
    order = await _create_order(
        db,
        user=user,
        shipping=payload,
        cart_items=payload.cart_items,
        delivery_type=payload.delivery_type,
        payment_method=PaymentMethod.ONLINE,
        cache=cache,
    )

    line_items = [
        GatewayLineItem(
            name=item.product_name,
            unit_amount=_to_cents(item.unit_price),
            quantity=item.quantity,
        )
        for item in order.items
    ]
    if order.delivery_cost > 0:
        line_items.append(
            GatewayLineItem(
                name="Delivery", unit_amount=_to_cents(order.delivery_cost), quantity=1
            )
        )

    public_url = get_settings().PUBLIC_URL.rstrip("/")
    try:
        session = await gateway.create_checkout_session(
            line_items=line_items,
            success_url=f"{public_url}/checkout/success?orderId={order.id}",
            cancel_url=f"{public_url}/checkout/canceled",
            customer_email=order.email,
            metadata={"orderId": str(order.id)},
        )
    except PaymentGatewayError as e:
        logger.error(f"Payment session creation failed for order {order.id}: {e}")
        await _discard_order(db, order)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_body("Error creating payment session", e.message),
        )
    except Exception:
        logger.exception("Unexpected gateway failure for order %s", order.id)
        await _discard_order(db, order)
        raise

    order.gateway_session_id = session.id
    await db.commit()
    return session


async def create_offline_checkout(
    db: AsyncSession,
    payload: OfflineCheckoutRequest,
    *,
    user: AuthUser,
    cache: Optional[TTLCache] = None,
) -> uuid.UUID:
    """Record a bank-transfer order awaiting admin review of its proof."""
    order = await _create_order(
        db,
        user=user,
        shipping=payload,
        cart_items=payload.cart_items,
        delivery_type=payload.delivery_type,
        payment_method=PaymentMethod.OFFLINE,
        cache=cache,
        payment_proof_url=payload.payment_proof_url,
        payment_reference=payload.payment_reference,
        payment_date=payload.payment_date,
    )
    return order.id
