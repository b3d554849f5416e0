"""Stock mutations.

Sales are applied as relative ``UPDATE ... SET stock = CASE ...`` statements so
concurrent confirmations for different orders never lose each other's
decrements. None of these functions commit: the caller owns the transaction.
"""

import uuid
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.models import (
    InventoryMovement,
    InventoryMovementType,
    Order,
    Product,
)
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def decrement_stock(
    db: AsyncSession, product_id: uuid.UUID, quantity: int
) -> Optional[tuple[int, int]]:
    """Take ``quantity`` off a product's stock, flooring at zero.

    Returns ``(stock_before, stock_after)``, or None if the product is gone.
    """
    # Row lock so stock_before is the value the update actually starts from.
    before = (
        await db.execute(
            select(Product.stock).where(Product.id == product_id).with_for_update()
        )
    ).scalar_one_or_none()
    if before is None:
        return None

    after = (
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock=case(
                    (Product.stock > quantity, Product.stock - quantity), else_=0
                ),
                updated_at=utc_now(),
            )
            .returning(Product.stock)
            .execution_options(synchronize_session=False)
        )
    ).scalar_one()
    return before, after


async def apply_order_sale(
    db: AsyncSession, order: Order, performed_by: Optional[str] = None
) -> list[InventoryMovement]:
    """Decrement stock for every line of ``order`` and record one sale movement per line.

    The unique constraint on ``order_item_id`` makes a second application for
    the same order fail instead of decrementing twice.
    """
    movements = []
    # Stable product order keeps concurrent confirmations from deadlocking.
    lines = sorted(
        (item for item in order.items if item.product_id is not None),
        key=lambda item: str(item.product_id),
    )
    for item in lines:
        levels = await decrement_stock(db, item.product_id, item.quantity)
        if levels is None:
            logger.warning(
                "Product %s on order %s no longer exists; stock not adjusted",
                item.product_id,
                order.id,
            )
            continue

        stock_before, stock_after = levels
        movement = InventoryMovement(
            product_id=item.product_id,
            movement_type=InventoryMovementType.SALE,
            quantity=-item.quantity,
            stock_before=stock_before,
            stock_after=stock_after,
            order_id=order.id,
            order_item_id=item.id,
            performed_by=performed_by,
        )
        db.add(movement)
        movements.append(movement)
        logger.info(
            "Updated stock for product %s (%s): %d -> %d",
            item.product_id,
            item.product_name,
            stock_before,
            stock_after,
        )

    await db.flush()
    return movements


async def set_stock(
    db: AsyncSession,
    product: Product,
    new_stock: int,
    performed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> Optional[InventoryMovement]:
    """Manual stock correction from the admin catalog."""
    if new_stock < 0:
        raise ValueError("Stock cannot be negative")
    if new_stock == product.stock:
        return None

    movement = InventoryMovement(
        product_id=product.id,
        movement_type=InventoryMovementType.ADJUSTMENT,
        quantity=new_stock - product.stock,
        stock_before=product.stock,
        stock_after=new_stock,
        performed_by=performed_by,
        notes=notes,
    )
    product.stock = new_stock
    db.add(movement)
    return movement
