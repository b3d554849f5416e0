"""Customer notifications for order payment review."""

from libs.common.emails.orders import (
    send_payment_confirmed_email,
    send_payment_rejected_email,
)
from libs.common.logging import get_logger
from services.store_service.models import Order

logger = get_logger(__name__)


class OrderNotifier:
    """Sends the transactional emails that follow an admin payment decision."""

    async def payment_confirmed(self, order: Order) -> bool:
        return await send_payment_confirmed_email(
            to_email=order.email,
            customer_name=order.name,
            order_id=str(order.id),
        )

    async def payment_rejected(self, order: Order) -> bool:
        return await send_payment_rejected_email(
            to_email=order.email,
            customer_name=order.name,
            order_id=str(order.id),
            rejection_reason=order.rejection_reason or "",
        )


_notifier = OrderNotifier()


def get_order_notifier() -> OrderNotifier:
    return _notifier


async def notify_best_effort(notifier: OrderNotifier, event: str, order: Order) -> None:
    """Run a notifier hook; failures are logged, never raised.

    The order change is already committed when this runs.
    """
    try:
        sent = await getattr(notifier, event)(order)
    except Exception as e:
        logger.warning(f"Failed to send {event} email for order {order.id}: {e}")
        return
    if not sent:
        logger.warning(f"{event} email for order {order.id} was not delivered")
