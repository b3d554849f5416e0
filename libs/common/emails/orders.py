"""
Order payment review emails.
"""

from libs.common.config import get_settings
from libs.common.emails.core import send_email


def _orders_link() -> str:
    return f"{get_settings().PUBLIC_URL}/profile?tab=orders"


async def send_payment_confirmed_email(
    to_email: str,
    customer_name: str,
    order_id: str,
) -> bool:
    """
    Tell the customer their payment was accepted and the order is being processed.
    """
    subject = "Payment Confirmed - Order Processing"
    link = _orders_link()

    body = f"""Dear {customer_name},

Your payment for order #{order_id} has been confirmed. We are now processing your order.

Track your order: {link}

Thank you for your purchase!
"""

    html_body = f"""
<h1>Payment Confirmed</h1>
<p>Dear {customer_name},</p>
<p>Your payment for order #{order_id} has been confirmed.</p>
<p>We are now processing your order.</p>
<p>Thank you for your purchase!</p>
<p><a href="{link}">Track Your Order</a></p>
"""

    return await send_email(
        to_email=to_email, subject=subject, body=body, html_body=html_body
    )


async def send_payment_rejected_email(
    to_email: str,
    customer_name: str,
    order_id: str,
    rejection_reason: str,
) -> bool:
    """
    Tell the customer their payment proof was rejected and how to resubmit.
    """
    subject = "Action Required: Payment Rejected"
    link = _orders_link()

    body = f"""Dear {customer_name},

Your payment proof for order #{order_id} has been rejected.

Reason: {rejection_reason}

Please submit a new payment proof through your order dashboard: {link}

If you have any questions, please contact our support team.
"""

    html_body = f"""
<h1>Payment Rejected</h1>
<p>Dear {customer_name},</p>
<p>Your payment proof for order #{order_id} has been rejected.</p>
<p><strong>Reason:</strong> {rejection_reason}</p>
<p>Please submit a new payment proof through your order dashboard.</p>
<p>If you have any questions, please contact our support team.</p>
<p><a href="{link}">Submit New Payment Proof</a></p>
"""

    return await send_email(
        to_email=to_email, subject=subject, body=body, html_body=html_body
    )
