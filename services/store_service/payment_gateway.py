"""
Hosted checkout gateway.

``PaymentGateway`` is the contract checkout depends on; ``StripeClient`` is the
production implementation, talking to the Stripe REST API over httpx (Stripe
takes form-encoded bodies with bracketed keys). Tests swap in a fake through
the ``get_payment_gateway`` dependency.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import httpx
from fastapi import HTTPException, status
from libs.common.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class GatewayLineItem:
    """One line on the hosted checkout page."""

    name: str
    unit_amount: int  # minor units (cents)
    quantity: int


@dataclass
class CheckoutSession:
    """A created hosted checkout session."""

    id: str
    url: str
    raw: dict = field(default_factory=dict, repr=False)


class PaymentGatewayError(Exception):
    """Raised when the gateway refuses or cannot be reached."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class PaymentGateway(ABC):
    @abstractmethod
    async def create_checkout_session(
        self,
        *,
        line_items: list[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str],
        metadata: dict[str, str],
    ) -> CheckoutSession:
        """Create a hosted checkout session and return its redirect URL."""
        ...


def _encode_session_form(
    line_items: list[GatewayLineItem],
    currency: str,
    success_url: str,
    cancel_url: str,
    customer_email: Optional[str],
    metadata: dict[str, str],
) -> dict[str, str]:
    form: dict[str, str] = {
        "mode": "payment",
        "payment_method_types[0]": "card",
        "success_url": success_url,
        "cancel_url": cancel_url,
    }
    if customer_email:
        form["customer_email"] = customer_email
    for i, item in enumerate(line_items):
        prefix = f"line_items[{i}]"
        form[f"{prefix}[price_data][currency]"] = currency
        form[f"{prefix}[price_data][product_data][name]"] = item.name
        form[f"{prefix}[price_data][unit_amount]"] = str(item.unit_amount)
        form[f"{prefix}[quantity]"] = str(item.quantity)
    for key, value in metadata.items():
        form[f"metadata[{key}]"] = value
    return form


class StripeClient(PaymentGateway):
    """Async client for Stripe Checkout Sessions."""

    def __init__(
        self,
        secret_key: str = None,
        api_base: str = None,
        currency: str = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        if not self.secret_key:
            raise ValueError("STRIPE_SECRET_KEY is required")
        self.api_base = (api_base or settings.STRIPE_API_BASE).rstrip("/")
        self.currency = currency or settings.CURRENCY
        self.timeout = timeout
        self._headers = {"Authorization": f"Bearer {self.secret_key}"}

    async def _request(self, method: str, endpoint: str, data: dict = None) -> dict:
        """Make an async request to the Stripe API."""
        url = f"{self.api_base}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method, url=url, headers=self._headers, data=data
                )
        except httpx.RequestError as e:
            raise PaymentGatewayError(f"Could not reach payment gateway: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            logger.error(f"Stripe API error: {response.status_code} - {payload}")
            error = payload.get("error") or {}
            raise PaymentGatewayError(
                message=error.get("message", "Unknown payment gateway error"),
                status_code=response.status_code,
                response_data=payload,
            )

        return payload

    async def create_checkout_session(
        self,
        *,
        line_items: list[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str],
        metadata: dict[str, str],
    ) -> CheckoutSession:
        form = _encode_session_form(
            line_items, self.currency, success_url, cancel_url, customer_email, metadata
        )
        data = await self._request("POST", "/checkout/sessions", data=form)

        if not data.get("id") or not data.get("url"):
            raise PaymentGatewayError(
                "Payment gateway returned no session URL", response_data=data
            )
        return CheckoutSession(id=data["id"], url=data["url"], raw=data)


# Singleton instance for convenience
_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency: the configured gateway, created on first use."""
    global _gateway
    if _gateway is None:
        try:
            _gateway = StripeClient()
        except ValueError:
            logger.error("Missing Stripe secret key")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Payment gateway is not configured",
            )
    return _gateway
