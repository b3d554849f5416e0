"""Pydantic schemas for store service.

The storefront talks camelCase JSON (``postalCode``, ``cartItems``); attributes
stay snake_case through the alias generator on ``StoreModel``.
"""

import re
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from services.store_service.models import (
    DeliveryType,
    InventoryMovementType,
    OrderStatus,
    PaymentMethod,
)

PAYMENT_REFERENCE_PATTERN = re.compile(r"^[A-Z]+-\d{8}-\d{4}$")
PROOF_URL_SCHEMES = ("http://", "https://")
PROOF_URL_ERROR = "Payment proof URL must be an http(s) URL"


def is_proof_url(value: str) -> bool:
    """Proof links are rendered to admins, so only plain web URLs are accepted."""
    return value.lower().startswith(PROOF_URL_SCHEMES)


class StoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class StoreResponse(StoreModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class CartItemIn(StoreModel):
    """One cart line as sent by the storefront. Any client price is ignored."""

    id: uuid.UUID
    quantity: int = Field(0, ge=0)
    price: Optional[Decimal] = None


class ShippingDetails(StoreModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=30)
    street_address: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=100)


class OnlineCheckoutRequest(ShippingDetails):
    """Hosted-gateway checkout."""

    cart_items: list[CartItemIn]
    delivery_type: Optional[DeliveryType] = None

    @model_validator(mode="after")
    def _cart_not_empty(self):
        if not any(item.quantity >= 1 for item in self.cart_items):
            raise ValueError("Cart is empty")
        return self


class OfflineCheckoutRequest(OnlineCheckoutRequest):
    """Bank transfer checkout with an already-uploaded proof."""

    payment_proof_url: str = Field(..., min_length=1)
    payment_reference: str = Field(..., min_length=1, max_length=50)
    payment_date: Optional[datetime] = None

    @field_validator("payment_proof_url")
    @classmethod
    def _proof_is_url(cls, v: str) -> str:
        if not is_proof_url(v):
            raise ValueError(PROOF_URL_ERROR)
        return v

    @field_validator("payment_reference")
    @classmethod
    def _reference_format(cls, v: str) -> str:
        if not PAYMENT_REFERENCE_PATTERN.match(v):
            raise ValueError("Payment reference must look like PREFIX-YYYYMMDD-NNNN")
        return v


class OnlineCheckoutResponse(StoreModel):
    url: str
    session_id: str


class OfflineCheckoutResponse(StoreModel):
    success: bool = True
    order_id: uuid.UUID


class PaymentCompletedEvent(StoreModel):
    """Relayed gateway notification that a hosted session was paid."""

    order_id: uuid.UUID
    session_id: Optional[str] = None


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(StoreResponse):
    id: uuid.UUID
    product_id: Optional[uuid.UUID]
    product_name: str
    product_description: Optional[str]
    product_images: list[str] = []
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderResponse(StoreResponse):
    id: uuid.UUID
    user_id: Optional[str]

    name: str
    email: str
    city: str
    postal_code: str
    street_address: str
    country: str

    items: list[OrderItemResponse] = Field(
        default_factory=list, serialization_alias="cartProducts"
    )
    total: Decimal
    delivery_type: DeliveryType
    delivery_cost: Decimal
    amount_due: Decimal

    status: OrderStatus
    paid: bool
    payment_method: PaymentMethod
    gateway_session_id: Optional[str]
    payment_proof_url: Optional[str]
    payment_reference: Optional[str]
    payment_date: Optional[datetime]
    rejection_reason: Optional[str]

    version: int
    paid_at: Optional[datetime]
    delivered_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class OrderListResponse(StoreModel):
    """Paginated order list."""

    orders: list[OrderResponse]
    has_more: bool
    total_orders: int


class AdminOrderAction(StoreModel):
    """Admin order update. No flag set means "mark delivered"."""

    order_id: uuid.UUID
    confirm_payment: bool = False
    reject_payment: bool = False
    rejection_reason: Optional[str] = None


class PaymentProofUpdate(StoreModel):
    payment_proof_url: Optional[str] = None

    @field_validator("payment_proof_url")
    @classmethod
    def _proof_is_url(cls, v: Optional[str]) -> Optional[str]:
        # Empty is left to the service layer, which reports it as missing.
        if v and not is_proof_url(v):
            raise ValueError(PROOF_URL_ERROR)
        return v


class OrderActionResponse(StoreModel):
    message: str
    order: OrderResponse


class OrderDeletedResponse(StoreModel):
    message: str
    order_id: uuid.UUID


# ============================================================================
# DELIVERY SCHEMAS
# ============================================================================


class DeliveryTier(StoreResponse):
    name: str = Field(..., min_length=1, max_length=100)
    cost: Decimal = Field(..., ge=0)


class DeliverySettingsBase(StoreModel):
    delivery_types: dict[DeliveryType, DeliveryTier]
    free_delivery_threshold: Decimal = Field(..., ge=0)
    bank_account_details: str = ""


class DeliverySettingsUpdate(DeliverySettingsBase):
    @field_validator("delivery_types")
    @classmethod
    def _all_tiers_present(cls, v: dict) -> dict:
        missing = [t.value for t in DeliveryType if t not in v]
        if missing:
            raise ValueError(f"Missing delivery types: {', '.join(missing)}")
        return v


class DeliverySettingsResponse(DeliverySettingsBase):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    updated_at: Optional[datetime] = None


class DeliveryQuoteRequest(StoreModel):
    subtotal: Decimal = Field(..., ge=0)
    delivery_type: DeliveryType = DeliveryType.LOCAL


class DeliveryQuoteResponse(StoreModel):
    subtotal: Decimal
    delivery_type: DeliveryType
    delivery_cost: Decimal
    total: Decimal
    free_delivery_threshold: Decimal


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(StoreModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    draft: bool = False


class ProductCreate(ProductBase):
    pass


class ProductUpdate(StoreModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    images: Optional[list[str]] = None
    price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    draft: Optional[bool] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class ProductListResponse(StoreModel):
    products: list[ProductResponse]
    has_more: bool
    total_products: int


class InventoryMovementResponse(StoreResponse):
    id: uuid.UUID
    product_id: uuid.UUID
    movement_type: InventoryMovementType
    quantity: int
    stock_before: int
    stock_after: int
    order_id: Optional[uuid.UUID]
    performed_by: Optional[str]
    notes: Optional[str]
    created_at: datetime
