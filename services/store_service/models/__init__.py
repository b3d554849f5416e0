"""Store Service models package."""

from services.store_service.models.catalog import Product
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import (
    DEFAULT_DELIVERY_TYPE,
    DeliveryType,
    InventoryMovementType,
    OrderStatus,
    PaymentMethod,
)
from services.store_service.models.inventory import InventoryMovement
from services.store_service.models.settings import (
    DEFAULT_DELIVERY_TYPES,
    DEFAULT_FREE_DELIVERY_THRESHOLD,
    DeliverySettings,
)

__all__ = [
    "DEFAULT_DELIVERY_TYPE",
    "DEFAULT_DELIVERY_TYPES",
    "DEFAULT_FREE_DELIVERY_THRESHOLD",
    "DeliverySettings",
    "DeliveryType",
    "InventoryMovement",
    "InventoryMovementType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "Product",
]
