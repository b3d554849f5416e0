"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    ONLINE = "online"  # hosted gateway checkout
    OFFLINE = "offline"  # bank transfer with uploaded proof


class DeliveryType(str, enum.Enum):
    LOCAL = "local"
    EXPRESS = "express"
    OVERSEAS = "overseas"


DEFAULT_DELIVERY_TYPE = DeliveryType.LOCAL


class InventoryMovementType(str, enum.Enum):
    SALE = "sale"
    ADJUSTMENT = "adjustment"
