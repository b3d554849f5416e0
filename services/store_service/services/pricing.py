"""Order pricing: delivery cost and line totals.

Everything here is pure. The same functions back the public delivery quote
and checkout, so a storefront preview and the persisted order agree; only the
checkout result is authoritative.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Union

from services.store_service.models.enums import DeliveryType

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Coerce to a two-decimal Decimal. Floats go through str() to avoid binary noise."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DeliveryPricing:
    """Snapshot of the delivery settings relevant to pricing."""

    costs: Mapping[str, Decimal] = field(default_factory=dict)
    free_delivery_threshold: Decimal = Decimal("0")

    @classmethod
    def from_settings(cls, settings) -> "DeliveryPricing":
        """Build from a DeliverySettings row (or anything shaped like one)."""
        costs = {
            key: to_money(tier["cost"])
            for key, tier in (settings.delivery_types or {}).items()
        }
        return cls(
            costs=costs,
            free_delivery_threshold=to_money(settings.free_delivery_threshold),
        )


def compute_delivery_cost(
    subtotal: Number,
    delivery_type: Union[DeliveryType, str],
    pricing: DeliveryPricing,
) -> Decimal:
    """
    Delivery is free once the subtotal reaches the threshold (inclusive);
    otherwise the flat cost of the chosen tier applies.

    Raises:
        ValueError: the tier is not configured
    """
    if to_money(subtotal) >= pricing.free_delivery_threshold:
        return to_money(0)

    key = delivery_type.value if isinstance(delivery_type, DeliveryType) else delivery_type
    try:
        return pricing.costs[key]
    except KeyError:
        raise ValueError(f"Unknown delivery type: {key}") from None


def compute_total(
    subtotal: Number,
    delivery_type: Union[DeliveryType, str],
    pricing: DeliveryPricing,
) -> Decimal:
    return to_money(subtotal) + compute_delivery_cost(subtotal, delivery_type, pricing)


def line_total(unit_price: Number, quantity: int) -> Decimal:
    return to_money(Decimal(str(unit_price)) * quantity)
