"""Unit tests for delivery cost and line pricing. Pure functions, no database."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from services.store_service.models import (
    DEFAULT_DELIVERY_TYPES,
    DEFAULT_FREE_DELIVERY_THRESHOLD,
    DeliveryType,
)
from services.store_service.services.pricing import (
    DeliveryPricing,
    compute_delivery_cost,
    compute_total,
    line_total,
    to_money,
)


@pytest.fixture
def pricing() -> DeliveryPricing:
    settings = SimpleNamespace(
        delivery_types=DEFAULT_DELIVERY_TYPES,
        free_delivery_threshold=DEFAULT_FREE_DELIVERY_THRESHOLD,
    )
    return DeliveryPricing.from_settings(settings)


@pytest.mark.unit
def test_subtotal_at_threshold_ships_free(pricing):
    assert compute_delivery_cost(Decimal("100"), DeliveryType.LOCAL, pricing) == 0


@pytest.mark.unit
def test_subtotal_just_below_threshold_pays_tier_cost(pricing):
    assert compute_delivery_cost(Decimal("99.99"), DeliveryType.LOCAL, pricing) == Decimal("5")


@pytest.mark.unit
@pytest.mark.parametrize(
    "delivery_type, expected",
    [
        (DeliveryType.LOCAL, Decimal("5.00")),
        (DeliveryType.EXPRESS, Decimal("10.00")),
        (DeliveryType.OVERSEAS, Decimal("20.00")),
    ],
)
def test_each_tier_uses_its_configured_cost(pricing, delivery_type, expected):
    assert compute_delivery_cost(Decimal("20"), delivery_type, pricing) == expected


@pytest.mark.unit
def test_tier_accepts_plain_string_key(pricing):
    assert compute_delivery_cost(10, "express", pricing) == Decimal("10.00")


@pytest.mark.unit
def test_unknown_tier_raises(pricing):
    with pytest.raises(ValueError, match="Unknown delivery type"):
        compute_delivery_cost(Decimal("10"), "drone", pricing)


@pytest.mark.unit
def test_unknown_tier_is_irrelevant_above_threshold(pricing):
    assert compute_delivery_cost(Decimal("150"), "drone", pricing) == 0


@pytest.mark.unit
def test_total_adds_delivery(pricing):
    assert compute_total(Decimal("13"), DeliveryType.LOCAL, pricing) == Decimal("18.00")
    assert compute_total(Decimal("120"), DeliveryType.OVERSEAS, pricing) == Decimal("120.00")


@pytest.mark.unit
def test_line_total_and_money_rounding():
    assert line_total(Decimal("5"), 2) == Decimal("10.00")
    assert line_total("19.99", 3) == Decimal("59.97")
    assert to_money(0.1 + 0.2) == Decimal("0.30")


@pytest.mark.unit
def test_pricing_is_deterministic(pricing):
    results = {compute_delivery_cost(Decimal("42.50"), "local", pricing) for _ in range(5)}
    assert results == {Decimal("5.00")}
