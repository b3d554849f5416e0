"""Unit tests for the store TTL cache, driven by a fake clock."""

import pytest
from services.store_service.cache import (
    DELIVERY_SETTINGS_KEY,
    TTLCache,
    invalidate_catalog,
    product_detail_key,
    product_list_key,
)
from tests.fakes import FakeClock


@pytest.mark.unit
def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", "v")

    clock.advance(59.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert len(cache) == 0


@pytest.mark.unit
def test_set_refreshes_expiry():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("k", 1)
    clock.advance(8)
    cache.set("k", 2)
    clock.advance(8)
    assert cache.get("k") == 2


@pytest.mark.unit
def test_invalidate_catalog_keeps_other_keys():
    cache = TTLCache(300, clock=FakeClock())
    cache.set(product_list_key(page=1, limit=12, search=None), ["a"])
    cache.set(product_detail_key("abc"), {"id": "abc"})
    cache.set(DELIVERY_SETTINGS_KEY, "settings")

    invalidate_catalog(cache)

    assert cache.get(product_detail_key("abc")) is None
    assert cache.get(product_list_key(page=1, limit=12)) is None
    assert cache.get(DELIVERY_SETTINGS_KEY) == "settings"


@pytest.mark.unit
def test_list_key_ignores_argument_order_and_none():
    assert product_list_key(page=2, limit=5, search=None) == product_list_key(
        limit=5, page=2
    )
    assert product_list_key(page=1, limit=5) != product_list_key(page=2, limit=5)


@pytest.mark.unit
def test_invalidate_and_clear():
    cache = TTLCache(300, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0


@pytest.mark.unit
def test_instances_are_isolated():
    first = TTLCache(300, clock=FakeClock())
    second = TTLCache(300, clock=FakeClock())
    first.set("k", "v")
    assert second.get("k") is None


@pytest.mark.unit
def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        TTLCache(0)
