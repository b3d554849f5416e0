"""In-process TTL cache for catalog and settings reads.

Instances are owned by the application (``app.state.store_cache``) and handed
to routers through ``get_store_cache``, so tests build their own cache with a
fake clock instead of sharing module state.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

from fastapi import Request

from libs.common.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]

PRODUCT_PREFIX = "products:"
DELIVERY_SETTINGS_KEY = "delivery-settings"


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after being set."""

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _Entry] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = _Entry(value, self._clock() + self.ttl_seconds)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every string key starting with ``prefix``; returns how many went."""
        stale = [
            k for k in self._entries if isinstance(k, str) and k.startswith(prefix)
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries under %s", len(stale), prefix)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def product_list_key(**params: Any) -> str:
    """Stable key for a product listing query."""
    parts = [f"{k}={params[k]}" for k in sorted(params) if params[k] is not None]
    return PRODUCT_PREFIX + "list?" + "&".join(parts)


def product_detail_key(product_id: Any) -> str:
    return f"{PRODUCT_PREFIX}detail:{product_id}"


def invalidate_catalog(cache: TTLCache) -> None:
    """Called after any write touching product price or stock."""
    cache.invalidate_prefix(PRODUCT_PREFIX)


def get_store_cache(request: Request) -> TTLCache:
    """FastAPI dependency returning the application's cache."""
    return request.app.state.store_cache
