"""
In-memory cache for owners' property listings.
Entries are keyed per owner so a mutation only invalidates that owner's pages.
"""

import logging
import uuid
from typing import Any, Hashable, Optional, Tuple
from cachetools import TTLCache

from propmatch.config import settings

logger = logging.getLogger(__name__)


class ListingCache:
    """TTL cache of serialised listing pages, keyed by (owner_id, page key)."""

    def __init__(
        self,
        enabled: bool = settings.cache_enabled,
        ttl_seconds: int = settings.cache_ttl_seconds,
        max_size: int = settings.cache_max_size
    ):
        self.enabled = enabled
        self._cache: Optional[TTLCache] = TTLCache(maxsize=max_size, ttl=ttl_seconds) if enabled else None

    @staticmethod
    def _key(owner_id: uuid.UUID, page_key: Hashable) -> Tuple[str, Hashable]:
        return str(owner_id), page_key

    def get(self, owner_id: uuid.UUID, page_key: Hashable) -> Optional[Any]:
        if self._cache is None:
            return None

        key = self._key(owner_id, page_key)
        value = self._cache.get(key)
        if value is None:
            logger.debug(f"Cache miss: {key}")
        else:
            logger.debug(f"Cache hit: {key}")
        return value

    def set(self, owner_id: uuid.UUID, page_key: Hashable, value: Any) -> None:
        if self._cache is None:
            return
        self._cache[self._key(owner_id, page_key)] = value

    def invalidate_owner(self, owner_id: uuid.UUID) -> int:
        """Drop every cached page for one owner. Returns the number of entries removed."""
        if self._cache is None:
            return 0

        owner = str(owner_id)
        stale_keys = [key for key in list(self._cache.keys()) if key[0] == owner]
        for key in stale_keys:
            self._cache.pop(key, None)

        if stale_keys:
            logger.debug(f"Invalidated {len(stale_keys)} cached listing page(s) for owner {owner}")
        return len(stale_keys)

    def clear(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache) if self._cache is not None else 0
