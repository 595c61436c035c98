"""
TTL Cache - In-process keyed cache with TTL support.

Shared by the vector searchers of both editions for query embeddings and
search results. Last writer wins; there are no locks.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Any

from .models import CacheEntry

logger = logging.getLogger(__name__)

__all__ = ["TTLCache"]


class TTLCache:
    """
    In-memory cache with TTL.

    Features:
    - Automatic TTL expiration
    - Bounded size (oldest 10% evicted when full)
    - Pattern-based invalidation
    - Hit/miss tracking

    Example:
        >>> cache = TTLCache(max_size=5000)
        >>> await cache.set("search:abc", [...], ttl_seconds=3600)
        >>> await cache.get("search:abc")
    """

    def __init__(self, max_size: int = 5000, default_ttl: int = 3600) -> None:
        """
        Initialize cache.

        Args:
            max_size: Maximum number of cached entries
            default_ttl: TTL in seconds when set() is given none
        """
        self._cache: dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Any | None:
        """Get cached value if not expired."""
        entry = self._cache.get(key)
        if not entry:
            self._misses += 1
            return None

        if entry.expires_at and datetime.utcnow() > entry.expires_at:
            del self._cache[key]
            self._misses += 1
            logger.debug("Cache entry expired: %s", key[:16])
            return None

        entry.hit_count += 1
        self._hits += 1
        logger.debug("Cache hit: %s (hits: %d)", key[:16], entry.hit_count)
        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Cache a value, replacing any previous one."""
        if key not in self._cache and len(self._cache) >= self._max_size:
            self._evict_oldest()

        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        now = datetime.utcnow()
        self._cache[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
        )
        logger.debug("Cached value: %s (TTL: %ds)", key[:16], ttl)

    async def invalidate(self, pattern: str) -> int:
        """Invalidate cache entries matching pattern."""
        regex = re.compile(pattern)
        keys_to_delete = [k for k in self._cache if regex.search(k)]

        for key in keys_to_delete:
            del self._cache[key]

        logger.info("Invalidated %d cache entries matching: %s", len(keys_to_delete), pattern)
        return len(keys_to_delete)

    async def clear(self) -> None:
        """Clear all cache entries."""
        count = len(self._cache)
        self._cache.clear()
        logger.info("Cleared %d cache entries", count)

    def _evict_oldest(self) -> None:
        sorted_keys = sorted(self._cache, key=lambda k: self._cache[k].created_at)
        evict_count = max(1, len(sorted_keys) // 10)

        for key in sorted_keys[:evict_count]:
            del self._cache[key]

        logger.debug("Evicted %d oldest cache entries", evict_count)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        lookups = self._hits + self._misses
        by_kind: dict[str, int] = {}
        for key in self._cache:
            kind = key.split(":", 1)[0]
            by_kind[kind] = by_kind.get(kind, 0) + 1

        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
            "by_kind": by_kind,
        }
