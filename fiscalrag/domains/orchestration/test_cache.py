"""
Tests for the in-process TTL cache.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .cache import TTLCache


async def test_set_and_get() -> None:
    """Test a stored value is returned."""
    cache = TTLCache()
    await cache.set("search:abc", [{"article_id": "Art. 1"}], ttl_seconds=60)
    assert await cache.get("search:abc") == [{"article_id": "Art. 1"}]


async def test_missing_key() -> None:
    """Test a miss returns None."""
    assert await TTLCache().get("nope") is None


async def test_last_writer_wins() -> None:
    """Test a second write replaces the first."""
    cache = TTLCache()
    await cache.set("k", 1)
    await cache.set("k", 2)
    assert await cache.get("k") == 2
    assert cache.stats()["size"] == 1


async def test_expired_entry_is_dropped() -> None:
    """Test entries past their TTL are misses."""
    cache = TTLCache()
    await cache.set("embedding:abc", [0.1], ttl_seconds=60)
    cache._cache["embedding:abc"].expires_at = datetime.utcnow() - timedelta(seconds=1)

    assert await cache.get("embedding:abc") is None
    assert cache.stats()["size"] == 0


async def test_zero_ttl_is_not_the_default() -> None:
    """Test an explicit zero TTL expires immediately instead of using the default."""
    cache = TTLCache(default_ttl=3600)
    await cache.set("search:abc", [1], ttl_seconds=0)

    entry = cache._cache["search:abc"]
    assert entry.expires_at == entry.created_at


async def test_oldest_entries_evicted_when_full() -> None:
    """Test the size bound evicts the oldest entries first."""
    cache = TTLCache(max_size=10)
    for n in range(10):
        await cache.set(f"k{n}", n)
        cache._cache[f"k{n}"].created_at = datetime(2026, 1, 1) + timedelta(seconds=n)

    await cache.set("k10", 10)

    assert cache.stats()["size"] == 10
    assert await cache.get("k0") is None
    assert await cache.get("k10") == 10


async def test_invalidate_by_pattern() -> None:
    """Test pattern invalidation removes matching keys only."""
    cache = TTLCache()
    await cache.set("search:a", 1)
    await cache.set("search:b", 2)
    await cache.set("embedding:a", 3)

    assert await cache.invalidate(r"^search:") == 2
    assert await cache.get("embedding:a") == 3


async def test_stats() -> None:
    """Test hit/miss counters and key kinds."""
    cache = TTLCache()
    await cache.set("search:a", 1)
    await cache.set("embedding:a", 2)
    await cache.get("search:a")
    await cache.get("search:missing")

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5
    assert stats["by_kind"] == {"search": 1, "embedding": 1}
