"""
Vector Searcher - Cached semantic similarity search for one query.

Features:
- Query embedding cache keyed on sha256(text), 7 day TTL
- Result cache keyed on sha256(vector prefix, limit, version), 1 hour TTL
- Cache writes run as background tasks; failures land in ``metrics``
- A search for a key with a pending write waits for that write
- Provider outages degrade to an empty result list, never an exception
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Any

from pydantic import BaseModel

from fiscalrag.config.rulesets import CodeVersion

from .catalog import ArticleCatalog
from .contracts import Embedder, SearchCache, VectorStore
from .models import MatchKind, SearchResult, VectorHit
from .normalize import normalize_article_id

logger = logging.getLogger(__name__)

__all__ = ["VectorSearchMetrics", "VectorSearcher"]


class VectorSearchMetrics(BaseModel):
    """Counters for degraded signals. Read them, the searcher never raises."""

    searches: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    embedding_cache_hits: int = 0
    embedding_failures: int = 0
    store_failures: int = 0
    cache_read_failures: int = 0
    cache_write_failures: int = 0
    slow_searches: int = 0


class VectorSearcher:
    """
    Embedding + nearest-neighbor search with a shared result cache.

    Example:
        >>> searcher = VectorSearcher(embedder, store, cache, catalog)
        >>> results = await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        cache: SearchCache,
        catalog: ArticleCatalog,
        score_threshold: float = 0.7,
        result_ttl: int = 3600,
        embedding_ttl: int = 604800,
        key_prefix_length: int = 10,
        slow_search_ms: float = 500.0,
    ) -> None:
        """
        Initialize searcher.

        Args:
            embedder: Text embedding provider
            store: Version-partitioned vector store
            cache: Shared keyed cache
            catalog: Article metadata used to attach priority/type
            score_threshold: Minimum similarity kept by the store
            result_ttl: Result cache TTL in seconds
            embedding_ttl: Embedding cache TTL in seconds
            key_prefix_length: Number of vector components hashed into the key
            slow_search_ms: Store latency above which a warning is logged
        """
        self._embedder = embedder
        self._store = store
        self._cache = cache
        self._catalog = catalog
        self._threshold = score_threshold
        self._result_ttl = result_ttl
        self._embedding_ttl = embedding_ttl
        self._prefix = key_prefix_length
        self._slow_ms = slow_search_ms

        self._pending: dict[str, asyncio.Task[None]] = {}
        self.metrics = VectorSearchMetrics()

    async def search(
        self,
        query: str,
        limit: int,
        version: CodeVersion,
    ) -> list[SearchResult]:
        """
        Run a similarity search.

        Args:
            query: Free-text question
            limit: Maximum number of hits
            version: Edition partition to search

        Returns:
            Results tagged ``vector``, best first; empty when a provider is down
        """
        self.metrics.searches += 1

        vector = await self._embed(query)
        if vector is None:
            return []

        key = self.result_cache_key(vector, limit, version)
        cached = await self._cache_get(key)
        if cached is not None:
            self.metrics.cache_hits += 1
            logger.debug("Search cache hit: %s", key[:16])
            return [SearchResult.model_validate(item) for item in cached]
        self.metrics.cache_misses += 1

        started = time.perf_counter()
        try:
            hits = await self._store.nearest_neighbors(vector, limit, version, self._threshold)
        except Exception as e:
            self.metrics.store_failures += 1
            logger.error("Vector store unavailable: %s", e)
            return []
        elapsed_ms = (time.perf_counter() - started) * 1000

        if elapsed_ms > self._slow_ms:
            self.metrics.slow_searches += 1
            logger.warning(
                "Slow vector search: %.0fms (version=%s, limit=%d)",
                elapsed_ms,
                version.value,
                limit,
            )

        results = [self._to_result(hit, version) for hit in hits]
        self._write_later(
            key, [r.model_dump(mode="json") for r in results], self._result_ttl
        )

        logger.info(
            "Vector search: query='%s' -> %d results (version=%s, %.0fms)",
            query[:50],
            len(results),
            version.value,
            elapsed_ms,
        )
        return results

    async def flush(self) -> None:
        """Wait for every pending cache write."""
        if self._pending:
            await asyncio.gather(*self._pending.values())

    def result_cache_key(
        self,
        vector: list[float],
        limit: int,
        version: CodeVersion,
    ) -> str:
        """Cache key over the first vector components, the limit and the edition."""
        prefix = ",".join(f"{float(x):.6f}" for x in vector[: self._prefix])
        digest = hashlib.sha256(f"{prefix}|{limit}|{version.value}".encode()).hexdigest()
        return f"search:{digest}"

    @staticmethod
    def embedding_cache_key(text: str) -> str:
        return f"embedding:{hashlib.sha256(text.encode()).hexdigest()}"

    async def _embed(self, query: str) -> list[float] | None:
        key = self.embedding_cache_key(query)
        cached = await self._cache_get(key)
        if cached is not None:
            self.metrics.embedding_cache_hits += 1
            return [float(x) for x in cached]

        try:
            vector = await self._embedder.embed(query)
        except Exception as e:
            self.metrics.embedding_failures += 1
            logger.error("Embedding provider unavailable: %s", e)
            return None

        self._write_later(key, list(vector), self._embedding_ttl)
        return vector

    async def _cache_get(self, key: str) -> Any | None:
        pending = self._pending.get(key)
        if pending is not None:
            await pending
        try:
            return await self._cache.get(key)
        except Exception as e:
            self.metrics.cache_read_failures += 1
            logger.warning("Cache read failed, treating as miss: %s", e)
            return None

    def _write_later(self, key: str, value: Any, ttl: int) -> None:
        task = asyncio.create_task(self._write(key, value, ttl))
        self._pending[key] = task

        def _done(finished: asyncio.Task[None]) -> None:
            if self._pending.get(key) is finished:
                del self._pending[key]

        task.add_done_callback(_done)

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._cache.set(key, value, ttl)
        except Exception as e:
            self.metrics.cache_write_failures += 1
            logger.warning("Cache write failed for %s: %s", key[:16], e)

    def _to_result(self, hit: VectorHit, version: CodeVersion) -> SearchResult:
        article_id = normalize_article_id(hit.article_id)
        metadata = self._catalog.lookup(article_id, version)

        if metadata is not None:
            priority, article_type = metadata.priority, metadata.type
        elif hit.article is not None:
            priority, article_type = hit.article.priority, hit.article.type
        else:
            priority, article_type = 2, None

        return SearchResult(
            article_id=article_id,
            score=min(1.0, max(0.0, hit.score)),
            match_kind=MatchKind.VECTOR,
            priority=priority,
            type=article_type,
            article=hit.article,
        )
