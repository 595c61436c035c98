"""
Tests for the cached vector searcher.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from fiscalrag.config.errors import ProviderUnavailableError
from fiscalrag.config.rulesets import ArticleMetadata, ArticleType, CodeVersion

from .catalog import ArticleCatalog
from .models import Article, MatchKind, VectorHit
from .vector_search import VectorSearcher

VECTOR = [0.1 * n for n in range(12)]


class DictCache:
    """Minimal in-memory cache honoring the SearchCache contract."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> Any | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        self.data[key] = value
        self.ttls[key] = ttl_seconds


@pytest.fixture
def catalog() -> ArticleCatalog:
    return ArticleCatalog(
        [
            ArticleMetadata(
                numero="Art. 92A",
                version=CodeVersion.V2026,
                priority=2,
                type=ArticleType.APPLICATION,
            )
        ]
    )


@pytest.fixture
def mock_embedder() -> AsyncMock:
    mock = AsyncMock()
    mock.embed.return_value = VECTOR
    return mock


@pytest.fixture
def mock_store() -> AsyncMock:
    mock = AsyncMock()
    mock.nearest_neighbors.return_value = [
        VectorHit(
            article_id="Art. 92A",
            score=0.91,
            article=Article(numero="Art. 92A", version=CodeVersion.V2026, priority=5),
        ),
        VectorHit(
            article_id="art.17",
            score=0.82,
            article=Article(
                numero="Art. 17",
                version=CodeVersion.V2026,
                priority=3,
                type=ArticleType.CALCULATION,
            ),
        ),
        VectorHit(article_id="Art. 40", score=0.75),
    ]
    return mock


@pytest.fixture
def cache() -> DictCache:
    return DictCache()


@pytest.fixture
def searcher(
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
    cache: DictCache,
    catalog: ArticleCatalog,
) -> VectorSearcher:
    return VectorSearcher(mock_embedder, mock_store, cache, catalog)


# --- Search Tests ---


async def test_search_returns_vector_results(
    searcher: VectorSearcher,
    mock_store: AsyncMock,
) -> None:
    """Test hits are converted to vector results with the score threshold applied."""
    results = await searcher.search("base forfaitaire", limit=8, version=CodeVersion.V2026)

    assert [r.article_id for r in results] == ["Art. 92A", "Art. 17", "Art. 40"]
    assert all(r.match_kind is MatchKind.VECTOR for r in results)
    mock_store.nearest_neighbors.assert_awaited_once_with(VECTOR, 8, CodeVersion.V2026, 0.7)


async def test_priority_and_type_resolution_order(searcher: VectorSearcher) -> None:
    """Test catalog metadata wins, then the payload, then the default priority."""
    results = await searcher.search("base forfaitaire", limit=8, version=CodeVersion.V2026)
    by_id = {r.article_id: r for r in results}

    assert by_id["Art. 92A"].priority == 2
    assert by_id["Art. 92A"].type is ArticleType.APPLICATION
    assert by_id["Art. 17"].priority == 3
    assert by_id["Art. 17"].type is ArticleType.CALCULATION
    assert by_id["Art. 40"].priority == 2
    assert by_id["Art. 40"].type is None


async def test_scores_are_clamped(
    searcher: VectorSearcher,
    mock_store: AsyncMock,
) -> None:
    """Test inner-product rounding above 1.0 is clamped."""
    mock_store.nearest_neighbors.return_value = [VectorHit(article_id="Art. 1", score=1.0000002)]
    results = await searcher.search("q", limit=8, version=CodeVersion.V2025)
    assert results[0].score == 1.0


# --- Cache Tests ---


async def test_second_identical_search_hits_cache(
    searcher: VectorSearcher,
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
) -> None:
    """Test a repeated search calls neither the embedder nor the store."""
    first = await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    second = await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)

    assert first == second
    mock_embedder.embed.assert_awaited_once()
    mock_store.nearest_neighbors.assert_awaited_once()
    assert searcher.metrics.cache_hits == 1
    assert searcher.metrics.embedding_cache_hits == 1


async def test_cache_writes_use_configured_ttls(
    searcher: VectorSearcher,
    cache: DictCache,
) -> None:
    """Test result entries expire after an hour and embeddings after a week."""
    await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    await searcher.flush()

    embedding_key = VectorSearcher.embedding_cache_key("taux IS")
    result_key = searcher.result_cache_key(VECTOR, 8, CodeVersion.V2026)
    assert cache.ttls[embedding_key] == 604800
    assert cache.ttls[result_key] == 3600
    assert len(cache.data[result_key]) == 3


def test_result_cache_key_components(searcher: VectorSearcher) -> None:
    """Test the key covers the vector prefix, the limit and the version only."""
    base = searcher.result_cache_key(VECTOR, 8, CodeVersion.V2026)

    assert base != searcher.result_cache_key(VECTOR, 5, CodeVersion.V2026)
    assert base != searcher.result_cache_key(VECTOR, 8, CodeVersion.V2025)

    changed_prefix = [9.0] + VECTOR[1:]
    assert base != searcher.result_cache_key(changed_prefix, 8, CodeVersion.V2026)

    changed_tail = VECTOR[:10] + [9.0, 9.0]
    assert base == searcher.result_cache_key(changed_tail, 8, CodeVersion.V2026)


async def test_different_versions_do_not_share_results(
    searcher: VectorSearcher,
    mock_store: AsyncMock,
) -> None:
    """Test each edition gets its own cached results."""
    await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    await searcher.search("taux IS", limit=8, version=CodeVersion.V2025)
    assert mock_store.nearest_neighbors.await_count == 2


async def test_cache_write_failure_is_counted(
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
    catalog: ArticleCatalog,
) -> None:
    """Test a failing cache write is surfaced through metrics, not raised."""
    failing_cache = AsyncMock()
    failing_cache.get.return_value = None
    failing_cache.set.side_effect = ProviderUnavailableError("cache", "down")

    searcher = VectorSearcher(mock_embedder, mock_store, failing_cache, catalog)
    results = await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    await searcher.flush()

    assert len(results) == 3
    assert searcher.metrics.cache_write_failures == 2


async def test_cache_read_failure_degrades_to_miss(
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
    catalog: ArticleCatalog,
) -> None:
    """Test an unreadable cache behaves like a miss."""
    failing_cache = AsyncMock()
    failing_cache.get.side_effect = ProviderUnavailableError("cache", "down")

    searcher = VectorSearcher(mock_embedder, mock_store, failing_cache, catalog)
    results = await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    await searcher.flush()

    assert len(results) == 3
    assert searcher.metrics.cache_read_failures == 2
    mock_store.nearest_neighbors.assert_awaited_once()


# --- Degradation Tests ---


async def test_embedding_failure_returns_empty(
    searcher: VectorSearcher,
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
) -> None:
    """Test an embedding outage yields no results and is counted."""
    mock_embedder.embed.side_effect = ProviderUnavailableError("embedding", "down")

    assert await searcher.search("taux IS", limit=8, version=CodeVersion.V2026) == []
    assert searcher.metrics.embedding_failures == 1
    mock_store.nearest_neighbors.assert_not_awaited()


async def test_store_failure_returns_empty(
    searcher: VectorSearcher,
    mock_store: AsyncMock,
) -> None:
    """Test a vector store outage yields no results and is counted."""
    mock_store.nearest_neighbors.side_effect = ProviderUnavailableError("faiss", "down")

    assert await searcher.search("taux IS", limit=8, version=CodeVersion.V2026) == []
    assert searcher.metrics.store_failures == 1


async def test_unexpected_embedding_error_returns_empty(
    searcher: VectorSearcher,
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
) -> None:
    """Test any embedder exception degrades to no results."""
    mock_embedder.embed.side_effect = ConnectionError("embedding service down")

    assert await searcher.search("taux IS", limit=5, version=CodeVersion.V2026) == []
    assert searcher.metrics.embedding_failures == 1
    mock_store.nearest_neighbors.assert_not_awaited()


async def test_unexpected_store_error_returns_empty(
    searcher: VectorSearcher,
    mock_store: AsyncMock,
) -> None:
    """Test any vector store exception degrades to no results."""
    mock_store.nearest_neighbors.side_effect = OSError("connection reset")

    assert await searcher.search("taux IS", limit=5, version=CodeVersion.V2026) == []
    assert searcher.metrics.store_failures == 1


async def test_slow_search_is_counted(
    mock_embedder: AsyncMock,
    mock_store: AsyncMock,
    cache: DictCache,
    catalog: ArticleCatalog,
) -> None:
    """Test store calls above the latency threshold are flagged."""
    searcher = VectorSearcher(mock_embedder, mock_store, cache, catalog, slow_search_ms=-1.0)
    await searcher.search("taux IS", limit=8, version=CodeVersion.V2026)
    assert searcher.metrics.slow_searches == 1
