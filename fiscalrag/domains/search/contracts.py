"""
Search Contracts - Interfaces for search domain.

Adapters (sentence-transformers, FAISS, in-process cache) implement these;
the domain never imports an adapter directly.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from fiscalrag.config.rulesets import CodeVersion

from .models import Article, SearchQuery, SearchResponse, VectorHit


@runtime_checkable
class Embedder(Protocol):
    """Contract for text embedding providers."""

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    """Contract for version-partitioned vector stores."""

    async def nearest_neighbors(
        self,
        vector: list[float],
        k: int,
        version: CodeVersion,
        score_threshold: float,
    ) -> list[VectorHit]:
        """Return at most k hits scoring at least score_threshold, best first."""
        ...

    async def get_article(self, article_id: str, version: CodeVersion) -> Article | None:
        """Fetch one article of one edition by id."""
        ...


@runtime_checkable
class SearchCache(Protocol):
    """Contract for the shared keyed cache."""

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss/expiry."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value (last writer wins)."""
        ...


@runtime_checkable
class SearchEngine(Protocol):
    """Contract for single-edition search implementations."""

    async def search(self, query: SearchQuery) -> SearchResponse:
        """Execute search and return ranked evidence."""
        ...
