"""
FAISS Vector Store - One FAISS partition per edition of the tax code.

Layout on disk::

    <index_dir>/2025/faiss_index.bin
    <index_dir>/2025/metadata.json
    <index_dir>/2026/faiss_index.bin
    <index_dir>/2026/metadata.json

Each metadata entry is an Article payload. Editions never share a partition,
so a 2025 search can only return 2025 provisions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from pydantic import ValidationError

from fiscalrag.config.errors import ProviderUnavailableError, SearchError
from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.search import Article, VectorHit, normalize_article_id

from .index import INDEX_FILE, FAISSIndex

logger = logging.getLogger(__name__)

__all__ = ["FAISSVectorStore"]

PROVIDER = "faiss"


class FAISSVectorStore:
    """
    Version-partitioned vector store backed by FAISS.

    Example:
        >>> store = FAISSVectorStore("data/indices", dimension=384)
        >>> await store.load()
        >>> hits = await store.nearest_neighbors(vector, 8, CodeVersion.V2026, 0.7)
    """

    def __init__(self, index_dir: str | Path, dimension: int = 384) -> None:
        """
        Initialize store.

        Args:
            index_dir: Directory holding one sub-directory per edition
            dimension: Embedding dimension
        """
        self.index_dir = Path(index_dir)
        self.dimension = dimension
        self._partitions: dict[CodeVersion, FAISSIndex] = {}
        self._articles: dict[CodeVersion, dict[str, Article]] = {}

    async def load(self) -> dict[str, int]:
        """
        Load every edition partition found on disk.

        Returns:
            Vector count per loaded edition
        """
        loaded: dict[str, int] = {}
        for version in CodeVersion:
            path = self.index_dir / version.value
            if not (path / INDEX_FILE).exists():
                logger.warning("No FAISS partition for %s at %s", version.value, path)
                continue

            index = FAISSIndex(dimension=self.dimension)
            try:
                await index.load(path)
            except (OSError, RuntimeError, KeyError, ValueError) as e:
                raise ProviderUnavailableError(
                    PROVIDER,
                    f"Cannot load partition {version.value}: {e}",
                    {"path": str(path)},
                ) from e
            self._register(version, index)
            loaded[version.value] = index.size
        return loaded

    async def add_articles(
        self,
        version: CodeVersion,
        articles: list[Article],
        vectors: np.ndarray,
    ) -> None:
        """Add embedded articles to an edition's partition."""
        index = self._partitions.get(version)
        if index is None:
            index = FAISSIndex(dimension=self.dimension)
            await index.initialize()

        await index.add_vectors(vectors, [a.model_dump(mode="json") for a in articles])
        self._register(version, index)

    async def save(self) -> None:
        """Persist every partition under index_dir."""
        for version, index in self._partitions.items():
            await index.save(self.index_dir / version.value)

    async def nearest_neighbors(
        self,
        vector: list[float],
        k: int,
        version: CodeVersion,
        score_threshold: float,
    ) -> list[VectorHit]:
        """
        Nearest articles of one edition.

        Raises:
            ProviderUnavailableError: If the partition is missing or FAISS fails
        """
        index = self._partition(version)
        try:
            raw = await index.search(np.asarray(vector, dtype="float32"), k, score_threshold)
        except (RuntimeError, ValueError, AssertionError) as e:
            raise ProviderUnavailableError(
                PROVIDER, f"FAISS search failed: {e}", {"version": version.value}
            ) from e

        hits = []
        for item in raw:
            payload: dict[str, Any] = item["metadata"]
            article = self._to_article(payload, version)
            if article is None:
                continue
            hits.append(
                VectorHit(
                    article_id=article.numero,
                    score=item["score"],
                    article=article,
                    payload=payload,
                )
            )
        return hits

    async def get_article(self, article_id: str, version: CodeVersion) -> Article | None:
        """Fetch one article of one edition by id (any spelling)."""
        self._partition(version)
        return self._articles[version].get(normalize_article_id(article_id))

    def stats(self) -> dict[str, int]:
        return {version.value: index.size for version, index in self._partitions.items()}

    def _partition(self, version: CodeVersion) -> FAISSIndex:
        index = self._partitions.get(version)
        if index is None:
            raise ProviderUnavailableError(
                PROVIDER,
                f"No vector partition loaded for edition {version.value}",
                {"version": version.value},
            )
        return index

    def _register(self, version: CodeVersion, index: FAISSIndex) -> None:
        self._partitions[version] = index
        articles: dict[str, Article] = {}
        for payload in index.metadata:
            article = self._to_article(payload, version)
            if article is not None:
                articles.setdefault(article.numero, article)
        self._articles[version] = articles

    @staticmethod
    def _to_article(payload: dict[str, Any], version: CodeVersion) -> Article | None:
        try:
            data = {**payload, "version": payload.get("version", version.value)}
            data["numero"] = normalize_article_id(str(payload.get("numero", "")))
            return Article.model_validate(data)
        except (ValidationError, SearchError) as e:
            logger.debug("Unreadable article payload in %s: %s", version.value, e)
            return None
