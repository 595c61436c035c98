"""
Hybrid Search Engine - Keyword tables, routing rules and vector search for one edition.

Features:
- Keyword/synonym matcher and routing rules (local, synchronous)
- Cached vector similarity search (async, I/O-bound)
- Deterministic fusion with a pinned routing override
- Keyword hits resolved against the store concurrently
"""

from __future__ import annotations

import asyncio
import logging

from fiscalrag.config.errors import SearchError
from fiscalrag.config.rulesets import CodeVersion

from .catalog import ArticleCatalog
from .contracts import VectorStore
from .fusion import fuse_results
from .keywords import KeywordMatcher
from .models import Article, KeywordMatch, MatchKind, SearchQuery, SearchResponse, SearchResult
from .routing import RuleRouter
from .vector_search import VectorSearcher

logger = logging.getLogger(__name__)

__all__ = ["HybridSearchEngine"]


class HybridSearchEngine:
    """
    Hybrid search over one edition's partition.

    Example:
        >>> engine = HybridSearchEngine(CodeVersion.V2026, matcher, router, searcher, store, catalog)
        >>> response = await engine.search(SearchQuery(query="base forfaitaire 22%"))
        >>> response.results[0].article_id
        'Art. 92A'
    """

    def __init__(
        self,
        version: CodeVersion,
        matcher: KeywordMatcher,
        router: RuleRouter,
        vector_searcher: VectorSearcher,
        store: VectorStore,
        catalog: ArticleCatalog,
    ) -> None:
        """
        Initialize hybrid search engine.

        Args:
            version: Edition this engine searches
            matcher: Keyword matcher built from this edition's rulesets
            router: Router built from this edition's routing table
            vector_searcher: Cached similarity searcher (may be shared across editions)
            store: Vector store used to resolve keyword and override articles
            catalog: Article metadata lookup
        """
        self.version = version
        self._matcher = matcher
        self._router = router
        self._vectors = vector_searcher
        self._store = store
        self._catalog = catalog

    async def search(self, query: SearchQuery) -> SearchResponse:
        """
        Execute hybrid search.

        Args:
            query: Search query parameters

        Returns:
            Ranked evidence for this edition

        Raises:
            SearchError: If the query targets another edition
        """
        if query.version is not None and query.version != self.version:
            raise SearchError(
                f"Engine for {self.version.value} cannot search {query.version.value}",
                {"version": query.version.value},
            )

        matches = self._matcher.match(query.query)
        override = self._router.route(query.query)

        if override and matches and matches[0].article_id != override.article_id:
            logger.info(
                "Routing override %s (%s) supersedes keyword pick %s",
                override.article_id,
                override.rule_id,
                matches[0].article_id,
            )

        vector_results, keyword_results = await asyncio.gather(
            self._vectors.search(query.query, query.limit, self.version),
            self._keyword_results(matches),
        )

        override_article: Article | None = None
        if override:
            known = {r.article_id for r in keyword_results} | {r.article_id for r in vector_results}
            if override.article_id not in known:
                override_article = await self._resolve(override.article_id)

        results = fuse_results(
            keyword_results,
            vector_results,
            query.limit,
            override=override,
            override_article=override_article,
        )

        logger.info(
            "Hybrid search: query='%s' -> %d results (version=%s, keyword=%d, vector=%d)",
            query.query[:50],
            len(results),
            self.version.value,
            len(keyword_results),
            len(vector_results),
        )

        return SearchResponse(
            version=self.version,
            query=query.query,
            results=results,
            override=override,
            keyword_count=len(keyword_results),
            vector_count=len(vector_results),
        )

    async def _keyword_results(self, matches: list[KeywordMatch]) -> list[SearchResult]:
        articles = await asyncio.gather(*(self._resolve(m.article_id) for m in matches))

        results = []
        for match, article in zip(matches, articles):
            metadata = self._catalog.lookup(match.article_id, self.version)
            if metadata is not None:
                priority, article_type = metadata.priority, metadata.type
            elif article is not None:
                priority, article_type = article.priority, article.type
            else:
                priority, article_type = 2, None

            results.append(
                SearchResult(
                    article_id=match.article_id,
                    score=match.weight,
                    match_kind=MatchKind.KEYWORD,
                    priority=priority,
                    type=article_type,
                    article=article,
                )
            )
        return results

    async def _resolve(self, article_id: str) -> Article | None:
        try:
            return await self._store.get_article(article_id, self.version)
        except Exception as e:
            logger.warning("Could not resolve %s (%s): %s", article_id, self.version.value, e)
            return None
