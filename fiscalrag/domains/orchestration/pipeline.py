"""
Version Pipeline - Search and answer generation bound to one edition.

One pipeline per edition; the orchestrator runs one of them, or both
concurrently for a comparison.
"""

from __future__ import annotations

import logging
import time

from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.answering import Answer, AnswerGenerator, ChatMessage
from fiscalrag.domains.search import SearchEngine, SearchQuery, SearchResponse

logger = logging.getLogger(__name__)

__all__ = ["VersionPipeline"]


class VersionPipeline:
    """
    Hybrid search followed by grounded generation for one edition.

    Example:
        >>> pipeline = VersionPipeline(CodeVersion.V2026, engine, generator)
        >>> answer = await pipeline.answer("Quel est le taux de l'IBA ?")
    """

    def __init__(
        self,
        version: CodeVersion,
        engine: SearchEngine,
        generator: AnswerGenerator,
        default_limit: int = 8,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            version: Edition served by this pipeline
            engine: Hybrid search engine for that edition
            generator: Answer generator for that edition
            default_limit: Number of results searched when none is given
        """
        self.version = version
        self._engine = engine
        self._generator = generator
        self._default_limit = default_limit

    async def search(self, query: str, limit: int | None = None) -> SearchResponse:
        """Ranked evidence for this edition."""
        return await self._engine.search(
            SearchQuery(query=query, limit=limit or self._default_limit, version=self.version)
        )

    async def answer(
        self,
        query: str,
        history: list[ChatMessage] | None = None,
    ) -> Answer:
        """
        Search, then generate a grounded answer.

        Raises:
            ProviderUnavailableError: If the completion provider is down
            LLMError: If generation fails
        """
        started = time.perf_counter()
        response = await self.search(query)
        answer = await self._generator.generate(query, response.results, history)

        logger.info(
            "Pipeline %s: %d sources, override=%s (%.0fms)",
            self.version.value,
            len(response.results),
            response.override.article_id if response.override else None,
            (time.perf_counter() - started) * 1000,
        )
        return answer
