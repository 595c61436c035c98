"""
Query Orchestrator - Route questions to the right edition and answer them.

Routing:
- Exclusive theme or explicit cue → that edition's pipeline
- Comparison → both pipelines concurrently, then synthesis
- No signal → the edition in force today (VersionFallbackPolicy)
"""

from __future__ import annotations

import asyncio
import logging
import time

from fiscalrag.config.errors import SearchError
from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.answering import ChatMessage
from fiscalrag.domains.search import SearchResponse

from .comparison import ComparisonSynthesizer
from .contracts import EditionPipeline, IntentClassifier
from .intent import VersionFallbackPolicy
from .models import OrchestratorResponse, RoutingDecision

logger = logging.getLogger(__name__)

__all__ = ["QueryOrchestrator"]


class QueryOrchestrator:
    """
    Edition-aware question answering.

    Constructed explicitly (see ``build_orchestrator`` in the API dependency
    module); tests build it from fakes.

    Example:
        >>> orchestrator = QueryOrchestrator(analyzer, pipelines, synthesizer, fallback)
        >>> response = await orchestrator.process("Quel est le barème de l'ITS ?")
        >>> response.versions
        [<CodeVersion.V2026: '2026'>]
    """

    def __init__(
        self,
        intent_analyzer: IntentClassifier,
        pipelines: dict[CodeVersion, EditionPipeline],
        comparison: ComparisonSynthesizer,
        fallback: VersionFallbackPolicy | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            intent_analyzer: Edition intent detection
            pipelines: One search + answer pipeline per edition
            comparison: Synthesizer for cross-edition questions
            fallback: Edition used when intent is inconclusive
        """
        self._intent = intent_analyzer
        self._pipelines = pipelines
        self._comparison = comparison
        self._fallback = fallback or VersionFallbackPolicy()

    def route(self, query: str) -> RoutingDecision:
        """Decide which edition(s) a question goes to."""
        intent = self._intent.analyze(query)

        if intent.is_comparison:
            decision = RoutingDecision(
                intent=intent,
                versions=list(CodeVersion),
                reasoning="comparison requested",
            )
        elif intent.target_version is not None:
            decision = RoutingDecision(
                intent=intent,
                versions=[intent.target_version],
                reasoning=f"matched {', '.join(intent.matched_cues)}",
            )
        else:
            version = self._fallback.resolve()
            decision = RoutingDecision(
                intent=intent,
                versions=[version],
                fallback_applied=True,
                reasoning=f"no edition signal, using edition in force ({version.value})",
            )

        logger.info(
            "Routed query '%s': versions=%s, fallback=%s",
            query[:50],
            [v.value for v in decision.versions],
            decision.fallback_applied,
        )
        return decision

    async def search(
        self,
        query: str,
        limit: int | None = None,
        version: CodeVersion | None = None,
    ) -> list[SearchResponse]:
        """
        Ranked evidence without answer generation.

        Args:
            query: The user's question
            limit: Results per edition
            version: Force one edition instead of routing

        Returns:
            One SearchResponse per searched edition
        """
        versions = [version] if version is not None else self.route(query).versions
        pipelines = [self._pipeline(v) for v in versions]
        return list(await asyncio.gather(*(p.search(query, limit) for p in pipelines)))

    async def process(
        self,
        query: str,
        history: list[ChatMessage] | None = None,
    ) -> OrchestratorResponse:
        """
        Answer a question end to end.

        Args:
            query: The user's question
            history: Prior conversation turns

        Returns:
            OrchestratorResponse with answer, sources and routing details

        Raises:
            ComparisonPartialFailure: If a comparison loses one edition
            ProviderUnavailableError: If the completion provider is down
            LLMError: If generation fails
        """
        started = time.perf_counter()
        decision = self.route(query)

        if decision.is_comparison:
            result = await self._comparison.compare(query, self._pipelines, history)
            answer_text = "\n\n".join(
                p for p in (result.summary, result.table, result.recommendation) if p
            )
            response = OrchestratorResponse(
                answer=answer_text,
                sources=result.sources,
                intent=decision.intent,
                versions=decision.versions,
                is_comparison=True,
                comparison=result,
            )
        else:
            answer = await self._pipeline(decision.versions[0]).answer(query, history)
            response = OrchestratorResponse(
                answer=answer.text,
                sources=answer.sources,
                intent=decision.intent,
                versions=decision.versions,
            )

        response.processing_time_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Processed query in %.0fms (versions=%s, sources=%d)",
            response.processing_time_ms,
            [v.value for v in response.versions],
            len(response.sources),
        )
        return response

    def _pipeline(self, version: CodeVersion) -> EditionPipeline:
        pipeline = self._pipelines.get(version)
        if pipeline is None:
            raise SearchError(
                f"No pipeline configured for edition {version.value}",
                {"version": version.value},
            )
        return pipeline
