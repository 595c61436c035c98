"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.answering import Answer, ChatMessage
from fiscalrag.domains.search import SearchResponse

from .models import Intent, OrchestratorResponse, RoutingDecision


@runtime_checkable
class IntentClassifier(Protocol):
    """Contract for edition intent detection."""

    def analyze(self, query: str) -> Intent:
        """
        Detect which edition(s) a question is about.

        Args:
            query: The user's question

        Returns:
            Intent with target edition, comparison flag and matched cues
        """
        ...


@runtime_checkable
class EditionPipeline(Protocol):
    """Contract for a search + answer pipeline bound to one edition."""

    version: CodeVersion

    async def search(self, query: str, limit: int | None = None) -> SearchResponse:
        """Ranked evidence for this edition."""
        ...

    async def answer(
        self,
        query: str,
        history: list[ChatMessage] | None = None,
    ) -> Answer:
        """Search, then generate a grounded answer."""
        ...


@runtime_checkable
class ResponseCache(Protocol):
    """Contract for the shared keyed cache."""

    async def get(self, key: str) -> Any | None:
        """Get a cached value."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Cache a value."""
        ...

    def stats(self) -> dict[str, Any]:
        """Size and hit statistics."""
        ...


@runtime_checkable
class QueryRouter(Protocol):
    """Contract for query orchestration."""

    def route(self, query: str) -> RoutingDecision:
        """Decide which edition(s) to search."""
        ...

    async def process(
        self,
        query: str,
        history: list[ChatMessage] | None = None,
    ) -> OrchestratorResponse:
        """Answer a question end to end."""
        ...
