"""
Answer Generator - Grounded answers from ranked evidence.

Features:
- Evidence context from the top ranked articles (header, key passages, excerpt)
- Numeric-extraction instruction for rate/amount/duration questions
- Plain-text post-processing (no Markdown, no emoji)

Usage:
    generator = AnswerGenerator(llm, system_prompt_for(CodeVersion.V2026))
    answer = await generator.generate(query, response.results, history)
"""

from __future__ import annotations

import logging
import time

from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.search import SearchResult

from .contracts import CompletionProvider
from .models import Answer, ChatMessage, Source
from .passages import (
    extract_key_passages,
    is_numeric_question,
    strip_markdown_and_emojis,
    truncate_excerpt,
)
from .prompts import NUMERIC_INSTRUCTION

logger = logging.getLogger(__name__)

__all__ = ["AnswerGenerator", "build_context", "to_source"]

CONTEXT_ARTICLES = 6
EXCERPT_CHARS = 1000
NO_EVIDENCE = "Aucun article trouvé."


def to_source(result: SearchResult, version: CodeVersion) -> Source:
    """Citation for one ranked result."""
    article = result.article
    body = article.body if article else ""
    return Source(
        numero=result.article_id,
        version=article.version if article else version,
        title=article.title if article else "",
        excerpt=truncate_excerpt(body, EXCERPT_CHARS),
        key_passages=extract_key_passages(body),
        score=result.score,
        match_kind=result.match_kind,
    )


def build_context(sources: list[Source]) -> str:
    """Render sources as the evidence block appended to the system prompt."""
    blocks = []
    for source in sources[:CONTEXT_ARTICLES]:
        header = f"{source.numero} (CGI {source.version.value})"
        if source.title:
            header += f" - {source.title}"

        passages = ""
        if source.key_passages:
            lines = "\n".join(f"- {p} ;" for p in source.key_passages)
            passages = f"\nInformations cles :\n{lines}\n"

        blocks.append(f"---\n{header}\n{passages}\nTexte :\n{source.excerpt}")
    return "\n\n".join(blocks)


class AnswerGenerator:
    """
    Completion-backed answer generation for one edition.

    Example:
        >>> generator = AnswerGenerator(llm, system_prompt_for(CodeVersion.V2026))
        >>> answer = await generator.generate("Quel est le taux de l'IBA ?", results)
        >>> answer.sources[0].numero
        'Art. 95'
    """

    def __init__(
        self,
        completion: CompletionProvider,
        system_prompt: str,
        version: CodeVersion,
    ) -> None:
        """
        Initialize generator.

        Args:
            completion: Completion provider (Gemini or Ollama)
            system_prompt: Edition-specific instructions
            version: Edition the answers are about
        """
        self._completion = completion
        self._system_prompt = system_prompt
        self.version = version

    async def generate(
        self,
        query: str,
        results: list[SearchResult],
        history: list[ChatMessage] | None = None,
    ) -> Answer:
        """
        Generate an answer grounded in ranked results.

        Args:
            query: The user's question
            results: Ranked evidence for this edition
            history: Prior conversation turns

        Returns:
            Answer with its sources

        Raises:
            ProviderUnavailableError: If the completion provider is down
            LLMError: If the completion provider fails
        """
        started = time.perf_counter()
        sources = [to_source(r, self.version) for r in results]
        numeric = is_numeric_question(query)

        system_prompt = self._system_prompt
        if numeric:
            system_prompt += NUMERIC_INSTRUCTION
        system_prompt += f"\n\nCONTEXTE CGI:\n{build_context(sources) or NO_EVIDENCE}"

        raw = await self._completion.complete(system_prompt, list(history or []), query)
        text = strip_markdown_and_emojis(raw)

        logger.info(
            "Answer generated: version=%s, sources=%d, numeric=%s (%.0fms)",
            self.version.value,
            len(sources),
            numeric,
            (time.perf_counter() - started) * 1000,
        )

        return Answer(
            text=text,
            version=self.version,
            sources=sources,
            confidence=0.8 if sources else 0.5,
            numeric=numeric,
        )
