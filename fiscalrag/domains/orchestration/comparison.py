"""
Comparison Synthesizer - Answer a question under both editions and contrast them.

Both edition pipelines run concurrently and both must succeed: a comparison
built from one edition alone would be misleading, so a failing branch cancels
the other and raises ComparisonPartialFailure.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from fiscalrag.config.errors import ComparisonPartialFailure
from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.answering import Answer, ChatMessage, CompletionProvider

from .contracts import EditionPipeline
from .models import ComparisonResult, ComparisonSection, Impact

logger = logging.getLogger(__name__)

__all__ = ["ComparisonSynthesizer", "parse_comparison", "render_comparison_table"]

IMPACT_MARKERS = {
    Impact.FAVORABLE: "✅",
    Impact.DEFAVORABLE: "⚠️",
    Impact.NEUTRE: "➖",
}


def render_comparison_table(sections: list[ComparisonSection]) -> str:
    """Markdown table with one row per compared aspect."""
    if not sections:
        return ""

    lines = [
        "| Aspect | CGI 2025 | CGI 2026 | Impact |",
        "|--------|----------|----------|--------|",
    ]
    for section in sections:
        lines.append(
            f"| {section.aspect} | {section.cgi2025} | {section.cgi2026} "
            f"| {IMPACT_MARKERS[section.impact]} |"
        )
    return "\n".join(lines) + "\n"


def _extract_json(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            return None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


def parse_comparison(text: str) -> tuple[str, list[ComparisonSection], str]:
    """
    Read a synthesized comparison.

    Structured JSON output (summary, sections, recommendation) is used when the
    model returns it; anything else is kept as the summary prose.

    Returns:
        (summary, sections, recommendation)
    """
    data = _extract_json(text)
    if data is None:
        return text.strip(), [], ""

    sections: list[ComparisonSection] = []
    for item in data.get("sections") or []:
        try:
            sections.append(ComparisonSection.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed comparison section: %s", e.errors()[0]["msg"])

    summary = str(data.get("summary") or "").strip() or text.strip()
    return summary, sections, str(data.get("recommendation") or "").strip()


class ComparisonSynthesizer:
    """
    Run both edition pipelines and synthesize a comparative answer.

    Example:
        >>> synthesizer = ComparisonSynthesizer(llm)
        >>> result = await synthesizer.compare("Différence IRPP / ITS ?", pipelines)
        >>> print(result.table)
    """

    def __init__(self, completion: CompletionProvider) -> None:
        self._completion = completion

    async def compare(
        self,
        query: str,
        pipelines: dict[CodeVersion, EditionPipeline],
        history: list[ChatMessage] | None = None,
    ) -> ComparisonResult:
        """
        Answer under both editions, then contrast the two answers.

        Args:
            query: The user's question
            pipelines: One pipeline per edition
            history: Prior conversation turns

        Returns:
            ComparisonResult with both answers and the citations of both

        Raises:
            ComparisonPartialFailure: If either edition fails
        """
        answers = await self._answer_both(query, pipelines, history)
        legacy, current = answers[CodeVersion.V2025], answers[CodeVersion.V2026]

        raw = await self._completion.synthesize(query, legacy.text, current.text)
        summary, sections, recommendation = parse_comparison(raw)

        logger.info(
            "Comparison synthesized: %d sections, sources=%d+%d",
            len(sections),
            len(legacy.sources),
            len(current.sources),
        )

        return ComparisonResult(
            summary=summary,
            sections=sections,
            recommendation=recommendation,
            table=render_comparison_table(sections),
            answers={version: answer.text for version, answer in answers.items()},
            sources=legacy.sources + current.sources,
        )

    async def _answer_both(
        self,
        query: str,
        pipelines: dict[CodeVersion, EditionPipeline],
        history: list[ChatMessage] | None,
    ) -> dict[CodeVersion, Answer]:
        missing = [v.value for v in CodeVersion if v not in pipelines]
        if missing:
            raise ComparisonPartialFailure(missing, "No pipeline configured for comparison")

        tasks = {
            version: asyncio.create_task(pipelines[version].answer(query, history))
            for version in CodeVersion
        }
        try:
            results = await asyncio.gather(*tasks.values())
        except Exception as e:
            failed = [
                version.value
                for version, task in tasks.items()
                if task.done() and not task.cancelled() and task.exception() is not None
            ]
            for task in tasks.values():
                if not task.done():
                    task.cancel()
            logger.error("Comparison failed for %s: %s", failed, e)
            raise ComparisonPartialFailure(
                failed,
                f"Comparison requires both editions; failed: {', '.join(failed)}",
                {"cause": str(e)},
            ) from e

        return dict(zip(tasks, results))
