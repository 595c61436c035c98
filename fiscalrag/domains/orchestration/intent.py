"""
Intent Analyzer - Decide which edition of the tax code a question is about.

Decision order:
1. Exclusive themes: a tax that exists in only one edition pins that edition
   (IRPP is 2025-only, ITS and IBA are 2026-only). Themes from both editions
   make the question a comparison.
2. Explicit cues ("ancien régime", "après la réforme", "2026", ...) are scored
   per edition; comparison cues or both year labels flag a comparison.
3. Strictly higher cue score wins; a tie leaves the target open so the
   fallback policy decides.

Matching is accent/case-insensitive and word-boundary aware, so "its" never
fires inside "droits".
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from pydantic import BaseModel, Field

from fiscalrag.config.rulesets import CodeVersion, FiscalDomain, IntentVocabulary
from fiscalrag.config.settings import Settings
from fiscalrag.domains.search.normalize import contains_term, normalize_text

from .models import Intent

logger = logging.getLogger(__name__)

__all__ = ["ConfidencePolicy", "IntentAnalyzer", "VersionFallbackPolicy"]


class ConfidencePolicy(BaseModel):
    """Bounded confidence, monotonic in the number of matched cues."""

    base: float = Field(default=0.5, ge=0.0, le=1.0)
    step: float = Field(default=0.1, ge=0.0)
    cap: float = Field(default=0.9, ge=0.0, le=1.0)
    exclusive: float = Field(default=0.95, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfidencePolicy:
        return cls(
            base=settings.intent_confidence_base,
            step=settings.intent_confidence_step,
            cap=settings.intent_confidence_cap,
            exclusive=settings.intent_exclusive_confidence,
        )

    def score(self, cue_count: int) -> float:
        return min(self.cap, self.base + self.step * cue_count)


class VersionFallbackPolicy:
    """
    Pick an edition when intent analysis leaves the target open.

    Before the cutoff date the 2025 edition is in force, afterwards 2026.
    """

    def __init__(
        self,
        cutoff: date = date(2026, 1, 1),
        today: Callable[[], date] = date.today,
    ) -> None:
        self.cutoff = cutoff
        self._today = today

    def resolve(self) -> CodeVersion:
        return CodeVersion.V2025 if self._today() < self.cutoff else CodeVersion.V2026


def _normalize_all(phrases: list[str]) -> list[tuple[str, str]]:
    return [(p, normalize_text(p)) for p in phrases if normalize_text(p)]


class IntentAnalyzer:
    """
    Rule-based edition intent detection.

    Example:
        >>> analyzer = IntentAnalyzer(catalog.intent)
        >>> analyzer.analyze("Quel est le barème de l'IRPP ?").target_version
        <CodeVersion.V2025: '2025'>
        >>> analyzer.analyze("Différence entre 2025 et 2026 pour l'IS ?").is_comparison
        True
    """

    def __init__(
        self,
        vocabulary: IntentVocabulary,
        confidence_policy: ConfidencePolicy | None = None,
    ) -> None:
        """
        Initialize analyzer.

        Args:
            vocabulary: Phrase lists loaded from the rule tables
            confidence_policy: Confidence parameters (defaults 0.5 / 0.1 / 0.9 / 0.95)
        """
        self._policy = confidence_policy or ConfidencePolicy()
        self._exclusive = {
            version: _normalize_all(vocabulary.exclusive_themes[version]) for version in CodeVersion
        }
        self._cues = {
            version: _normalize_all(vocabulary.version_cues[version]) for version in CodeVersion
        }
        self._comparison = _normalize_all(vocabulary.comparison_cues)
        self._labels = {
            version: normalize_text(vocabulary.version_labels[version]) for version in CodeVersion
        }
        self._domains = {
            domain: _normalize_all(phrases) for domain, phrases in vocabulary.domains.items()
        }

    def analyze(self, query: str) -> Intent:
        """
        Detect the edition(s) a question is about.

        Args:
            query: The user's question

        Returns:
            Intent (target_version is None for comparisons and ties)
        """
        text = normalize_text(query)
        domain = self._detect_domain(text)

        exclusive = {
            version: [raw for raw, phrase in self._exclusive[version] if contains_term(text, phrase)]
            for version in CodeVersion
        }
        pinned = [version for version in CodeVersion if exclusive[version]]

        if len(pinned) == 1:
            version = pinned[0]
            phrase = exclusive[version][0]
            logger.info("Exclusive theme '%s' pins edition %s", phrase, version.value)
            return Intent(
                target_version=version,
                is_comparison=False,
                domain=domain,
                confidence=self._policy.exclusive,
                matched_cues=[f"exclusive:{version.value}:{phrase}"],
            )

        matched: list[str] = []
        scores = dict.fromkeys(CodeVersion, 0)
        is_comparison = len(pinned) == 2

        if is_comparison:
            for version in CodeVersion:
                scores[version] += len(exclusive[version])
                matched.extend(f"exclusive:{version.value}:{p}" for p in exclusive[version])

        for version in CodeVersion:
            for raw, phrase in self._cues[version]:
                if contains_term(text, phrase):
                    scores[version] += 1
                    matched.append(raw)

        for raw, phrase in self._comparison:
            if contains_term(text, phrase):
                is_comparison = True
                matched.append(raw)
                break

        if all(contains_term(text, label) for label in self._labels.values()):
            is_comparison = True

        target: CodeVersion | None = None
        if not is_comparison:
            if scores[CodeVersion.V2025] > scores[CodeVersion.V2026]:
                target = CodeVersion.V2025
            elif scores[CodeVersion.V2026] > scores[CodeVersion.V2025]:
                target = CodeVersion.V2026

        intent = Intent(
            target_version=target,
            is_comparison=is_comparison,
            domain=domain,
            confidence=self._policy.score(len(matched)),
            matched_cues=matched,
        )

        logger.info(
            "Intent: query='%s' -> version=%s, comparison=%s, domain=%s",
            query[:50],
            target.value if target else None,
            is_comparison,
            domain.value if domain else None,
        )
        return intent

    def _detect_domain(self, text: str) -> FiscalDomain | None:
        for domain, phrases in self._domains.items():
            if any(contains_term(text, phrase) for _, phrase in phrases):
                return domain
        return None
