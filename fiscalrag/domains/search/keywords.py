"""
Keyword Matcher - Maps query phrases to article ids via static tables.

Features:
- Union of every domain ruleset of one edition, in declaration order
- Synonyms: an alternative phrasing makes its canonical term count as present
- First-seen order is stable; the first id of each entry is its primary source
"""

from __future__ import annotations

import logging

from fiscalrag.config.rulesets import DomainRuleset

from .models import KeywordMatch
from .normalize import contains_phrase, normalize_article_id, normalize_text

logger = logging.getLogger(__name__)

__all__ = ["KeywordMatcher", "DIRECT_WEIGHT", "SYNONYM_WEIGHT"]

DIRECT_WEIGHT = 1.0
SYNONYM_WEIGHT = 0.9


class KeywordMatcher:
    """
    Pure keyword/synonym lookup over one edition's rulesets.

    Example:
        >>> matcher = KeywordMatcher(catalog.rulesets_for(CodeVersion.V2026))
        >>> matcher.match("Quel est le taux IS ?")
        [KeywordMatch(article_id='Art. 86A', weight=1.0)]
    """

    def __init__(self, rulesets: list[DomainRuleset], cap: int = 5) -> None:
        """
        Initialize matcher.

        Args:
            rulesets: Domain rulesets of a single edition
            cap: Maximum number of article ids returned
        """
        self._cap = cap
        self._keywords: list[tuple[str, list[str]]] = []
        self._synonyms: list[tuple[str, list[str]]] = []

        for ruleset in rulesets:
            for phrase, article_ids in ruleset.keywords.items():
                self._keywords.append(
                    (normalize_text(phrase), [normalize_article_id(a) for a in article_ids])
                )
            for canonical, alternatives in ruleset.synonyms.items():
                self._synonyms.append(
                    (normalize_text(canonical), [normalize_text(a) for a in alternatives])
                )

        logger.debug(
            "Keyword matcher ready: %d phrases, %d synonym groups",
            len(self._keywords),
            len(self._synonyms),
        )

    def match(self, query: str) -> list[KeywordMatch]:
        """
        Match a query against the keyword tables.

        Args:
            query: Free-text question

        Returns:
            Up to ``cap`` matches, deduplicated, in first-seen order
        """
        text = normalize_text(query)
        if not text:
            return []

        implied = [
            canonical
            for canonical, alternatives in self._synonyms
            if any(contains_phrase(text, alt) for alt in alternatives)
        ]

        weights: dict[str, float] = {}
        for phrase, article_ids in self._keywords:
            if contains_phrase(text, phrase):
                weight = DIRECT_WEIGHT
            elif any(contains_phrase(canonical, phrase) for canonical in implied):
                weight = SYNONYM_WEIGHT
            else:
                continue
            for article_id in article_ids:
                # Re-assigning an existing key keeps its position
                if weights.get(article_id, 0.0) < weight:
                    weights[article_id] = weight

        matches = [
            KeywordMatch(article_id=article_id, weight=weight)
            for article_id, weight in list(weights.items())[: self._cap]
        ]
        if matches:
            logger.debug(
                "Keyword matches for '%s': %s",
                query[:50],
                [m.article_id for m in matches],
            )
        return matches
