"""
Routing Rules - Deterministic article overrides for known query patterns.

Direct mappings are checked first and short-circuit; contextual rules fire
when one required phrase and (if any are declared) one context phrase occur.
Declaration order is precedence in both tables.
"""

from __future__ import annotations

import logging

from fiscalrag.config.rulesets import RoutingTable

from .models import RoutingOverride
from .normalize import contains_phrase, normalize_article_id, normalize_text

logger = logging.getLogger(__name__)

__all__ = ["RuleRouter"]


class RuleRouter:
    """
    Evaluates one edition's routing table against a query.

    Example:
        >>> router = RuleRouter(catalog.routing_for(CodeVersion.V2026))
        >>> router.route("Comment calculer la base de 22% ?")
        RoutingOverride(article_id='Art. 92A', boost=3.0, rule_id='direct:22%')
    """

    def __init__(self, table: RoutingTable, default_boost: float = 3.0) -> None:
        self.version = table.version
        self._default_boost = default_boost
        self._direct = [
            (phrase, normalize_text(phrase), normalize_article_id(article_id))
            for phrase, article_id in table.direct.items()
        ]
        self._rules = [
            (
                rule,
                [normalize_text(p) for p in rule.required],
                [normalize_text(p) for p in rule.context],
            )
            for rule in table.rules
        ]

    def route(self, query: str) -> RoutingOverride | None:
        """
        Find the article a query must be pinned to, if any.

        Args:
            query: Free-text question

        Returns:
            RoutingOverride, or None when no mapping or rule matches
        """
        text = normalize_text(query)
        if not text:
            return None

        for phrase, normalized, article_id in self._direct:
            if contains_phrase(text, normalized):
                logger.info("Direct mapping '%s' -> %s", phrase, article_id)
                return RoutingOverride(
                    article_id=article_id,
                    boost=self._default_boost,
                    rule_id=f"direct:{phrase}",
                )

        for rule, required, context in self._rules:
            if not any(contains_phrase(text, p) for p in required):
                continue
            if context and not any(contains_phrase(text, p) for p in context):
                continue
            logger.info("Routing rule %s -> %s", rule.id, rule.target)
            return RoutingOverride(
                article_id=normalize_article_id(rule.target),
                boost=rule.boost,
                rule_id=rule.id,
            )

        return None
