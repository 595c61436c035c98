"""
Article Catalog - Single lookup over every edition's article metadata.
"""

from __future__ import annotations

import logging

from fiscalrag.config.rulesets import ArticleMetadata, CodeVersion, RuleCatalog

from .normalize import normalize_article_id

logger = logging.getLogger(__name__)

__all__ = ["ArticleCatalog"]


class ArticleCatalog:
    """
    Metadata lookup keyed on (version, article id).

    Example:
        >>> catalog = ArticleCatalog.from_rules(load_rule_catalog())
        >>> catalog.lookup("art.92A", CodeVersion.V2026).priority
        2
    """

    def __init__(self, entries: list[ArticleMetadata]) -> None:
        self._entries: dict[tuple[CodeVersion, str], ArticleMetadata] = {}
        for entry in entries:
            if entry.version is None:
                continue
            key = (entry.version, normalize_article_id(entry.numero))
            if key in self._entries:
                # First declared ruleset wins
                logger.debug("Duplicate metadata for %s (%s) ignored", key[1], key[0].value)
                continue
            self._entries[key] = entry

    @classmethod
    def from_rules(cls, rules: RuleCatalog) -> ArticleCatalog:
        entries = [
            metadata
            for version in CodeVersion
            for ruleset in rules.rulesets_for(version)
            for metadata in ruleset.articles.values()
        ]
        return cls(entries)

    def lookup(self, article_id: str, version: CodeVersion) -> ArticleMetadata | None:
        """Metadata for one article, accepting any article-id spelling."""
        return self._entries.get((version, normalize_article_id(article_id)))

    def __len__(self) -> int:
        return len(self._entries)
