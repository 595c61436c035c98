"""
Result Fusion - Merges keyword and vector evidence into one ranked list.

Ranking key, in order:
1. priority (lower = more authoritative)
2. article type (definitions/exemptions/calculations before procedures,
   then applications, then sanctions, then untyped)
3. match kind (keyword or both before vector-only)
4. score, descending
5. article id, ascending

A routing override is pinned at rank 0 regardless of the key.
Every function here is pure: identical inputs give identical output.
"""

from __future__ import annotations

import logging

from fiscalrag.config.rulesets import ArticleType

from .models import Article, MatchKind, RoutingOverride, SearchResult

logger = logging.getLogger(__name__)

__all__ = ["TYPE_RANK", "fuse_results", "rank_key"]

TYPE_RANK: dict[ArticleType, int] = {
    ArticleType.DEFINITION: 0,
    ArticleType.EXEMPTION: 0,
    ArticleType.CALCULATION: 0,
    ArticleType.PROCEDURE: 1,
    ArticleType.APPLICATION: 2,
    ArticleType.SANCTION: 3,
}
UNKNOWN_TYPE_RANK = 4


def rank_key(result: SearchResult) -> tuple[int, int, int, float, str]:
    """Total order used to sort fused results."""
    type_rank = TYPE_RANK[result.type] if result.type else UNKNOWN_TYPE_RANK
    kind_rank = 1 if result.match_kind is MatchKind.VECTOR else 0
    return (result.priority, type_rank, kind_rank, -result.score, result.article_id)


def _merge(
    keyword_results: list[SearchResult],
    vector_results: list[SearchResult],
) -> dict[str, SearchResult]:
    merged: dict[str, SearchResult] = {}

    for result in keyword_results:
        if result.article_id not in merged:
            merged[result.article_id] = result.model_copy(
                update={"match_kind": MatchKind.KEYWORD}
            )

    for result in vector_results:
        existing = merged.get(result.article_id)
        if existing is None:
            merged[result.article_id] = result.model_copy(
                update={"match_kind": MatchKind.VECTOR}
            )
        elif existing.match_kind is not MatchKind.VECTOR:
            merged[result.article_id] = existing.model_copy(
                update={
                    "match_kind": MatchKind.BOTH,
                    "score": max(existing.score, result.score),
                    "article": existing.article or result.article,
                }
            )

    return merged


def _pinned(
    merged: dict[str, SearchResult],
    override: RoutingOverride,
    override_article: Article | None,
) -> SearchResult | None:
    entry = merged.pop(override.article_id, None)
    if entry is None and override_article is not None:
        entry = SearchResult(
            article_id=override.article_id,
            match_kind=MatchKind.KEYWORD,
            type=override_article.type,
            article=override_article,
        )
    if entry is None:
        logger.debug("Override %s not resolvable, not pinned", override.article_id)
        return None
    return entry.model_copy(update={"priority": 0, "score": 1.0})


def fuse_results(
    keyword_results: list[SearchResult],
    vector_results: list[SearchResult],
    limit: int,
    override: RoutingOverride | None = None,
    override_article: Article | None = None,
) -> list[SearchResult]:
    """
    Fuse keyword and vector results.

    Args:
        keyword_results: Keyword/routing hits in table order
        vector_results: Similarity hits, best first
        limit: Maximum number of results
        override: Article to pin at rank 0
        override_article: Resolved article for an override absent from both lists

    Returns:
        Ranked, deduplicated results (at most ``limit``)
    """
    if limit <= 0:
        return []

    merged = _merge(keyword_results, vector_results)
    pinned = _pinned(merged, override, override_article) if override else None

    slots = limit - 1 if pinned else limit
    lexical = sorted(
        (r for r in merged.values() if r.match_kind is not MatchKind.VECTOR), key=rank_key
    )
    vector_only = sorted(
        (r for r in merged.values() if r.match_kind is MatchKind.VECTOR), key=rank_key
    )

    selected = lexical[:slots]
    selected += vector_only[: max(0, slots - len(selected))]
    ranked = sorted(selected, key=rank_key)

    if pinned:
        ranked.insert(0, pinned)

    return ranked[:limit]
