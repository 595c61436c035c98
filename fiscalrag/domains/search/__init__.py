"""
Search Domain - Hybrid retrieval over one edition of the tax code.

This domain handles:
- Keyword & synonym tables
- Direct mappings and contextual routing rules
- Cached vector similarity search
- Deterministic result fusion and ranking
"""

from .catalog import ArticleCatalog
from .contracts import Embedder, SearchCache, SearchEngine, VectorStore
from .fusion import fuse_results, rank_key
from .hybrid_search import HybridSearchEngine
from .keywords import KeywordMatcher
from .models import (
    Article,
    KeywordMatch,
    MatchKind,
    RoutingOverride,
    SearchQuery,
    SearchResponse,
    SearchResult,
    VectorHit,
)
from .normalize import contains_phrase, contains_term, normalize_article_id, normalize_text
from .routing import RuleRouter
from .vector_search import VectorSearcher, VectorSearchMetrics

__all__ = [
    # Contracts
    "Embedder",
    "VectorStore",
    "SearchCache",
    "SearchEngine",
    # Models
    "Article",
    "KeywordMatch",
    "MatchKind",
    "RoutingOverride",
    "SearchQuery",
    "SearchResponse",
    "SearchResult",
    "VectorHit",
    # Components
    "ArticleCatalog",
    "KeywordMatcher",
    "RuleRouter",
    "VectorSearcher",
    "VectorSearchMetrics",
    "HybridSearchEngine",
    "fuse_results",
    "rank_key",
    # Normalization
    "contains_phrase",
    "contains_term",
    "normalize_article_id",
    "normalize_text",
]
