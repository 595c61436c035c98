"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the adapters and the query orchestrator.
The orchestrator itself is built explicitly by build_orchestrator, so tests
and the CLI can wire their own providers.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fiscalrag.adapters import FAISSVectorStore, LLMService, SentenceTransformerEmbedder
from fiscalrag.config import CodeVersion, RuleCatalog, Settings, get_settings, load_rule_catalog
from fiscalrag.domains.answering import AnswerGenerator, CompletionProvider, system_prompt_for
from fiscalrag.domains.orchestration import (
    ComparisonSynthesizer,
    ConfidencePolicy,
    IntentAnalyzer,
    QueryOrchestrator,
    TTLCache,
    VersionFallbackPolicy,
    VersionPipeline,
)
from fiscalrag.domains.search import (
    ArticleCatalog,
    HybridSearchEngine,
    KeywordMatcher,
    RuleRouter,
    VectorSearcher,
    VectorStore,
)

logger = logging.getLogger(__name__)


@lru_cache
def get_rule_catalog() -> RuleCatalog:
    """Get validated rule tables singleton."""
    return load_rule_catalog(get_settings().rules_dir)


@lru_cache
def get_cache() -> TTLCache:
    """Get shared cache singleton."""
    settings = get_settings()
    return TTLCache(max_size=settings.cache_max_size, default_ttl=settings.search_cache_ttl)


@lru_cache
def get_vector_store() -> FAISSVectorStore:
    """Get version-partitioned FAISS store singleton."""
    settings = get_settings()
    return FAISSVectorStore(settings.index_dir, dimension=settings.embedding_dimension)


@lru_cache
def get_embedder() -> SentenceTransformerEmbedder:
    """Get embedding model singleton."""
    settings = get_settings()
    return SentenceTransformerEmbedder(
        settings.embedding_model, dimension=settings.embedding_dimension
    )


@lru_cache
def get_llm() -> LLMService:
    """Get completion provider singleton."""
    return LLMService(get_settings())


@lru_cache
def get_vector_searcher() -> VectorSearcher:
    """Get cached similarity searcher singleton (shared by both editions)."""
    settings = get_settings()
    return VectorSearcher(
        get_embedder(),
        get_vector_store(),
        get_cache(),
        ArticleCatalog.from_rules(get_rule_catalog()),
        score_threshold=settings.vector_score_threshold,
        result_ttl=settings.search_cache_ttl,
        embedding_ttl=settings.embedding_cache_ttl,
        key_prefix_length=settings.cache_key_prefix_length,
        slow_search_ms=settings.slow_search_ms,
    )


def build_orchestrator(
    settings: Settings,
    rules: RuleCatalog,
    store: VectorStore,
    searcher: VectorSearcher,
    completion: CompletionProvider,
) -> QueryOrchestrator:
    """
    Wire one search and answer pipeline per edition behind an orchestrator.

    Args:
        settings: Application settings
        rules: Validated rule tables
        store: Vector store used to resolve keyword and override articles
        searcher: Cached similarity searcher
        completion: Completion provider for answers and comparisons

    Returns:
        Ready-to-use QueryOrchestrator
    """
    catalog = ArticleCatalog.from_rules(rules)
    pipelines = {}
    for version in CodeVersion:
        engine = HybridSearchEngine(
            version,
            KeywordMatcher(rules.rulesets_for(version), cap=settings.keyword_match_cap),
            RuleRouter(rules.routing_for(version), default_boost=settings.routing_default_boost),
            searcher,
            store,
            catalog,
        )
        generator = AnswerGenerator(completion, system_prompt_for(version), version)
        pipelines[version] = VersionPipeline(
            version, engine, generator, default_limit=settings.search_default_limit
        )

    return QueryOrchestrator(
        IntentAnalyzer(rules.intent, ConfidencePolicy.from_settings(settings)),
        pipelines,
        ComparisonSynthesizer(completion),
        VersionFallbackPolicy(cutoff=settings.version_cutoff_date),
    )


@lru_cache
def get_orchestrator() -> QueryOrchestrator:
    """Get query orchestrator singleton."""
    return build_orchestrator(
        get_settings(),
        get_rule_catalog(),
        get_vector_store(),
        get_vector_searcher(),
        get_llm(),
    )


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler. Malformed rule
    tables fail here rather than on the first request.
    """
    rules = get_rule_catalog()
    for version, sizes in rules.stats().items():
        logger.info("  Rules %s: %s", version, sizes)

    loaded = await get_vector_store().load()
    logger.info("  Vector partitions: %s", loaded or "none")

    get_orchestrator()


async def cleanup_services() -> None:
    """Wait for pending cache writes on shutdown."""
    await get_vector_searcher().flush()
