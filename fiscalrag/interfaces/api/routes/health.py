"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from fiscalrag import __version__
from fiscalrag.adapters import FAISSVectorStore
from fiscalrag.config import CodeVersion
from fiscalrag.domains.orchestration import TTLCache
from fiscalrag.domains.search import VectorSearcher

from ..deps import get_cache, get_vector_searcher, get_vector_store

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "fiscalrag"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "FiscalRAG API",
        "version": __version__,
        "description": "Recherche hybride et routage par edition du CGI du Congo",
        "editions": [v.value for v in CodeVersion],
        "docs": "/docs",
    }


@router.get("/api/stats")
async def stats(
    cache: TTLCache = Depends(get_cache),
    searcher: VectorSearcher = Depends(get_vector_searcher),
    store: FAISSVectorStore = Depends(get_vector_store),
) -> dict[str, Any]:
    """Cache, vector search and partition counters."""
    return {
        "cache": cache.stats(),
        "vector_search": searcher.metrics.model_dump(),
        "partitions": store.stats(),
    }
