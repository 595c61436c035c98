"""
Search Routes - Ranked evidence and edition routing endpoints.

No answer is generated here: /api/search returns the fused keyword, routing
and vector results per edition, /api/intent explains where a question would
be routed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fiscalrag.config import CodeVersion
from fiscalrag.domains.orchestration import QueryOrchestrator, RoutingDecision
from fiscalrag.domains.search import SearchResponse

from ..deps import get_orchestrator

router = APIRouter()


class SearchRequest(BaseModel):
    """Search request body."""

    query: str = Field(..., min_length=1, description="Question or keywords")
    limit: int = Field(default=8, ge=1, le=50)
    version: CodeVersion | None = Field(
        default=None, description="Force an edition instead of routing"
    )


class SearchResults(BaseModel):
    """Search response."""

    query: str
    versions: list[CodeVersion]
    responses: list[SearchResponse]
    total: int


class IntentRequest(BaseModel):
    """Intent request body."""

    query: str = Field(..., min_length=1)


@router.post("/search", response_model=SearchResults)
async def search(
    request: SearchRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> SearchResults:
    """
    Ranked articles for a question.

    - **query**: Question text
    - **limit**: Maximum results per edition (1-50)
    - **version**: "2025" or "2026" to skip edition routing
    """
    responses = await orchestrator.search(request.query, request.limit, request.version)
    return SearchResults(
        query=request.query,
        versions=[r.version for r in responses],
        responses=responses,
        total=sum(len(r.results) for r in responses),
    )


@router.post("/intent", response_model=RoutingDecision)
async def intent(
    request: IntentRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> RoutingDecision:
    """Edition intent and the editions the question would be answered from."""
    return orchestrator.route(request.query)
