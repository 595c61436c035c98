"""
Chat Routes - Grounded answers with edition routing and comparisons.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fiscalrag.domains.answering import ChatMessage
from fiscalrag.domains.orchestration import OrchestratorResponse, QueryOrchestrator

from ..deps import get_orchestrator

router = APIRouter()

MAX_HISTORY = 10


class ChatRequest(BaseModel):
    """Chat request body."""

    query: str = Field(..., min_length=1, max_length=2000)
    history: list[ChatMessage] = Field(default_factory=list)


@router.post("/chat", response_model=OrchestratorResponse)
async def chat(
    request: ChatRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> OrchestratorResponse:
    """
    Answer a tax question.

    The edition is detected from the question; comparison questions are
    answered under both editions and contrasted.
    """
    return await orchestrator.process(request.query, request.history[-MAX_HISTORY:])
