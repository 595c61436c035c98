"""
Answering Models - Data types for answer generation.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from fiscalrag.config.rulesets import CodeVersion
from fiscalrag.domains.search import MatchKind


class ChatMessage(BaseModel):
    """One prior turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str

    model_config = {"frozen": True}


class Source(BaseModel):
    """Article cited as evidence for an answer."""

    numero: str
    version: CodeVersion
    title: str = ""
    excerpt: str = ""
    key_passages: list[str] = Field(default_factory=list)
    score: float = 0.0
    match_kind: MatchKind = MatchKind.VECTOR


class Answer(BaseModel):
    """Generated answer for one edition."""

    text: str
    version: CodeVersion
    sources: list[Source] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    numeric: bool = False
