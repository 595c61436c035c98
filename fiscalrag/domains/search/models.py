"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fiscalrag.config.rulesets import ArticleType, CodeVersion


class MatchKind(str, Enum):
    """Which retrieval path produced a result."""

    KEYWORD = "keyword"
    VECTOR = "vector"
    BOTH = "both"


class SearchQuery(BaseModel):
    """Search request."""

    query: str = Field(..., min_length=1)
    limit: int = Field(default=8, ge=1, le=50)
    version: CodeVersion | None = None

    model_config = {"frozen": True}

    @field_validator("query")
    @classmethod
    def strip_query(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query must not be blank")
        return value


class Article(BaseModel):
    """One provision of one edition, as stored in the vector index payload."""

    numero: str
    version: CodeVersion
    tome: str | None = None
    title: str = ""
    body: str = ""
    section: str = ""
    keywords: list[str] = Field(default_factory=list)
    priority: int = 2
    type: ArticleType | None = None

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """Single ranked piece of evidence."""

    article_id: str
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    match_kind: MatchKind
    priority: int = 2
    type: ArticleType | None = None
    article: Article | None = None

    model_config = {"frozen": True}


class KeywordMatch(BaseModel):
    """Article id selected by the keyword/synonym tables."""

    article_id: str
    weight: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}


class RoutingOverride(BaseModel):
    """Article forced to rank 0 by a direct mapping or contextual rule."""

    article_id: str
    boost: float = 3.0
    rule_id: str

    model_config = {"frozen": True}


class VectorHit(BaseModel):
    """Raw nearest-neighbor hit returned by a vector store."""

    article_id: str
    score: float
    article: Article | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Ranked evidence for one edition."""

    version: CodeVersion
    query: str
    results: list[SearchResult] = Field(default_factory=list)
    override: RoutingOverride | None = None
    keyword_count: int = 0
    vector_count: int = 0
