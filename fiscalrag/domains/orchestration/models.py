"""
Orchestration Models - Data types for orchestration domain.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from fiscalrag.config.rulesets import CodeVersion, FiscalDomain
from fiscalrag.domains.answering import Source


class Intent(BaseModel):
    """Which edition(s) a question is about."""

    target_version: CodeVersion | None = None
    is_comparison: bool = False
    domain: FiscalDomain | None = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    matched_cues: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class RoutingDecision(BaseModel):
    """Intent plus the editions that will actually be searched."""

    intent: Intent
    versions: list[CodeVersion]
    fallback_applied: bool = False
    reasoning: str = ""

    @property
    def is_comparison(self) -> bool:
        return self.intent.is_comparison


class Impact(str, Enum):
    """Effect of a 2026 change for the taxpayer."""

    FAVORABLE = "favorable"
    DEFAVORABLE = "defavorable"
    NEUTRE = "neutre"


class ComparisonSection(BaseModel):
    """One compared aspect of the two editions."""

    aspect: str
    cgi2025: str = ""
    cgi2026: str = ""
    impact: Impact = Impact.NEUTRE


class ComparisonResult(BaseModel):
    """Joined answer of the two per-edition pipelines."""

    summary: str
    sections: list[ComparisonSection] = Field(default_factory=list)
    recommendation: str = ""
    table: str = ""
    answers: dict[CodeVersion, str] = Field(default_factory=dict)
    sources: list[Source] = Field(default_factory=list)


class OrchestratorResponse(BaseModel):
    """Final answer returned to API and CLI callers."""

    answer: str
    sources: list[Source] = Field(default_factory=list)
    intent: Intent
    versions: list[CodeVersion]
    is_comparison: bool = False
    comparison: ComparisonResult | None = None
    processing_time_ms: float = 0.0


class CacheEntry(BaseModel):
    """Value stored in the in-process cache."""

    key: str
    value: Any
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime | None = None
    hit_count: int = 0
