"""
Orchestration Domain - Edition routing and pipeline coordination.

This domain handles:
- Edition intent detection and date-based fallback
- Per-edition search + answer pipelines
- Cross-edition comparison
- Shared in-process cache
"""

from .cache import TTLCache
from .comparison import ComparisonSynthesizer, parse_comparison, render_comparison_table
from .contracts import EditionPipeline, IntentClassifier, QueryRouter, ResponseCache
from .intent import ConfidencePolicy, IntentAnalyzer, VersionFallbackPolicy
from .models import (
    CacheEntry,
    ComparisonResult,
    ComparisonSection,
    Impact,
    Intent,
    OrchestratorResponse,
    RoutingDecision,
)
from .pipeline import VersionPipeline
from .router import QueryOrchestrator

__all__ = [
    # Contracts
    "EditionPipeline",
    "IntentClassifier",
    "QueryRouter",
    "ResponseCache",
    # Models
    "CacheEntry",
    "ComparisonResult",
    "ComparisonSection",
    "Impact",
    "Intent",
    "OrchestratorResponse",
    "RoutingDecision",
    # Implementations
    "ComparisonSynthesizer",
    "ConfidencePolicy",
    "IntentAnalyzer",
    "QueryOrchestrator",
    "TTLCache",
    "VersionFallbackPolicy",
    "VersionPipeline",
    "parse_comparison",
    "render_comparison_table",
]
