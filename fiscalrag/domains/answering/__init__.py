"""
Answering Domain - Grounded answer generation for one edition.

This domain handles:
- Evidence context building from ranked search results
- Numeric question detection and key passage extraction
- Edition-specific system prompts
- Plain-text answer post-processing
"""

from .contracts import CompletionProvider
from .generator import AnswerGenerator, build_context, to_source
from .models import Answer, ChatMessage, Source
from .passages import (
    extract_key_passages,
    is_numeric_question,
    strip_markdown_and_emojis,
    truncate_excerpt,
)
from .prompts import (
    COMPARISON_SYSTEM_PROMPT,
    NUMERIC_INSTRUCTION,
    build_comparison_prompt,
    system_prompt_for,
)

__all__ = [
    # Contracts
    "CompletionProvider",
    # Models
    "Answer",
    "ChatMessage",
    "Source",
    # Implementations
    "AnswerGenerator",
    "build_context",
    "to_source",
    # Passages
    "extract_key_passages",
    "is_numeric_question",
    "strip_markdown_and_emojis",
    "truncate_excerpt",
    # Prompts
    "COMPARISON_SYSTEM_PROMPT",
    "NUMERIC_INSTRUCTION",
    "build_comparison_prompt",
    "system_prompt_for",
]
