"""
Answering Contracts - Interfaces for answering domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ChatMessage


@runtime_checkable
class CompletionProvider(Protocol):
    """Contract for text completion providers."""

    async def complete(
        self,
        system_prompt: str,
        history: list[ChatMessage],
        query: str,
    ) -> str:
        """
        Answer a question.

        Args:
            system_prompt: Instructions plus the evidence context
            history: Prior conversation turns, oldest first
            query: The user's question

        Returns:
            Raw answer text

        Raises:
            ProviderUnavailableError: If the provider cannot be reached
            LLMError: If the provider returns an error or an empty answer
        """
        ...

    async def synthesize(self, query: str, answer_a: str, answer_b: str) -> str:
        """
        Write a comparative answer from two per-edition answers.

        Args:
            query: The user's question
            answer_a: Answer under the 2025 edition
            answer_b: Answer under the 2026 edition

        Returns:
            Comparison prose
        """
        ...
