"""
LLM Service - Completion provider over httpx.

Routes between:
- Gemini (REST generateContent with an API key)
- Ollama (local /api/chat)

The service never retries and never silently switches provider: a network
failure surfaces as ProviderUnavailableError, an API error as LLMError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from fiscalrag.config import LLMError, ProviderUnavailableError, Settings, get_settings
from fiscalrag.config.errors import ErrorCode
from fiscalrag.domains.answering import (
    COMPARISON_SYSTEM_PROMPT,
    ChatMessage,
    build_comparison_prompt,
)

logger = logging.getLogger(__name__)

__all__ = ["LLMResponse", "LLMService"]

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
PROVIDER = "llm"


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    text: str
    model: str
    provider: str  # "gemini" or "ollama"
    tokens_used: int | None = None


class LLMService:
    """
    Completion provider backed by Gemini or Ollama.

    Example:
        >>> llm = LLMService(get_settings())
        >>> answer = await llm.complete(system_prompt, [], "Quel est le taux de l'IS ?")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize LLM service.

        Args:
            settings: Application settings (defaults to get_settings())
            provider: "gemini" or "ollama" (defaults to settings.llm_provider)
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings or get_settings()
        self.provider = (provider or self.settings.llm_provider).lower()
        self._transport = transport

        if self.provider not in ("gemini", "ollama"):
            raise LLMError(f"Unknown LLM provider: {self.provider}")
        if self.provider == "gemini" and not self.settings.gemini_api_key:
            raise LLMError("GEMINI_API_KEY is required for the gemini provider")

        self.model = (
            self.settings.gemini_model if self.provider == "gemini" else self.settings.ollama_model
        )
        logger.debug("LLM: using %s (%s)", self.provider, self.model)

    async def complete(
        self,
        system_prompt: str,
        history: list[ChatMessage],
        query: str,
    ) -> str:
        """Answer a question given instructions, evidence and prior turns."""
        response = await self.generate(query, system_prompt, history)
        return response.text

    async def synthesize(self, query: str, answer_a: str, answer_b: str) -> str:
        """Write a 2025/2026 comparison from two per-edition answers."""
        prompt = build_comparison_prompt(query, answer_a, answer_b)
        response = await self.generate(prompt, COMPARISON_SYSTEM_PROMPT)
        return response.text

    async def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        history: list[ChatMessage] | None = None,
    ) -> LLMResponse:
        """
        Generate text response.

        Args:
            prompt: User prompt
            system_instruction: System prompt
            history: Prior conversation turns, oldest first

        Returns:
            LLMResponse with generated text

        Raises:
            ProviderUnavailableError: If the provider cannot be reached
            LLMError: If the provider answers with an error or nothing
        """
        history = history or []
        try:
            if self.provider == "gemini":
                response = await self._generate_gemini(prompt, system_instruction, history)
            else:
                response = await self._generate_ollama(prompt, system_instruction, history)
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                PROVIDER,
                f"{self.provider} unreachable: {e}",
                {"model": self.model},
            ) from e

        if not response.text.strip():
            raise LLMError(
                f"{self.provider} returned an empty answer",
                {"code": ErrorCode.LLM_INVALID_RESPONSE.value},
            )
        return response

    async def _post(
        self,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.settings.llm_timeout_seconds,
        ) as client:
            response = await client.post(url, json=body, headers=headers)

        if response.status_code == 429:
            raise LLMError(
                f"{self.provider} quota exceeded",
                {"code": ErrorCode.LLM_RATE_LIMITED.value},
            )
        if response.status_code != 200:
            logger.error("%s error: %s %s", self.provider, response.status_code, response.text)
            raise LLMError(
                f"{self.provider} API error: {response.status_code}",
                {"status": response.status_code},
            )

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise LLMError(
                f"{self.provider} returned invalid JSON",
                {"code": ErrorCode.LLM_INVALID_RESPONSE.value},
            ) from e
        return data

    async def _generate_gemini(
        self,
        prompt: str,
        system_instruction: str | None,
        history: list[ChatMessage],
    ) -> LLMResponse:
        """Generate using Gemini generateContent."""
        contents = [
            {
                "role": "model" if message.role == "assistant" else "user",
                "parts": [{"text": message.content}],
            }
            for message in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": self.settings.gemini_temperature},
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        data = await self._post(
            GEMINI_URL.format(model=self.model),
            body,
            headers={"x-goog-api-key": self.settings.gemini_api_key},
        )

        text = ""
        candidates = data.get("candidates", [])
        if candidates:
            parts = candidates[0].get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts)

        return LLMResponse(
            text=text,
            model=self.model,
            provider="gemini",
            tokens_used=data.get("usageMetadata", {}).get("totalTokenCount"),
        )

    async def _generate_ollama(
        self,
        prompt: str,
        system_instruction: str | None,
        history: list[ChatMessage],
    ) -> LLMResponse:
        """Generate using local Ollama."""
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.extend({"role": m.role, "content": m.content} for m in history)
        messages.append({"role": "user", "content": prompt})

        data = await self._post(
            f"{self.settings.ollama_url}/api/chat",
            {
                "model": self.model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": self.settings.gemini_temperature},
            },
        )

        return LLMResponse(
            text=data.get("message", {}).get("content", ""),
            model=self.model,
            provider="ollama",
            tokens_used=data.get("eval_count"),
        )
