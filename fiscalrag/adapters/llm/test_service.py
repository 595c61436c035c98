"""
Tests for the LLM service (Gemini and Ollama over httpx).
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from fiscalrag.config import LLMError, ProviderUnavailableError, Settings
from fiscalrag.config.errors import ErrorCode
from fiscalrag.domains.answering import COMPARISON_SYSTEM_PROMPT, ChatMessage

from .service import LLMService


def transport(
    handler: Callable[[httpx.Request], httpx.Response],
    seen: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    def record(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return httpx.MockTransport(record)


def ollama_reply(text: str) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(
        200, json={"message": {"role": "assistant", "content": text}, "eval_count": 12}
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_provider="ollama",
        ollama_url="http://ollama.test",
        ollama_model="llama3.2",
        gemini_api_key="test-key",
        gemini_model="gemini-2.0-flash",
    )


HISTORY = [
    ChatMessage(role="user", content="Et la TVA ?"),
    ChatMessage(role="assistant", content="Le taux normal est de 18%."),
]


# --- Configuration Tests ---


def test_unknown_provider_rejected(settings: Settings) -> None:
    """Test only gemini and ollama are accepted."""
    with pytest.raises(LLMError):
        LLMService(settings, provider="openai")


def test_gemini_requires_api_key(settings: Settings) -> None:
    """Test the gemini provider needs a key."""
    settings = settings.model_copy(update={"gemini_api_key": ""})
    with pytest.raises(LLMError):
        LLMService(settings, provider="gemini")


# --- Ollama Tests ---


async def test_ollama_complete_sends_history(settings: Settings) -> None:
    """Test system prompt, history and query are sent as chat messages."""
    seen: list[httpx.Request] = []
    llm = LLMService(settings, transport=transport(ollama_reply("Le taux est de 28%."), seen))

    answer = await llm.complete("SYSTEME", HISTORY, "Quel est le taux de l'IS ?")

    assert answer == "Le taux est de 28%."
    assert str(seen[0].url) == "http://ollama.test/api/chat"
    body = json.loads(seen[0].content)
    assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]
    assert body["messages"][-1]["content"] == "Quel est le taux de l'IS ?"
    assert body["stream"] is False


async def test_ollama_connect_error_is_unavailable(settings: Settings) -> None:
    """Test an unreachable server maps to provider outage."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    llm = LLMService(settings, transport=transport(refuse))
    with pytest.raises(ProviderUnavailableError) as exc_info:
        await llm.complete("SYSTEME", [], "question")
    assert exc_info.value.provider == "llm"


async def test_dropped_connection_is_unavailable(settings: Settings) -> None:
    """Test a server closing mid-response maps to provider outage."""

    def disconnect(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("Server disconnected", request=request)

    llm = LLMService(settings, transport=transport(disconnect))
    with pytest.raises(ProviderUnavailableError) as exc_info:
        await llm.complete("SYSTEME", [], "question")
    assert exc_info.value.provider == "llm"


async def test_empty_answer_is_error(settings: Settings) -> None:
    """Test a blank completion is an invalid response."""
    llm = LLMService(settings, transport=transport(ollama_reply("   ")))
    with pytest.raises(LLMError) as exc_info:
        await llm.complete("SYSTEME", [], "question")
    assert exc_info.value.details["code"] == ErrorCode.LLM_INVALID_RESPONSE.value


async def test_server_error_is_llm_error(settings: Settings) -> None:
    """Test a non-200 status raises LLMError with the status."""
    llm = LLMService(settings, transport=transport(lambda r: httpx.Response(500, text="boom")))
    with pytest.raises(LLMError) as exc_info:
        await llm.complete("SYSTEME", [], "question")
    assert exc_info.value.details["status"] == 500


async def test_synthesize_uses_comparison_prompt(settings: Settings) -> None:
    """Test synthesis sends both answers under the comparison instructions."""
    seen: list[httpx.Request] = []
    llm = LLMService(settings, transport=transport(ollama_reply('{"summary": "ok"}'), seen))

    text = await llm.synthesize("Taux IS ?", "30% en 2025", "28% en 2026")

    assert text == '{"summary": "ok"}'
    messages = json.loads(seen[0].content)["messages"]
    assert messages[0] == {"role": "system", "content": COMPARISON_SYSTEM_PROMPT}
    assert "30% en 2025" in messages[1]["content"]
    assert "28% en 2026" in messages[1]["content"]


# --- Gemini Tests ---


async def test_gemini_request_shape(settings: Settings) -> None:
    """Test Gemini gets the key header, system instruction and model roles."""
    seen: list[httpx.Request] = []
    reply = {
        "candidates": [{"content": {"parts": [{"text": "Reponse "}, {"text": "Gemini"}]}}],
        "usageMetadata": {"totalTokenCount": 42},
    }
    llm = LLMService(
        settings,
        provider="gemini",
        transport=transport(lambda r: httpx.Response(200, json=reply), seen),
    )

    response = await llm.generate("question", "SYSTEME", HISTORY)

    assert response.text == "Reponse Gemini"
    assert response.tokens_used == 42
    request = seen[0]
    assert request.headers["x-goog-api-key"] == "test-key"
    assert "gemini-2.0-flash:generateContent" in str(request.url)
    body = json.loads(request.content)
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["systemInstruction"]["parts"][0]["text"] == "SYSTEME"


async def test_gemini_rate_limited(settings: Settings) -> None:
    """Test HTTP 429 maps to the rate-limited code."""
    llm = LLMService(
        settings,
        provider="gemini",
        transport=transport(lambda r: httpx.Response(429, json={})),
    )
    with pytest.raises(LLMError) as exc_info:
        await llm.complete("SYSTEME", [], "question")
    assert exc_info.value.details["code"] == ErrorCode.LLM_RATE_LIMITED.value


async def test_gemini_timeout_is_unavailable(settings: Settings) -> None:
    """Test a timeout maps to provider outage."""

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    llm = LLMService(settings, provider="gemini", transport=transport(slow))
    with pytest.raises(ProviderUnavailableError):
        await llm.complete("SYSTEME", [], "question")
