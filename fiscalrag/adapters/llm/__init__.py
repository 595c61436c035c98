"""
LLM Adapter - Completion provider for answers and comparisons.

Supports:
- Gemini over REST (API key)
- Ollama for local models (no auth needed)

Usage:
    from fiscalrag.adapters.llm import LLMService

    llm = LLMService(get_settings())
    answer = await llm.complete(system_prompt, history, "Quel est le taux de l'IS ?")
"""

from .service import LLMResponse, LLMService

__all__ = ["LLMService", "LLMResponse"]
