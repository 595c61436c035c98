"""
Adapters - External service integrations.

All external calls (FAISS, sentence-transformers, LLM APIs) are wrapped here
to isolate domains from third-party changes.
"""

from .embeddings import SentenceTransformerEmbedder
from .faiss import FAISSIndex, FAISSVectorStore
from .llm import LLMResponse, LLMService

__all__ = [
    "FAISSIndex",
    "FAISSVectorStore",
    "SentenceTransformerEmbedder",
    "LLMService",
    "LLMResponse",
]
