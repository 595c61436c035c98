"""
Embeddings Adapter - Sentence embeddings for queries and articles.
"""

from .encoder import SentenceTransformerEmbedder

__all__ = ["SentenceTransformerEmbedder"]
