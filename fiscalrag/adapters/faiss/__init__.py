"""
FAISS Adapter - Vector similarity search, one partition per edition.
"""

from .index import FAISSIndex
from .store import FAISSVectorStore

__all__ = ["FAISSIndex", "FAISSVectorStore"]
