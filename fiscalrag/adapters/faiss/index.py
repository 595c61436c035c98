"""
FAISS Index - Vector similarity search over one partition.

Features:
- Async-compatible operations (FAISS calls run in a worker thread)
- Cosine similarity via L2-normalized inner product
- Index persistence (faiss_index.bin + metadata.json)
- Article payload stored alongside each vector
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import faiss
import numpy as np

logger = logging.getLogger(__name__)

__all__ = ["FAISSIndex"]

INDEX_FILE = "faiss_index.bin"
METADATA_FILE = "metadata.json"


class FAISSIndex:
    """
    FAISS vector index for semantic search.

    Example:
        >>> index = FAISSIndex(dimension=384)
        >>> await index.add_vectors(embeddings, payloads)
        >>> hits = await index.search(query_embedding, k=8, score_threshold=0.7)
    """

    def __init__(self, dimension: int = 384, index_type: str = "Flat") -> None:
        """
        Initialize FAISS index.

        Args:
            dimension: Vector dimension (384 for MiniLM)
            index_type: Index type ("Flat" or "HNSW")
        """
        self.dimension = dimension
        self.index_type = index_type

        self._index: faiss.Index | None = None
        self._metadata: list[dict[str, Any]] = []

    def _create_index(self) -> faiss.Index:
        """Create FAISS index based on type."""
        if self.index_type == "HNSW":
            return faiss.IndexHNSWFlat(self.dimension, 32, faiss.METRIC_INNER_PRODUCT)
        return faiss.IndexFlatIP(self.dimension)

    async def initialize(self) -> None:
        """Initialize empty index."""
        self._index = self._create_index()
        self._metadata = []
        logger.info(
            "FAISS index initialized: dimension=%d, type=%s",
            self.dimension,
            self.index_type,
        )

    async def add_vectors(
        self,
        vectors: np.ndarray,
        metadata: list[dict[str, Any]],
    ) -> None:
        """
        Add vectors with metadata.

        Args:
            vectors: numpy array of shape (n, dimension)
            metadata: List of payload dicts (same length as vectors)
        """
        if len(vectors) != len(metadata):
            raise ValueError(f"{len(vectors)} vectors for {len(metadata)} payloads")
        if self._index is None:
            await self.initialize()
        assert self._index is not None  # Guaranteed by initialize()

        vectors = np.ascontiguousarray(np.asarray(vectors, dtype="float32"))
        faiss.normalize_L2(vectors)

        await asyncio.to_thread(self._index.add, vectors)
        self._metadata.extend(metadata)

        logger.debug("Added %d vectors to index", len(vectors))

    async def search(
        self,
        query_vector: np.ndarray,
        k: int = 10,
        score_threshold: float = 0.0,
    ) -> list[dict[str, Any]]:
        """
        Search for similar vectors.

        Args:
            query_vector: Query vector of shape (dimension,) or (1, dimension)
            k: Number of results
            score_threshold: Minimum cosine similarity kept

        Returns:
            List of dicts with 'score', 'metadata', and 'index', best first
        """
        if self._index is None or self._index.ntotal == 0 or k <= 0:
            return []

        query_vector = np.asarray(query_vector, dtype="float32")
        if query_vector.ndim == 1:
            query_vector = query_vector.reshape(1, -1)
        query_vector = np.ascontiguousarray(query_vector)
        faiss.normalize_L2(query_vector)

        scores, indices = await asyncio.to_thread(
            self._index.search, query_vector, min(k, self._index.ntotal)
        )

        results = []
        for score, idx in zip(scores[0], indices[0]):
            if 0 <= idx < len(self._metadata) and score >= score_threshold:
                results.append(
                    {
                        "score": float(score),
                        "index": int(idx),
                        "metadata": self._metadata[idx],
                    }
                )

        return results

    async def save(self, path: str | Path) -> None:
        """
        Save index to disk.

        Args:
            path: Directory to save index
        """
        if self._index is None:
            await self.initialize()

        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(faiss.write_index, self._index, str(path / INDEX_FILE))

        metadata = {
            "dimension": self.dimension,
            "index_type": self.index_type,
            "metadata": self._metadata,
        }
        await asyncio.to_thread(self._write_json, path / METADATA_FILE, metadata)

        logger.info("Index saved to %s (%d vectors)", path, self.size)

    @staticmethod
    def _write_json(path: Path, data: dict[str, Any]) -> None:
        """Write JSON file (sync helper for to_thread)."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    async def load(self, path: str | Path) -> None:
        """
        Load index from disk.

        Args:
            path: Directory containing saved index
        """
        path = Path(path)

        self._index = await asyncio.to_thread(faiss.read_index, str(path / INDEX_FILE))

        data = await asyncio.to_thread(self._read_json, path / METADATA_FILE)
        self.dimension = data["dimension"]
        self.index_type = data.get("index_type", "Flat")
        self._metadata = data["metadata"]

        logger.info("Index loaded from %s (%d vectors)", path, self.size)

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        """Read JSON file (sync helper for to_thread)."""
        with open(path, encoding="utf-8") as f:
            result: dict[str, Any] = json.load(f)
            return result

    @property
    def metadata(self) -> list[dict[str, Any]]:
        return self._metadata

    @property
    def size(self) -> int:
        """Get number of vectors in index."""
        return self._index.ntotal if self._index else 0
