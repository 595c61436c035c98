"""
Sentence Transformer Embedder - Multilingual query embeddings.

The model is loaded lazily on first use and encoding runs in a worker thread
so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging

import numpy as np
from sentence_transformers import SentenceTransformer

from fiscalrag.config.errors import ProviderUnavailableError

logger = logging.getLogger(__name__)

__all__ = ["SentenceTransformerEmbedder"]

PROVIDER = "embedding"


class SentenceTransformerEmbedder:
    """
    Embedding provider backed by sentence-transformers.

    Example:
        >>> embedder = SentenceTransformerEmbedder("paraphrase-multilingual-MiniLM-L12-v2")
        >>> vector = await embedder.embed("Quel est le taux de l'IS ?")
        >>> len(vector)
        384
    """

    def __init__(
        self,
        model_name: str = "paraphrase-multilingual-MiniLM-L12-v2",
        dimension: int = 384,
    ) -> None:
        """
        Initialize embedder.

        Args:
            model_name: Sentence transformer model name
            dimension: Expected embedding dimension
        """
        self.model_name = model_name
        self.dimension = dimension
        self._model: SentenceTransformer | None = None
        self._lock = asyncio.Lock()

    async def _get_model(self) -> SentenceTransformer:
        if self._model is None:
            async with self._lock:
                if self._model is None:
                    try:
                        self._model = await asyncio.to_thread(SentenceTransformer, self.model_name)
                    except (OSError, ValueError, RuntimeError) as e:
                        raise ProviderUnavailableError(
                            PROVIDER,
                            f"Cannot load embedding model {self.model_name}: {e}",
                        ) from e
                    logger.info("Embedding model loaded: %s", self.model_name)
        return self._model

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            ProviderUnavailableError: If the model cannot be loaded or run
        """
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str], batch_size: int = 32) -> list[list[float]]:
        """Embed several texts (used when building partitions)."""
        model = await self._get_model()
        try:
            embeddings = await asyncio.to_thread(
                model.encode,
                texts,
                batch_size=batch_size,
                show_progress_bar=False,
            )
        except (RuntimeError, ValueError) as e:
            raise ProviderUnavailableError(PROVIDER, f"Embedding failed: {e}") from e

        array = np.asarray(embeddings, dtype="float32")
        if array.ndim != 2 or array.shape[1] != self.dimension:
            raise ProviderUnavailableError(
                PROVIDER,
                f"Unexpected embedding shape {array.shape}, expected (*, {self.dimension})",
            )
        return array.tolist()
