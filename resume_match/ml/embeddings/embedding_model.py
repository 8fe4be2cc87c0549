"""
Embedding model wrapper for generating text embeddings.

Uses sentence-transformers library for generating semantic embeddings
from text content. Encoding runs in a worker thread so it never blocks
the event loop.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from resume_match.utils.config import get_settings
from resume_match.utils.logger import get_logger

logger = get_logger(__name__)


class EmbeddingGenerator(ABC):
    """Produces fixed-dimension vectors for text."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every produced vector."""
        pass

    @abstractmethod
    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, preserving input order."""
        pass

    async def ensure_loaded(self) -> None:
        """Prepare any backing model off the event loop. Nothing to do by default."""
        return None

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_many([text])
        return vectors[0]


class EmbeddingModel(EmbeddingGenerator):
    """
    Wrapper for sentence-transformers embedding models.

    Provides a unified interface for generating text embeddings
    with support for batching and device selection.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        device: Optional[str] = None,
        normalize: bool = True,
    ):
        """
        Initialize the embedding model.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to config setting.
            device: Device to run model on ('cpu', 'cuda', 'mps').
                   Defaults to config setting.
            normalize: Whether to L2-normalize embeddings.
        """
        settings = get_settings()
        self.model_name = model_name or settings.ml.embedding_model
        self.device = device or settings.ml.device
        self.batch_size = settings.ml.batch_size
        self.normalize = normalize
        self._configured_dimension = settings.ml.embedding_dimension

        self._model = None
        self._initialized = False
        self._load_lock = asyncio.Lock()

    def _load_model(self) -> None:
        """Lazy load the embedding model."""
        if self._initialized:
            return

        try:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading embedding model: {self.model_name}")
            self._model = SentenceTransformer(
                self.model_name,
                device=self.device,
            )
            self._initialized = True
            logger.info(f"Embedding model loaded on device: {self.device}")

        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            raise

    @property
    def model(self):
        """Get the underlying sentence-transformer model."""
        if not self._initialized:
            self._load_model()
        return self._model

    @property
    def is_loaded(self) -> bool:
        return self._initialized

    @property
    def dimension(self) -> int:
        """
        Embedding dimension.

        The configured value until the model is loaded, then the size the
        model reports. Never loads the model itself.
        """
        if not self._initialized:
            return self._configured_dimension
        return self._model.get_sentence_embedding_dimension() or self._configured_dimension

    async def ensure_loaded(self) -> None:
        """Load the model in a worker thread so the event loop keeps serving requests."""
        if self._initialized:
            return
        async with self._load_lock:
            if not self._initialized:
                await asyncio.to_thread(self._load_model)

    def encode(
        self,
        texts: str | list[str],
        show_progress: bool = False,
    ) -> np.ndarray:
        """
        Generate embeddings for text(s).

        Args:
            texts: Single text string or list of texts to encode.
            show_progress: Whether to show progress bar for large batches.

        Returns:
            numpy array of shape (n_texts, embedding_dim) or (embedding_dim,)
            for single text input.
        """
        single_input = isinstance(texts, str)
        if single_input:
            texts = [texts]

        embeddings = self.model.encode(
            texts,
            batch_size=self.batch_size,
            show_progress_bar=show_progress,
            normalize_embeddings=self.normalize,
            convert_to_numpy=True,
        )

        if single_input:
            return embeddings[0]

        return embeddings

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        embeddings = await asyncio.to_thread(self.encode, list(texts))
        return embeddings.astype(np.float64).tolist()


# Singleton instance
_embedding_model: Optional[EmbeddingModel] = None


def get_embedding_model() -> EmbeddingModel:
    """Get the embedding model singleton instance."""
    global _embedding_model
    if _embedding_model is None:
        _embedding_model = EmbeddingModel()
    return _embedding_model
