"""
Text embeddings and chunk vector storage.

Components:
- EmbeddingModel: Wrapper for sentence-transformers models
- VectorStore: Abstraction for chunk vector storage (ChromaDB/in-memory)
"""

from .embedding_model import (
    EmbeddingGenerator,
    EmbeddingModel,
    get_embedding_model,
)

from .vector_store import (
    VectorStore,
    ChromaVectorStore,
    InMemoryVectorStore,
    compute_raw_scores,
    get_chunk_store,
    get_vector_store,
)

__all__ = [
    # Embedding model
    "EmbeddingGenerator",
    "EmbeddingModel",
    "get_embedding_model",
    # Vector stores
    "VectorStore",
    "ChromaVectorStore",
    "InMemoryVectorStore",
    "compute_raw_scores",
    "get_chunk_store",
    "get_vector_store",
]
