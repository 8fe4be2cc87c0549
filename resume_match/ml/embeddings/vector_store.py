"""
Vector store abstraction for storing and searching chunk embeddings.

Supports a persistent ChromaDB backend and an in-memory numpy backend.
Query scores are returned in the index's native metric: similarity for
cosine and dot product, distance for euclidean.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np
from pydantic import ValidationError

from resume_match.data.models import Chunk, ChunkFilter, ScoredChunk
from resume_match.utils.config import get_settings
from resume_match.utils.constants import IndexMetric
from resume_match.utils.logger import get_logger

logger = get_logger(__name__)

# ChromaDB hnsw:space -> metric
CHROMA_SPACE_METRICS: dict[str, IndexMetric] = {
    "cosine": IndexMetric.COSINE,
    "l2": IndexMetric.EUCLIDEAN,
    "ip": IndexMetric.DOTPRODUCT,
}
METRIC_CHROMA_SPACES: dict[IndexMetric, str] = {v: k for k, v in CHROMA_SPACE_METRICS.items()}


def compute_raw_scores(
    query: Sequence[float],
    vectors: np.ndarray | Sequence[Sequence[float]],
    metric: IndexMetric | str,
) -> np.ndarray:
    """
    Score vectors against a query in the given metric.

    Args:
        query: Query vector.
        vectors: Matrix of candidate vectors, one per row.
        metric: Index metric.

    Returns:
        Cosine similarity, dot product, or euclidean distance per row.
    """
    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.size == 0:
        return np.array([])
    q = np.asarray(query, dtype=np.float64)
    metric = IndexMetric(metric)

    if metric == IndexMetric.EUCLIDEAN:
        return np.linalg.norm(matrix - q, axis=1)

    dots = matrix @ q
    if metric == IndexMetric.DOTPRODUCT:
        return dots

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    with np.errstate(divide="ignore", invalid="ignore"):
        cosine = np.where(norms > 0, dots / norms, 0.0)
    return cosine


def best_first(metric: IndexMetric | str) -> bool:
    """Whether larger raw scores are better for the metric."""
    return IndexMetric(metric) != IndexMetric.EUCLIDEAN


class VectorStore(ABC):
    """Abstract base class for chunk vector stores."""

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[ChunkFilter] = None,
        include_vectors: bool = False,
    ) -> list[ScoredChunk]:
        """Nearest chunks to a vector, best first."""
        pass

    @abstractmethod
    async def fetch_by_ids(self, ids: list[str]) -> list[Chunk]:
        """Get chunks with their vectors. Unknown ids are skipped."""
        pass

    async def fetch_by_id(self, chunk_id: str) -> Optional[Chunk]:
        """Get a single chunk with its vector."""
        chunks = await self.fetch_by_ids([chunk_id])
        return chunks[0] if chunks else None

    @abstractmethod
    async def describe_metric(self) -> IndexMetric:
        """Distance metric the index was created with."""
        pass

    @abstractmethod
    async def upsert(self, chunks: list[Chunk]) -> None:
        """Add or replace chunks. Every chunk must carry a vector."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored vectors."""
        pass


def _build_chunk(builder: Any, chunk_id: str, **kwargs: Any) -> Optional[Any]:
    """Build a chunk model from an index row, skipping malformed metadata."""
    try:
        return builder.from_metadata(chunk_id, **kwargs)
    except ValidationError as e:
        logger.warning(f"Skipping index entry {chunk_id} with invalid metadata: {e.error_count()} errors")
        return None


class ChromaVectorStore(VectorStore):
    """
    ChromaDB-based vector store implementation.

    Provides persistent storage with metadata filtering support. The
    client is synchronous, so calls run in worker threads.
    """

    def __init__(
        self,
        collection_name: Optional[str] = None,
        persist_directory: Optional[Path] = None,
        metric: IndexMetric | str = IndexMetric.COSINE,
    ):
        """
        Initialize ChromaDB vector store.

        Args:
            collection_name: Name of the collection to use.
            persist_directory: Directory for persistent storage.
            metric: Metric used when the collection has to be created.
        """
        settings = get_settings()
        self.collection_name = collection_name or settings.vector_store.collection_name
        self.persist_directory = persist_directory or settings.vector_store.persist_directory
        self.create_metric = IndexMetric(metric)

        self._client = None
        self._collection = None
        self._initialized = False

    def _initialize(self) -> None:
        """Lazy initialization of ChromaDB client."""
        if self._initialized:
            return

        try:
            import chromadb
            from chromadb.config import Settings as ChromaSettings

            self.persist_directory.mkdir(parents=True, exist_ok=True)

            logger.info(f"Initializing ChromaDB at: {self.persist_directory}")

            self._client = chromadb.PersistentClient(
                path=str(self.persist_directory),
                settings=ChromaSettings(anonymized_telemetry=False),
            )

            self._collection = self._client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": METRIC_CHROMA_SPACES[self.create_metric]},
            )

            self._initialized = True
            logger.info(
                f"ChromaDB initialized with collection: {self.collection_name} "
                f"({self._collection.count()} vectors)"
            )

        except Exception as e:
            logger.error(f"Failed to initialize ChromaDB: {e}")
            raise

    @property
    def collection(self):
        """Get the ChromaDB collection."""
        if not self._initialized:
            self._initialize()
        return self._collection

    @staticmethod
    def build_where(filter: Optional[ChunkFilter]) -> Optional[dict[str, Any]]:
        """Translate a chunk filter into a ChromaDB where clause."""
        if filter is None:
            return None

        clauses: list[dict[str, Any]] = []
        if filter.doc_id is not None:
            clauses.append({"doc_id": {"$eq": filter.doc_id}})
        if filter.doc_type is not None:
            clauses.append({"doc_type": {"$eq": filter.doc_type}})
        if filter.min_chunk_index is not None:
            clauses.append({"chunk_index": {"$gte": filter.min_chunk_index}})

        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def _raw_score(self, distance: float, metric: IndexMetric) -> float:
        """Convert a ChromaDB distance back to the metric's native score."""
        if metric == IndexMetric.EUCLIDEAN:
            # hnsw l2 reports squared distance
            return float(np.sqrt(max(distance, 0.0)))
        # cosine and ip report 1 - similarity
        return 1.0 - distance

    def _query_sync(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[ChunkFilter],
        include_vectors: bool,
    ) -> list[ScoredChunk]:
        if top_k <= 0 or self.collection.count() == 0:
            return []

        include = ["metadatas", "distances"]
        if include_vectors:
            include.append("embeddings")

        results = self.collection.query(
            query_embeddings=[list(map(float, vector))],
            n_results=top_k,
            where=self.build_where(filter),
            include=include,
        )
        metric = self._metric_sync()

        ids = results["ids"][0] if results.get("ids") else []
        distances = results["distances"][0] if results.get("distances") is not None else []
        metadatas = results["metadatas"][0] if results.get("metadatas") is not None else []
        embeddings = results.get("embeddings")
        embeddings = embeddings[0] if embeddings is not None else None

        chunks: list[ScoredChunk] = []
        for i, chunk_id in enumerate(ids):
            chunk = _build_chunk(
                ScoredChunk,
                chunk_id,
                metadata=metadatas[i] if i < len(metadatas) else None,
                vector=embeddings[i] if embeddings is not None else None,
                raw_score=self._raw_score(float(distances[i]), metric),
            )
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[ChunkFilter] = None,
        include_vectors: bool = False,
    ) -> list[ScoredChunk]:
        return await asyncio.to_thread(self._query_sync, vector, top_k, filter, include_vectors)

    def _fetch_sync(self, ids: list[str]) -> list[Chunk]:
        if not ids:
            return []

        results = self.collection.get(ids=ids, include=["embeddings", "metadatas"])
        embeddings = results.get("embeddings")
        metadatas = results.get("metadatas")

        chunks: list[Chunk] = []
        for i, chunk_id in enumerate(results["ids"]):
            chunk = _build_chunk(
                Chunk,
                chunk_id,
                metadata=metadatas[i] if metadatas is not None else None,
                vector=embeddings[i] if embeddings is not None else None,
            )
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    async def fetch_by_ids(self, ids: list[str]) -> list[Chunk]:
        return await asyncio.to_thread(self._fetch_sync, ids)

    def _metric_sync(self) -> IndexMetric:
        space = (self.collection.metadata or {}).get("hnsw:space", "l2")
        if space not in CHROMA_SPACE_METRICS:
            raise ValueError(f"Unsupported ChromaDB space: {space}")
        return CHROMA_SPACE_METRICS[space]

    async def describe_metric(self) -> IndexMetric:
        return await asyncio.to_thread(self._metric_sync)

    def _upsert_sync(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return
        if any(chunk.vector is None for chunk in chunks):
            raise ValueError("Every chunk must carry a vector to be indexed")

        self.collection.upsert(
            ids=[chunk.id for chunk in chunks],
            embeddings=[list(chunk.vector) for chunk in chunks],
            metadatas=[chunk.to_metadata() for chunk in chunks],
        )
        logger.debug(f"Upserted {len(chunks)} chunks to collection")

    async def upsert(self, chunks: list[Chunk]) -> None:
        await asyncio.to_thread(self._upsert_sync, chunks)

    async def count(self) -> int:
        return await asyncio.to_thread(self.collection.count)


class InMemoryVectorStore(VectorStore):
    """
    Brute-force numpy vector store.

    Holds every chunk in memory and scores all candidates per query.
    Suited to tests, demos and small corpora.
    """

    def __init__(self, metric: IndexMetric | str | None = None):
        settings = get_settings()
        self.metric = IndexMetric(metric or settings.vector_store.memory_metric)
        self._chunks: dict[str, Chunk] = {}

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[ChunkFilter] = None,
        include_vectors: bool = False,
    ) -> list[ScoredChunk]:
        if top_k <= 0:
            return []

        candidates = [c for c in self._chunks.values() if filter is None or filter.matches(c)]
        if not candidates:
            return []

        scores = compute_raw_scores(vector, [c.vector for c in candidates], self.metric)
        order = np.argsort(-scores if best_first(self.metric) else scores, kind="stable")

        results: list[ScoredChunk] = []
        for idx in order[:top_k]:
            chunk = candidates[int(idx)]
            data = chunk.model_dump()
            if not include_vectors:
                data["vector"] = None
            results.append(ScoredChunk(**data, raw_score=float(scores[idx])))
        return results

    async def fetch_by_ids(self, ids: list[str]) -> list[Chunk]:
        return [self._chunks[i] for i in ids if i in self._chunks]

    async def describe_metric(self) -> IndexMetric:
        return self.metric

    async def upsert(self, chunks: list[Chunk]) -> None:
        for chunk in chunks:
            if chunk.vector is None:
                raise ValueError(f"Chunk {chunk.id} has no vector")
            self._chunks[chunk.id] = chunk

    async def count(self) -> int:
        return len(self._chunks)


def get_vector_store(
    provider: Optional[str] = None,
    **kwargs,
) -> VectorStore:
    """
    Factory function to get a vector store instance.

    Args:
        provider: Vector store provider ('chromadb' or 'memory').
                 Defaults to config setting.
        **kwargs: Additional arguments for the vector store.

    Returns:
        VectorStore instance.
    """
    settings = get_settings()
    provider = provider or settings.vector_store.provider

    if provider == "chromadb":
        return ChromaVectorStore(**kwargs)
    elif provider == "memory":
        return InMemoryVectorStore(**kwargs)
    else:
        raise ValueError(f"Unknown vector store provider: {provider}")


# Default chunk store
_chunk_store: Optional[VectorStore] = None


def get_chunk_store() -> VectorStore:
    """Get the configured store holding document chunk embeddings."""
    global _chunk_store
    if _chunk_store is None:
        _chunk_store = get_vector_store()
    return _chunk_store
