"""
Chunk data models.

A chunk is the unit the vector index stores: a bounded text excerpt of a
document together with its embedding vector and location metadata.
"""

from typing import Any, Optional

from pydantic import Field, field_validator

from resume_match.utils.constants import (
    DOCVEC_CHUNK_INDEX,
    MAX_SNIPPET_LENGTH,
    DocType,
)

from .base import FrozenModel


class Chunk(FrozenModel):
    """
    Immutable slice of a document as stored in the vector index.

    ``chunk_index`` is zero or positive for real chunks; -1 marks the
    document-level mean vector (docvec).
    """

    id: str = Field(..., min_length=1)
    doc_id: str
    doc_type: DocType
    chunk_index: int = Field(..., ge=DOCVEC_CHUNK_INDEX)
    snippet: str = ""
    vector: Optional[tuple[float, ...]] = None

    @field_validator("snippet", mode="before")
    @classmethod
    def truncate_snippet(cls, v: Any) -> str:
        """Bound snippets to the stored excerpt length."""
        if v is None:
            return ""
        return str(v)[:MAX_SNIPPET_LENGTH]

    @property
    def is_docvec(self) -> bool:
        """Whether this entry is the document-level mean vector."""
        return self.chunk_index == DOCVEC_CHUNK_INDEX

    @property
    def dimension(self) -> Optional[int]:
        """Length of the stored vector, if one was loaded."""
        return len(self.vector) if self.vector is not None else None

    def to_metadata(self) -> dict[str, Any]:
        """Metadata payload written next to the vector in the index."""
        return {
            "doc_id": self.doc_id,
            "doc_type": self.doc_type,
            "chunk_index": self.chunk_index,
            "text_snippet": self.snippet,
        }

    @classmethod
    def metadata_kwargs(cls, metadata: Optional[dict[str, Any]]) -> dict[str, Any]:
        """Map index metadata keys onto model fields."""
        metadata = metadata or {}
        return {
            "doc_id": metadata.get("doc_id"),
            "doc_type": metadata.get("doc_type"),
            # Entries without an index are treated like the docvec and never
            # pass a real-chunk filter
            "chunk_index": metadata.get("chunk_index", DOCVEC_CHUNK_INDEX),
            "snippet": metadata.get("text_snippet", ""),
        }

    @classmethod
    def from_metadata(
        cls,
        chunk_id: str,
        metadata: Optional[dict[str, Any]],
        vector: Optional[Any] = None,
    ) -> "Chunk":
        """Build a chunk from an index record."""
        return cls(
            id=chunk_id,
            vector=tuple(float(x) for x in vector) if vector is not None else None,
            **cls.metadata_kwargs(metadata),
        )


class ScoredChunk(Chunk):
    """
    A chunk returned by a similarity query.

    ``raw_score`` is in the index's own metric (similarity for cosine and
    dot product, distance for euclidean); ``relevance`` is the normalized
    ``[0, 1]`` value. Produced per query, never persisted.
    """

    raw_score: float = 0.0
    relevance: float = Field(0.0, ge=0.0, le=1.0)

    def with_relevance(self, relevance: float) -> "ScoredChunk":
        """Copy of this chunk carrying a normalized relevance."""
        return self.model_copy(update={"relevance": relevance})

    @classmethod
    def from_metadata(
        cls,
        chunk_id: str,
        metadata: Optional[dict[str, Any]],
        vector: Optional[Any] = None,
        raw_score: float = 0.0,
    ) -> "ScoredChunk":
        """Build a scored chunk from an index query row."""
        return cls(
            id=chunk_id,
            vector=tuple(float(x) for x in vector) if vector is not None else None,
            raw_score=raw_score,
            **cls.metadata_kwargs(metadata),
        )


class ChunkFilter(FrozenModel):
    """
    Metadata filter understood by every vector store.

    Supports equality on ``doc_id`` and ``doc_type`` and a lower bound on
    ``chunk_index`` (0 excludes the docvec).
    """

    doc_id: Optional[str] = None
    doc_type: Optional[DocType] = None
    min_chunk_index: Optional[int] = 0

    @classmethod
    def for_document(cls, doc_id: str, doc_type: DocType) -> "ChunkFilter":
        """Filter selecting the real chunks of one document."""
        return cls(doc_id=doc_id, doc_type=doc_type, min_chunk_index=0)

    def matches(self, chunk: Chunk) -> bool:
        """Apply the filter locally."""
        if self.doc_id is not None and chunk.doc_id != self.doc_id:
            return False
        if self.doc_type is not None and chunk.doc_type != self.doc_type:
            return False
        if self.min_chunk_index is not None and chunk.chunk_index < self.min_chunk_index:
            return False
        return True
