"""
Shared test fixtures for the ResumeMatch test suite.

Sets environment variables before any resume_match imports so settings
resolve to an in-memory, console-only configuration, then provides
in-memory fakes of the external collaborators and factory fixtures for
chunks and documents.
"""

import os

# === Set environment BEFORE any resume_match imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FILE_OUTPUT", "false")
os.environ.setdefault("VECTOR_PROVIDER", "memory")
os.environ.setdefault("DB_NAME", "resume_match_test")

import math
import zlib
from typing import Optional, Sequence

import pytest

from resume_match.data.models import (
    Chunk,
    DocumentRecord,
    JobDescriptionRecord,
    ScoredChunk,
)
from resume_match.data.repositories.base import DocumentStore
from resume_match.ml.embeddings.embedding_model import EmbeddingGenerator
from resume_match.ml.embeddings.vector_store import InMemoryVectorStore
from resume_match.utils.constants import (
    CHUNK_ID_TEMPLATE,
    DOCVEC_CHUNK_INDEX,
    DOCVEC_ID_TEMPLATE,
    DocType,
    DocumentStatus,
)


# ---------------------------------------------------------------------------
# Fakes for the consumed interfaces
# ---------------------------------------------------------------------------


class FakeEmbedder(EmbeddingGenerator):
    """
    Deterministic embedder.

    Texts listed in ``vectors`` get that vector; anything else is hashed
    into a unit vector. Texts in ``failures`` raise.
    """

    def __init__(
        self,
        dimension: int = 4,
        vectors: Optional[dict[str, Sequence[float]]] = None,
        failures: Sequence[str] = (),
    ):
        self._dimension = dimension
        self.vectors = {k: list(v) for k, v in (vectors or {}).items()}
        self.failures = set(failures)
        self.calls: list[str] = []
        self.loaded = False

    @property
    def dimension(self) -> int:
        return self._dimension

    async def ensure_loaded(self) -> None:
        self.loaded = True

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        results = []
        for text in texts:
            self.calls.append(text)
            if text in self.failures:
                raise RuntimeError(f"embedding service unavailable for {text!r}")
            results.append(self.vectors.get(text) or self._hashed(text))
        return results

    def _hashed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in text.lower().split():
            vector[zlib.crc32(word.encode()) % self._dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]


class FakeDocumentStore(DocumentStore):
    """Dict-backed document store recording skill embedding writes."""

    def __init__(self):
        self.documents: dict[str, DocumentRecord] = {}
        self.job_descriptions: dict[str, JobDescriptionRecord] = {}
        self.saved_embeddings: list[tuple[str, dict[str, list[float]]]] = []
        self.fail_saves = False

    def add(self, *records):
        for record in records:
            if isinstance(record, JobDescriptionRecord):
                self.job_descriptions[record.id] = record
            else:
                self.documents[record.id] = record
        return self

    async def get_document(self, doc_id):
        return self.documents.get(doc_id)

    async def get_job_description(self, jd_id):
        return self.job_descriptions.get(jd_id)

    async def save_skill_embeddings(self, jd_id, embeddings):
        if self.fail_saves:
            raise ConnectionError("document store offline")
        self.saved_embeddings.append((jd_id, dict(embeddings)))


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_chunk():
    """Factory for indexed chunks with ids following the index id scheme."""

    def _factory(
        doc_id: str = "resume-1",
        index: int = 0,
        snippet: str = "",
        vector: Optional[Sequence[float]] = None,
        doc_type: DocType = DocType.RESUME,
    ) -> Chunk:
        if index == DOCVEC_CHUNK_INDEX:
            chunk_id = DOCVEC_ID_TEMPLATE.format(doc_id=doc_id)
        else:
            chunk_id = CHUNK_ID_TEMPLATE.format(doc_id=doc_id, index=index)
        return Chunk(
            id=chunk_id,
            doc_id=doc_id,
            doc_type=doc_type,
            chunk_index=index,
            snippet=snippet,
            vector=tuple(vector) if vector is not None else None,
        )

    return _factory


@pytest.fixture
def make_scored():
    """Factory for scored chunks with a given relevance."""
    counter = {"n": 0}

    def _factory(
        snippet: str,
        relevance: float,
        chunk_id: Optional[str] = None,
        vector: Optional[Sequence[float]] = None,
    ) -> ScoredChunk:
        counter["n"] += 1
        index = counter["n"]
        return ScoredChunk(
            id=chunk_id or CHUNK_ID_TEMPLATE.format(doc_id="resume-1", index=index),
            doc_id="resume-1",
            doc_type=DocType.RESUME,
            chunk_index=index,
            snippet=snippet,
            vector=tuple(vector) if vector is not None else None,
            relevance=relevance,
        )

    return _factory


@pytest.fixture
def make_document():
    """Factory for document records, indexed by default."""

    def _factory(
        doc_id: str = "resume-1",
        doc_type: DocType = DocType.RESUME,
        raw_text: str = "",
        status: DocumentStatus = DocumentStatus.INDEXED,
        vector_count: Optional[int] = None,
    ) -> DocumentRecord:
        return DocumentRecord(
            id=doc_id,
            doc_type=doc_type,
            raw_text=raw_text,
            status=status,
            vector_count=vector_count,
        )

    return _factory


@pytest.fixture
def make_store():
    """Async factory for an in-memory vector store seeded with chunks."""

    async def _factory(chunks: Sequence[Chunk] = (), metric: str = "cosine") -> InMemoryVectorStore:
        store = InMemoryVectorStore(metric=metric)
        await store.upsert(list(chunks))
        return store

    return _factory


@pytest.fixture
def document_store():
    return FakeDocumentStore()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def cosine_vector():
    """Unit vector with the given cosine similarity to (1, 0, 0, 0)."""

    def _factory(similarity: float) -> tuple[float, ...]:
        return (similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity)), 0.0, 0.0)

    return _factory


@pytest.fixture
def make_embedder():
    """Factory for deterministic embedders."""
    return FakeEmbedder
