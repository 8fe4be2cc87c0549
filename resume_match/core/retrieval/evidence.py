"""
Evidence retrieval with fallbacks.

Similarity queries restricted to one document can legitimately come back
empty (for instance when the index ignores part of the filter). Retrieval
then degrades in bounded steps:

1. filtered query
2. unfiltered query over a wider pool, filtered locally
3. fetch of the document's chunk ids, scored locally in the index metric

All results are normalized with the same metric, so relevance values are
comparable whichever step produced them.
"""

from typing import Optional, Sequence

from resume_match.data.models import ChunkFilter, DocumentRecord, ScoredChunk
from resume_match.ml.embeddings.vector_store import VectorStore, best_first, compute_raw_scores
from resume_match.utils.config import get_settings
from resume_match.utils.constants import CHUNK_ID_TEMPLATE, DocType, IndexMetric
from resume_match.utils.exceptions import DimensionMismatchError, RetrievalError
from resume_match.utils.logger import LoggerMixin

from .normalization import MetricResolver, normalize_chunks


class EvidenceRetriever(LoggerMixin):
    """Retrieves a document's most relevant chunks for a query vector."""

    def __init__(
        self,
        vector_store: VectorStore,
        metric_resolver: Optional[MetricResolver] = None,
        fallback_top_k: Optional[int] = None,
        max_fetch_chunks: Optional[int] = None,
    ):
        settings = get_settings().vector_store
        self.vector_store = vector_store
        self.metric_resolver = metric_resolver or MetricResolver(vector_store)
        self.fallback_top_k = fallback_top_k or settings.fallback_top_k
        self.max_fetch_chunks = max_fetch_chunks or settings.max_fetch_chunks

    async def retrieve(
        self,
        query_vector: Sequence[float],
        document: DocumentRecord,
        top_k: int,
        doc_type: DocType = DocType.RESUME,
    ) -> list[ScoredChunk]:
        """
        Get up to ``top_k`` real chunks of a document, most relevant first.

        Args:
            query_vector: Query embedding.
            document: Document whose chunks are searched.
            top_k: Maximum number of chunks.
            doc_type: Document type recorded in the index metadata.

        Returns:
            Chunks with normalized relevance, sorted by relevance descending.
            Empty when the document has no retrievable chunks.

        Raises:
            DimensionMismatchError: Stored vectors differ in size from the query.
            RetrievalError: Every retrieval step failed.
        """
        if top_k <= 0:
            return []

        metric = await self.metric_resolver.resolve()
        chunk_filter = ChunkFilter.for_document(document.id, doc_type)
        failures: list[Exception] = []

        steps = (
            ("filtered query", self._filtered_query),
            ("unfiltered query", self._unfiltered_query),
            ("fetch by id", self._fetch_by_ids),
        )
        for name, step in steps:
            try:
                chunks = await step(query_vector, document, chunk_filter, metric, top_k)
            except DimensionMismatchError:
                raise
            except Exception as e:
                self.logger.warning(f"Retrieval step '{name}' failed for {document.id}: {e}")
                failures.append(e)
                continue

            if chunks:
                if name != "filtered query":
                    self.logger.info(f"Retrieved {len(chunks)} chunks for {document.id} via {name}")
                normalized = normalize_chunks(chunks, metric)
                return sorted(normalized, key=lambda c: c.relevance, reverse=True)

            self.logger.debug(f"Retrieval step '{name}' returned no chunks for {document.id}")

        if len(failures) == len(steps):
            raise RetrievalError(
                f"All retrieval steps failed for document {document.id}",
                doc_id=document.id,
                cause=failures[-1],
            )
        return []

    async def _filtered_query(
        self,
        query_vector: Sequence[float],
        document: DocumentRecord,
        chunk_filter: ChunkFilter,
        metric: IndexMetric,
        top_k: int,
    ) -> list[ScoredChunk]:
        return await self.vector_store.query(query_vector, top_k, chunk_filter)

    async def _unfiltered_query(
        self,
        query_vector: Sequence[float],
        document: DocumentRecord,
        chunk_filter: ChunkFilter,
        metric: IndexMetric,
        top_k: int,
    ) -> list[ScoredChunk]:
        pool = await self.vector_store.query(query_vector, max(self.fallback_top_k, top_k))
        return [chunk for chunk in pool if chunk_filter.matches(chunk)][:top_k]

    async def _fetch_by_ids(
        self,
        query_vector: Sequence[float],
        document: DocumentRecord,
        chunk_filter: ChunkFilter,
        metric: IndexMetric,
        top_k: int,
    ) -> list[ScoredChunk]:
        count = document.expected_chunk_count(self.max_fetch_chunks)
        ids = [CHUNK_ID_TEMPLATE.format(doc_id=document.id, index=i) for i in range(count)]
        fetched = await self.vector_store.fetch_by_ids(ids)

        chunks = [c for c in fetched if c.vector is not None and chunk_filter.matches(c)]
        if not chunks:
            return []

        expected = len(query_vector)
        for chunk in chunks:
            if len(chunk.vector) != expected:
                raise DimensionMismatchError(expected, len(chunk.vector), context=f"Chunk {chunk.id}")

        raw_scores = compute_raw_scores(query_vector, [c.vector for c in chunks], metric)
        scored = [
            ScoredChunk(**chunk.model_dump(), raw_score=float(score))
            for chunk, score in zip(chunks, raw_scores)
        ]
        scored.sort(key=lambda c: c.raw_score, reverse=best_first(metric))
        return scored[:top_k]
