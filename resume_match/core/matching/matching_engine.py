"""
Resume to job description match engine.

Combines three signals into one bounded, explainable score:

- semantic: how close the resume's best chunks are to the job
  description vector
- keyword: tier-weighted share of required skills supported by resume
  evidence
- years: extracted experience against the required years
"""

import math
from typing import Optional, Sequence

from pydantic import ValidationError

from resume_match.core.retrieval.evidence import EvidenceRetriever
from resume_match.core.retrieval.mmr import select_evidence
from resume_match.core.retrieval.normalization import MetricResolver, clamp01
from resume_match.core.tasks import gather_or_cancel
from resume_match.data.models import (
    DocumentRecord,
    EvidenceChunk,
    MatchResult,
    MatchWeights,
    ScoredChunk,
)
from resume_match.data.repositories.base import DocumentStore
from resume_match.ml.embeddings.embedding_model import EmbeddingGenerator
from resume_match.ml.embeddings.vector_store import VectorStore
from resume_match.utils.config import get_settings
from resume_match.utils.constants import (
    DOCVEC_ID_TEMPLATE,
    EXPLANATION_SKILL_LIST_LIMIT,
    HIGH_QUALITY_CHUNK_SCORE,
    KEYWORD_EXPLANATION_BUCKETS,
    SEMANTIC_EXPLANATION_BUCKETS,
    TOP_EVIDENCE_CHUNKS,
    AuditAction,
    IndexMetric,
)
from resume_match.utils.exceptions import (
    DimensionMismatchError,
    DocumentNotFoundError,
    DocumentNotIndexedError,
    InvalidWeightsError,
    MissingPreconditionError,
)
from resume_match.utils.logger import audit_log, get_logger

from .experience import ExperienceExtractor, years_score
from .semantic_scorer import SemanticScorer
from .skill_matcher import SkillEmbeddingCache, SkillMatcher

logger = get_logger(__name__)


def final_percent(weights: MatchWeights, semantic: float, keyword: float, years: float) -> int:
    """Weighted sum of clamped signals as an integer percent, rounded half up."""
    total = (
        weights.semantic * clamp01(semantic)
        + weights.keyword * clamp01(keyword)
        + weights.years * clamp01(years)
    )
    return min(100, max(0, math.floor(clamp01(total) * 100 + 0.5)))


def explain_match(
    semantic_score: float,
    keyword_score: float,
    years_score: float,
    matched_skills: Sequence[str],
    missing_skills: Sequence[str],
    top_chunk_score: Optional[float] = None,
) -> str:
    """
    Build the human-readable explanation of a match.

    Derived entirely from the numeric fields, so it can be regenerated
    from a stored result.
    """
    parts: list[str] = []

    parts.append(next(
        (label for floor, label in SEMANTIC_EXPLANATION_BUCKETS if semantic_score >= floor),
        "Weak semantic match",
    ))

    keyword_label = next(
        (label for floor, label in KEYWORD_EXPLANATION_BUCKETS if keyword_score >= floor),
        None,
    )
    if keyword_label:
        parts.append(keyword_label)

    if matched_skills:
        listed = ", ".join(matched_skills[:EXPLANATION_SKILL_LIST_LIMIT])
        parts.append(f"matched {len(matched_skills)} required skills: {listed}")
    else:
        parts.append("no required skills matched")

    if missing_skills:
        listed = ", ".join(missing_skills[:EXPLANATION_SKILL_LIST_LIMIT])
        parts.append(f"missing {len(missing_skills)} required skills: {listed}")

    if years_score >= 1.0:
        parts.append("years requirement fully met")
    elif years_score >= 0.8:
        parts.append("years requirement nearly met")
    elif years_score > 0:
        parts.append("years requirement partially met")
    else:
        parts.append("years requirement not met")

    if top_chunk_score is not None and top_chunk_score >= HIGH_QUALITY_CHUNK_SCORE:
        parts.append("high-quality content matches found")

    return "; ".join(parts) + "."


def explain_result(result: MatchResult) -> str:
    """Regenerate the explanation of a stored match result."""
    return explain_match(
        result.semantic_score,
        result.keyword_score,
        result.years_score,
        result.matched_skills,
        result.missing_skills,
        result.top_chunks[0].score if result.top_chunks else None,
    )


class MatchingEngine:
    """
    Engine for scoring a resume against a job description.

    Call ``initialize()`` before serving requests to resolve the index
    metric up front; otherwise it is resolved on first use.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: EmbeddingGenerator,
        document_store: DocumentStore,
        weights: Optional[MatchWeights | dict[str, float]] = None,
        semantic_scorer: Optional[SemanticScorer] = None,
        skill_matcher: Optional[SkillMatcher] = None,
        experience_extractor: Optional[ExperienceExtractor] = None,
    ):
        """
        Initialize the matching engine.

        Args:
            vector_store: Index holding chunk and docvec vectors.
            embedder: Generator for JD text and skill embeddings.
            document_store: Source of document text, status and JD requirements.
            weights: Default signal weights; taken from settings if omitted.
            semantic_scorer: Override for the semantic scorer.
            skill_matcher: Override for the skill matcher.
            experience_extractor: Override for the experience extractor.
        """
        self.vector_store = vector_store
        self.embedder = embedder
        self.document_store = document_store

        self.metric_resolver = MetricResolver(vector_store)
        self.retriever = EvidenceRetriever(vector_store, self.metric_resolver)
        self.semantic_scorer = semantic_scorer or SemanticScorer()
        self.skill_matcher = skill_matcher or SkillMatcher(
            self.retriever,
            SkillEmbeddingCache(embedder, document_store),
        )
        self.experience_extractor = experience_extractor or ExperienceExtractor()

        self.weights = self.resolve_weights(weights) if weights is not None else self.default_weights()

    @staticmethod
    def default_weights() -> MatchWeights:
        matching = get_settings().matching
        return MatchWeights(
            semantic=matching.weight_semantic,
            keyword=matching.weight_keyword,
            years=matching.weight_years,
        )

    @staticmethod
    def resolve_weights(weights: MatchWeights | dict[str, float]) -> MatchWeights:
        """Validate caller-supplied weights."""
        if isinstance(weights, MatchWeights):
            return weights
        try:
            return MatchWeights(**weights)
        except ValidationError as e:
            raise InvalidWeightsError(dict(weights)) from e

    async def initialize(self) -> IndexMetric:
        """Load the embedding model and resolve the index metric before accepting requests."""
        await self.embedder.ensure_loaded()
        return await self.metric_resolver.resolve()

    # -------------------------------------------------------------------------
    # Match API
    # -------------------------------------------------------------------------

    async def calculate_match(
        self,
        resume_id: str,
        jd_id: str,
        weights: Optional[MatchWeights | dict[str, float]] = None,
    ) -> MatchResult:
        """
        Match a resume against a job description.

        Args:
            resume_id: Indexed resume document id.
            jd_id: Indexed job description document id.
            weights: Per-request weights overriding the engine default.

        Returns:
            Immutable match result.

        Raises:
            MissingPreconditionError: A document is missing or not indexed.
            DimensionMismatchError: Vectors do not match the embedding dimension.
            InvalidWeightsError: Weights are negative or do not sum to 1.
            RetrievalError: The vector index could not be read at all.
        """
        match_weights = self.resolve_weights(weights) if weights is not None else self.weights
        logger.info(f"Starting match calculation - Resume: {resume_id}, JD: {jd_id}")

        resume = await self._require_indexed(resume_id, "Resume")
        jd_doc = await self._require_indexed(jd_id, "Job description")
        jd_record = await self.document_store.get_job_description(jd_id)

        await self.metric_resolver.resolve()

        await self.embedder.ensure_loaded()
        expected_dimension = self.embedder.dimension
        jd_vector = await self._jd_vector(jd_doc)
        if len(jd_vector) != expected_dimension:
            raise DimensionMismatchError(expected_dimension, len(jd_vector), context="Job description vector")

        skills = jd_record.skill_records() if jd_record else []
        ranked, skill_outcome = await gather_or_cancel(
            self.retriever.retrieve(jd_vector, resume, self.semantic_scorer.top_k),
            self.skill_matcher.match_skills(skills, resume, jd_id, expected_dimension),
        )

        semantic = clamp01(self.semantic_scorer.score(ranked))
        keyword = clamp01(skill_outcome.keyword_score)

        required_years = jd_record.years_requirement if jd_record else None
        resume_years = self.experience_extractor.extract_years(resume.raw_text)
        years = clamp01(years_score(required_years, resume_years))

        top_chunks = [
            EvidenceChunk(chunk_id=c.id, snippet=c.snippet, score=c.relevance)
            for c in ranked[:TOP_EVIDENCE_CHUNKS]
        ]

        result = MatchResult(
            resume_id=resume_id,
            jd_id=jd_id,
            semantic_score=semantic,
            keyword_score=keyword,
            years_score=years,
            final_percent=final_percent(match_weights, semantic, keyword, years),
            matched_skills=skill_outcome.matched,
            missing_skills=skill_outcome.missing,
            resume_years=resume_years,
            required_years=required_years,
            explanation=explain_match(
                semantic,
                keyword,
                years,
                skill_outcome.matched,
                skill_outcome.missing,
                top_chunks[0].score if top_chunks else None,
            ),
            top_chunks=top_chunks,
            skill_evidence=skill_outcome.evidence,
            weights=match_weights,
        )

        logger.info(
            f"Match calculation completed: {result.final_percent}% match "
            f"(semantic: {semantic:.4f}, keyword: {keyword:.4f}, years: {years:.4f})"
        )
        audit_log(
            AuditAction.MATCH_CALCULATED.value,
            {
                "resume_id": resume_id,
                "jd_id": jd_id,
                "final_percent": result.final_percent,
                "semantic_score": round(semantic, 4),
                "keyword_score": round(keyword, 4),
                "years_score": round(years, 4),
                "matched_skills": len(result.matched_skills),
                "missing_skills": len(result.missing_skills),
                "weights": match_weights.as_dict(),
            },
        )
        return result

    def select_evidence(
        self,
        query_vector: Optional[Sequence[float]],
        candidate_pool: Sequence[ScoredChunk],
        k: int,
        lambda_: Optional[float] = None,
    ) -> list[ScoredChunk]:
        """Deduplicate and diversity-select evidence; shared with question answering."""
        mmr_lambda = get_settings().matching.mmr_lambda if lambda_ is None else lambda_
        return select_evidence(query_vector, candidate_pool, k, mmr_lambda)

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    async def _require_indexed(self, doc_id: str, label: str) -> DocumentRecord:
        document = await self.document_store.get_document(doc_id)
        if document is None:
            logger.error(f"{label} document {doc_id} not found")
            raise DocumentNotFoundError(doc_id, doc_label=label)
        if not document.is_indexed:
            logger.error(f"{label} {doc_id} is not indexed yet. Status: {document.status}")
            raise DocumentNotIndexedError(doc_id, str(document.status), doc_label=label)
        return document

    async def _jd_vector(self, jd_doc: DocumentRecord) -> list[float]:
        """
        Job description vector: the stored docvec, else an embedding of its text.
        """
        docvec_id = DOCVEC_ID_TEMPLATE.format(doc_id=jd_doc.id)
        try:
            docvec = await self.vector_store.fetch_by_id(docvec_id)
            if docvec is not None and docvec.vector:
                return list(docvec.vector)
        except Exception as e:
            logger.warning(f"Failed to fetch JD vector {docvec_id}: {e}")

        if jd_doc.raw_text:
            logger.info(f"No docvec for JD {jd_doc.id}; embedding its raw text")
            return list(await self.embedder.embed(jd_doc.raw_text))

        raise MissingPreconditionError(
            f"Cannot get JD vector: no docvec and no raw text available for JD: {jd_doc.id}",
            doc_id=jd_doc.id,
            status=str(jd_doc.status),
        )


# Singleton instance
_matching_engine: Optional[MatchingEngine] = None


def get_matching_engine() -> MatchingEngine:
    """Get the matching engine singleton wired to the configured backends."""
    global _matching_engine
    if _matching_engine is None:
        from resume_match.data.repositories import DocumentRepository
        from resume_match.ml.embeddings import get_chunk_store, get_embedding_model

        _matching_engine = MatchingEngine(
            vector_store=get_chunk_store(),
            embedder=get_embedding_model(),
            document_store=DocumentRepository(),
        )
    return _matching_engine
