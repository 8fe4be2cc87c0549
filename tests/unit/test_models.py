"""
Tests for Pydantic data models in resume_match.data.models.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from resume_match.data.models import (
    ChatMessage,
    Chunk,
    ChunkFilter,
    DocumentRecord,
    EvidenceChunk,
    JobDescriptionRecord,
    MatchResult,
    MatchWeights,
    QAAnswer,
    ScoredChunk,
    SkillRecord,
    normalize_synonyms,
)
from resume_match.utils.constants import DocType, DocumentStatus, SkillTier


# ── Base models ─────────────────────────────────────────────────────────────


class TestBaseDocument:
    def test_model_dump_mongo_uses_id_alias(self):
        doc = DocumentRecord(id="doc-1", doc_type=DocType.RESUME, raw_text="text")
        dumped = doc.model_dump_mongo()
        assert dumped["_id"] == "doc-1"
        assert "id" not in dumped
        assert "error_message" not in dumped

    def test_validates_from_mongo_document(self):
        doc = DocumentRecord.model_validate({"_id": "doc-1", "doc_type": "resume", "status": "indexed"})
        assert doc.id == "doc-1"
        assert doc.is_indexed

    def test_timestamps_present(self):
        doc = DocumentRecord(id="doc-1", doc_type=DocType.RESUME)
        assert isinstance(doc.created_at, datetime)
        assert doc.created_at.tzinfo is not None

    def test_enum_defaults_stored_as_values(self):
        doc = DocumentRecord(id="doc-1", doc_type=DocType.RESUME)
        assert doc.status == "pending"
        assert str(doc.status) == "pending"


# ── Chunk ───────────────────────────────────────────────────────────────────


class TestChunk:
    def test_snippet_truncated(self):
        chunk = Chunk(id="d::chunk::0", doc_id="d", doc_type=DocType.RESUME, chunk_index=0, snippet="x" * 500)
        assert len(chunk.snippet) == 300

    def test_docvec(self):
        chunk = Chunk(id="d::docvec", doc_id="d", doc_type=DocType.RESUME, chunk_index=-1)
        assert chunk.is_docvec
        assert chunk.dimension is None

    def test_index_below_docvec_rejected(self):
        with pytest.raises(ValidationError):
            Chunk(id="d::x", doc_id="d", doc_type=DocType.RESUME, chunk_index=-2)

    def test_immutable(self):
        chunk = Chunk(id="d::chunk::0", doc_id="d", doc_type=DocType.RESUME, chunk_index=0)
        with pytest.raises(ValidationError):
            chunk.snippet = "changed"

    def test_metadata_round_trip(self):
        chunk = Chunk(id="d::chunk::3", doc_id="d", doc_type=DocType.RESUME, chunk_index=3, snippet="Python")
        rebuilt = Chunk.from_metadata(chunk.id, chunk.to_metadata(), vector=[1, 2])
        assert rebuilt.model_copy(update={"vector": None}) == chunk
        assert rebuilt.vector == (1.0, 2.0)

    def test_missing_chunk_index_treated_as_docvec(self):
        chunk = Chunk.from_metadata("d::x", {"doc_id": "d", "doc_type": "resume"})
        assert chunk.is_docvec
        assert not ChunkFilter.for_document("d", DocType.RESUME).matches(chunk)

    def test_scored_chunk_relevance_bounded(self):
        with pytest.raises(ValidationError):
            ScoredChunk(id="d::chunk::0", doc_id="d", doc_type=DocType.RESUME, chunk_index=0, relevance=1.5)


class TestChunkFilter:
    @pytest.fixture
    def chunk(self):
        return Chunk(id="d::chunk::0", doc_id="d", doc_type=DocType.RESUME, chunk_index=0)

    def test_matches_own_document(self, chunk):
        assert ChunkFilter.for_document("d", DocType.RESUME).matches(chunk)

    def test_rejects_other_document(self, chunk):
        assert not ChunkFilter.for_document("other", DocType.RESUME).matches(chunk)

    def test_rejects_other_type(self, chunk):
        assert not ChunkFilter.for_document("d", DocType.JOB_DESCRIPTION).matches(chunk)


# ── Documents ───────────────────────────────────────────────────────────────


class TestDocumentRecord:
    @pytest.mark.parametrize(
        "vector_count, cap, expected",
        [(None, 200, 199), (None, 50, 50), (11, 200, 10), (1, 200, 0), (0, 200, 199)],
    )
    def test_expected_chunk_count(self, vector_count, cap, expected):
        doc = DocumentRecord(id="d", doc_type=DocType.RESUME, vector_count=vector_count)
        assert doc.expected_chunk_count(cap) == expected

    def test_not_indexed_until_status_indexed(self):
        doc = DocumentRecord(id="d", doc_type=DocType.RESUME, status=DocumentStatus.PROCESSING)
        assert not doc.is_indexed


class TestSkillSynonyms:
    def test_skill_first_and_deduplicated(self):
        assert normalize_synonyms("AWS", ["Amazon Web Services", "aws", "EC2", " "]) == [
            "AWS", "Amazon Web Services", "EC2",
        ]

    def test_capped_at_six_terms(self):
        terms = normalize_synonyms("K8s", [f"term{i}" for i in range(10)])
        assert len(terms) == 6
        assert terms[0] == "K8s"

    def test_skill_record_normalizes(self):
        record = SkillRecord(skill="Python", synonyms=["py", "Python"], tier=SkillTier.TOP)
        assert record.synonyms == ["Python", "py"]
        assert record.weight == 2
        assert SkillRecord(skill="Go").weight == 1


class TestJobDescriptionRecord:
    def test_skill_records_order_and_dedup(self):
        jd = JobDescriptionRecord(
            id="jd",
            top_skills=["Python", "AWS"],
            general_skills=["Docker", "Python", "  "],
            skill_synonyms={"AWS": ["EC2"]},
            skill_embeddings={"Docker": [0.1, 0.2]},
        )
        records = jd.skill_records()

        assert [r.skill for r in records] == ["Python", "AWS", "Docker"]
        assert [r.tier for r in records] == ["top", "top", "general"]
        assert records[1].synonyms == ["AWS", "EC2"]
        assert records[2].embedding == [0.1, 0.2]
        assert jd.required_skills == ["Python", "AWS", "Docker"]

    def test_zero_years_means_no_requirement(self):
        assert JobDescriptionRecord(id="jd", required_years=0).years_requirement is None
        assert JobDescriptionRecord(id="jd", required_years=3).years_requirement == 3


# ── Match ───────────────────────────────────────────────────────────────────


class TestMatchWeights:
    def test_defaults_sum_to_one(self):
        weights = MatchWeights()
        assert sum(weights.as_dict().values()) == pytest.approx(1.0)

    def test_sum_enforced(self):
        with pytest.raises(ValidationError):
            MatchWeights(semantic=0.5, keyword=0.5, years=0.5)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            MatchWeights(semantic=1.2, keyword=-0.2, years=0.0)


class TestMatchResult:
    def _result(self, **overrides):
        data = dict(
            resume_id="r",
            jd_id="j",
            semantic_score=0.8,
            keyword_score=0.5,
            years_score=1.0,
            final_percent=65,
            matched_skills=["Python"],
            missing_skills=["Go"],
        )
        data.update(overrides)
        return MatchResult(**data)

    def test_required_skills_union(self):
        assert self._result().required_skills == ["Python", "Go"]

    def test_partition_enforced(self):
        with pytest.raises(ValidationError):
            self._result(missing_skills=["Python"])

    def test_percent_bounded(self):
        with pytest.raises(ValidationError):
            self._result(final_percent=101)

    def test_final_score(self):
        assert self._result().final_score == pytest.approx(0.65)


# ── Question answering ──────────────────────────────────────────────────────


class TestChatModels:
    def test_role_restricted(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="system", content="hi")

    def test_answer_with_evidence(self):
        answer = QAAnswer(
            question="Where did they work?",
            answer="At Acme.",
            evidence=[EvidenceChunk(chunk_id="r::chunk::0", snippet="Acme", score=0.7)],
        )
        assert answer.evidence[0].chunk_id == "r::chunk::0"
