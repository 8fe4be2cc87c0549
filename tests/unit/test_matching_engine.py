"""
Tests for resume_match.core.matching.matching_engine: end-to-end matching
over in-memory collaborators.
"""

import pytest

from resume_match.core.matching.matching_engine import (
    MatchingEngine,
    explain_match,
    explain_result,
    final_percent,
)
from resume_match.core.matching.skill_matcher import SkillEmbeddingCache
from resume_match.data.models import JobDescriptionRecord, MatchWeights
from resume_match.utils.constants import DocType, DocumentStatus, MatchScoreLevel
from resume_match.utils.exceptions import (
    DimensionMismatchError,
    DocumentNotFoundError,
    DocumentNotIndexedError,
    InvalidWeightsError,
    MissingPreconditionError,
)

JD_TEXT = "Backend engineer: AWS, Python, Haskell. 4+ years."
RESUME_TEXT = "Backend developer with 5 years of experience. Deployed services on EC2. Built Python data pipelines."
ORTHOGONAL = [0.0, 0.0, 1.0, 0.0]


@pytest.fixture
def job_description():
    return JobDescriptionRecord(
        id="jd-1",
        top_skills=["AWS"],
        general_skills=["Python", "Haskell"],
        skill_synonyms={"AWS": ["AWS", "Amazon Web Services", "EC2"]},
        required_years=4,
    )


@pytest.fixture
def index_chunks(make_chunk, cosine_vector):
    return [
        make_chunk(doc_id="jd-1", index=-1, vector=(1.0, 0.0, 0.0, 0.0), doc_type=DocType.JOB_DESCRIPTION),
        make_chunk(doc_id="jd-1", index=0, snippet=JD_TEXT, vector=(1.0, 0.0, 0.0, 0.0), doc_type=DocType.JOB_DESCRIPTION),
        make_chunk(index=-1, vector=(1.0, 0.0, 0.0, 0.0)),
        make_chunk(index=0, snippet="Deployed services on EC2", vector=(0.0, 1.0, 0.0, 0.0)),
        make_chunk(index=1, snippet="Built Python data pipelines", vector=cosine_vector(0.9)),
    ]


@pytest.fixture
def engine_factory(make_store, make_embedder, make_document, document_store, index_chunks, job_description):
    """Async factory for an engine over a resume, a JD and their index entries."""

    async def _factory(
        chunks=None,
        jd_record=job_description,
        resume_status=DocumentStatus.INDEXED,
        jd_raw_text=JD_TEXT,
        embedder=None,
        **engine_kwargs,
    ):
        document_store.add(
            make_document("resume-1", raw_text=RESUME_TEXT, status=resume_status, vector_count=3),
            make_document("jd-1", DocType.JOB_DESCRIPTION, raw_text=jd_raw_text, vector_count=2),
        )
        if jd_record is not None:
            document_store.add(jd_record)
        if embedder is None:
            embedder = make_embedder(vectors={
                SkillEmbeddingCache.context_text(skill): ORTHOGONAL for skill in ("AWS", "Python", "Haskell")
            })
        store = await make_store(index_chunks if chunks is None else chunks)
        return MatchingEngine(store, embedder, document_store, **engine_kwargs)

    return _factory


class TestCalculateMatch:
    @pytest.mark.asyncio
    async def test_full_match(self, engine_factory):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1")

        # Only the Python chunk is relevant: 0.875 plus a one-chunk coverage boost
        assert result.semantic_score == pytest.approx(0.875 + 0.05 / 15)
        # AWS (top, via EC2) and Python matched, Haskell missing: 3 of 4 weight
        assert result.keyword_score == pytest.approx(0.75)
        assert result.years_score == 1.0
        assert result.resume_years == 5
        assert result.required_years == 4
        assert result.final_percent == 81
        assert result.matched_skills == ["AWS", "Python"]
        assert result.missing_skills == ["Haskell"]
        assert result.score_level == MatchScoreLevel.GOOD

    @pytest.mark.asyncio
    async def test_top_chunks_are_real_resume_chunks(self, engine_factory):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1")

        ids = [c.chunk_id for c in result.top_chunks]
        assert ids == ["resume-1::chunk::1", "resume-1::chunk::0"]
        assert result.top_chunks[0].score == pytest.approx(0.875)

    @pytest.mark.asyncio
    async def test_skill_evidence_report(self, engine_factory):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1")

        aws = result.skill_evidence[0]
        assert aws.skill == "AWS"
        assert aws.matched and not aws.semantic_match
        assert aws.matched_term == "EC2"

    @pytest.mark.asyncio
    async def test_partition_and_integer_percent(self, engine_factory, job_description):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1")

        assert isinstance(result.final_percent, int)
        assert 0 <= result.final_percent <= 100
        assert not set(result.matched_skills) & set(result.missing_skills)
        assert set(result.matched_skills) | set(result.missing_skills) == set(job_description.required_skills)

    @pytest.mark.asyncio
    async def test_explanation(self, engine_factory):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1")

        assert result.explanation.startswith("Strong semantic match; good skill match")
        assert "matched 2 required skills: AWS, Python" in result.explanation
        assert "missing 1 required skills: Haskell" in result.explanation
        assert "years requirement fully met" in result.explanation
        assert "high-quality content matches found" in result.explanation
        assert explain_result(result) == result.explanation

    @pytest.mark.asyncio
    async def test_skill_embeddings_written_back(self, engine_factory, document_store):
        engine = await engine_factory()

        await engine.calculate_match("resume-1", "jd-1")

        jd_id, embeddings = document_store.saved_embeddings[0]
        assert jd_id == "jd-1"
        assert set(embeddings) == {"AWS", "Python", "Haskell"}

    @pytest.mark.asyncio
    async def test_request_weights_override(self, engine_factory):
        engine = await engine_factory()

        result = await engine.calculate_match("resume-1", "jd-1", {"semantic": 1.0, "keyword": 0.0, "years": 0.0})

        assert result.final_percent == 88
        assert result.weights == MatchWeights(semantic=1.0, keyword=0.0, years=0.0)

    @pytest.mark.asyncio
    async def test_engine_default_weights(self, engine_factory):
        engine = await engine_factory(weights=MatchWeights(semantic=0.0, keyword=0.0, years=1.0))
        result = await engine.calculate_match("resume-1", "jd-1")
        assert result.final_percent == 100

    @pytest.mark.asyncio
    async def test_invalid_weights(self, engine_factory):
        engine = await engine_factory()
        with pytest.raises(InvalidWeightsError):
            await engine.calculate_match("resume-1", "jd-1", {"semantic": 0.5, "keyword": 0.5, "years": 0.5})

    @pytest.mark.asyncio
    async def test_negative_weights(self, engine_factory):
        engine = await engine_factory()
        with pytest.raises(InvalidWeightsError):
            await engine.calculate_match("resume-1", "jd-1", {"semantic": 1.5, "keyword": -0.5, "years": 0.0})

    @pytest.mark.asyncio
    async def test_without_requirements_record(self, engine_factory):
        engine = await engine_factory(jd_record=None)

        result = await engine.calculate_match("resume-1", "jd-1")

        assert result.matched_skills == [] and result.missing_skills == []
        assert result.keyword_score == 0.0
        assert result.years_score == 1.0
        assert "no required skills matched" in result.explanation

    @pytest.mark.asyncio
    async def test_skill_failure_does_not_abort(self, engine_factory, make_embedder):
        embedder = make_embedder(
            vectors={SkillEmbeddingCache.context_text(s): ORTHOGONAL for s in ("AWS", "Python")},
            failures=[SkillEmbeddingCache.context_text("Haskell")],
        )
        engine = await engine_factory(embedder=embedder)

        result = await engine.calculate_match("resume-1", "jd-1")

        assert result.missing_skills == ["Haskell"]
        assert result.skill_evidence[2].error is not None

    @pytest.mark.asyncio
    async def test_no_resume_chunks(self, engine_factory, index_chunks):
        jd_only = [c for c in index_chunks if c.doc_id == "jd-1"]
        engine = await engine_factory(chunks=jd_only)

        result = await engine.calculate_match("resume-1", "jd-1")

        assert result.semantic_score == 0.0
        assert result.top_chunks == []
        assert result.missing_skills == ["AWS", "Python", "Haskell"]
        assert result.explanation.startswith("Weak semantic match")


class TestJobDescriptionVector:
    @pytest.mark.asyncio
    async def test_embeds_raw_text_without_docvec(self, engine_factory, index_chunks, make_embedder):
        without_docvec = [c for c in index_chunks if c.id != "jd-1::docvec"]
        embedder = make_embedder(vectors={
            JD_TEXT: [1.0, 0.0, 0.0, 0.0],
            **{SkillEmbeddingCache.context_text(s): ORTHOGONAL for s in ("AWS", "Python", "Haskell")},
        })
        engine = await engine_factory(chunks=without_docvec, embedder=embedder)

        result = await engine.calculate_match("resume-1", "jd-1")

        assert JD_TEXT in embedder.calls
        assert result.final_percent == 81

    @pytest.mark.asyncio
    async def test_no_docvec_and_no_text(self, engine_factory, index_chunks):
        without_docvec = [c for c in index_chunks if c.id != "jd-1::docvec"]
        engine = await engine_factory(chunks=without_docvec, jd_raw_text="")

        with pytest.raises(MissingPreconditionError):
            await engine.calculate_match("resume-1", "jd-1")

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, engine_factory, index_chunks, make_chunk):
        chunks = [c for c in index_chunks if c.id != "jd-1::docvec"]
        chunks.append(make_chunk(doc_id="jd-1", index=-1, vector=(1.0, 0.0, 0.0), doc_type=DocType.JOB_DESCRIPTION))
        engine = await engine_factory(chunks=chunks)

        with pytest.raises(DimensionMismatchError) as exc_info:
            await engine.calculate_match("resume-1", "jd-1")
        assert "expected 4, got 3" in str(exc_info.value)


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_unknown_resume(self, engine_factory):
        engine = await engine_factory()
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await engine.calculate_match("resume-404", "jd-1")
        assert exc_info.value.doc_id == "resume-404"
        assert str(exc_info.value) == "Resume resume-404 not found"

    @pytest.mark.asyncio
    async def test_unknown_job_description(self, engine_factory):
        engine = await engine_factory()
        with pytest.raises(DocumentNotFoundError):
            await engine.calculate_match("resume-1", "jd-404")

    @pytest.mark.asyncio
    async def test_resume_not_indexed(self, engine_factory):
        engine = await engine_factory(resume_status=DocumentStatus.PROCESSING)
        with pytest.raises(DocumentNotIndexedError) as exc_info:
            await engine.calculate_match("resume-1", "jd-1")
        assert exc_info.value.status == "processing"
        assert "not indexed yet. Status: processing" in str(exc_info.value)
        assert isinstance(exc_info.value, MissingPreconditionError)

    @pytest.mark.asyncio
    async def test_initialize_resolves_metric(self, engine_factory):
        engine = await engine_factory()
        assert engine.metric_resolver.metric is None
        await engine.initialize()
        assert engine.metric_resolver.metric is not None
        assert engine.embedder.loaded

    @pytest.mark.asyncio
    async def test_match_loads_embedder_before_reading_dimension(self, engine_factory):
        engine = await engine_factory()
        assert not engine.embedder.loaded

        await engine.calculate_match("resume-1", "jd-1")

        assert engine.embedder.loaded


class TestFinalPercent:
    def test_rounds_half_up(self):
        weights = MatchWeights(semantic=1.0, keyword=0.0, years=0.0)
        assert final_percent(weights, 0.125, 0.0, 0.0) == 13
        assert final_percent(weights, 0.135, 0.0, 0.0) == 14

    def test_bounded(self):
        weights = MatchWeights()
        assert final_percent(weights, 1.0, 1.0, 1.0) == 100
        assert final_percent(weights, 0.0, 0.0, 0.0) == 0
        assert final_percent(weights, float("nan"), 2.0, -1.0) == 55

    def test_default_weights(self):
        assert MatchWeights().as_dict() == {"semantic": 0.40, "keyword": 0.55, "years": 0.05}


class TestExplainMatch:
    def test_weak_everything(self):
        text = explain_match(0.1, 0.1, 0.0, [], ["Go", "Rust"])
        assert text == (
            "Weak semantic match; no required skills matched; "
            "missing 2 required skills: Go, Rust; years requirement not met."
        )

    def test_skill_lists_truncated(self):
        text = explain_match(0.6, 0.9, 0.85, ["a", "b", "c", "d"], [])
        assert text.startswith("Moderate semantic match; excellent skill match; matched 4 required skills: a, b, c;")
        assert "years requirement nearly met" in text
        assert "missing" not in text

    def test_partial_years(self):
        assert "years requirement partially met" in explain_match(0.5, 0.45, 0.32, [], [])
        assert "partial skill match" in explain_match(0.5, 0.45, 0.32, [], [])

    def test_high_quality_marker(self):
        assert "high-quality" not in explain_match(0.8, 0.8, 1.0, [], [], top_chunk_score=0.79)
        assert "high-quality" in explain_match(0.8, 0.8, 1.0, [], [], top_chunk_score=0.8)
