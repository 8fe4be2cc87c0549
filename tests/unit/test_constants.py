"""
Tests for resume_match.utils.constants: enums, scoring weights and thresholds.
"""

import pytest

from resume_match.utils.constants import (
    CHUNK_ID_TEMPLATE,
    DEFAULT_SCORING_WEIGHTS,
    DOCVEC_ID_TEMPLATE,
    POSITION_WEIGHTS,
    QUALITY_TIERS,
    SCORE_THRESHOLDS,
    AuditAction,
    DocumentStatus,
    IndexMetric,
    MatchScoreLevel,
)


# ── MatchScoreLevel.from_score() ────────────────────────────────────────────


class TestMatchScoreLevelFromScore:
    def test_excellent_at_threshold(self):
        assert MatchScoreLevel.from_score(0.85) == MatchScoreLevel.EXCELLENT

    def test_excellent_at_max(self):
        assert MatchScoreLevel.from_score(1.0) == MatchScoreLevel.EXCELLENT

    def test_good_at_threshold(self):
        assert MatchScoreLevel.from_score(0.70) == MatchScoreLevel.GOOD

    def test_good_just_below_excellent(self):
        assert MatchScoreLevel.from_score(0.849) == MatchScoreLevel.GOOD

    def test_fair_at_threshold(self):
        assert MatchScoreLevel.from_score(0.50) == MatchScoreLevel.FAIR

    def test_poor_below_fair(self):
        assert MatchScoreLevel.from_score(0.499) == MatchScoreLevel.POOR

    def test_poor_at_zero(self):
        assert MatchScoreLevel.from_score(0.0) == MatchScoreLevel.POOR


# ── Enum value correctness ──────────────────────────────────────────────────


class TestIndexMetric:
    def test_all_values_present(self):
        assert {m.value for m in IndexMetric} == {"cosine", "euclidean", "dotproduct"}


class TestDocumentStatus:
    def test_indexed_value(self):
        assert DocumentStatus.INDEXED.value == "indexed"

    def test_all_values_present(self):
        assert {s.value for s in DocumentStatus} == {"pending", "processing", "indexed", "failed"}


class TestAuditAction:
    def test_all_values_present(self):
        expected = {"match_calculated", "question_answered", "skill_embeddings_cached"}
        assert {a.value for a in AuditAction} == expected


# ── Scoring constants ───────────────────────────────────────────────────────


class TestDefaultScoringWeights:
    def test_weights_sum_to_one(self):
        assert abs(sum(DEFAULT_SCORING_WEIGHTS.values()) - 1.0) < 1e-9

    def test_expected_keys(self):
        assert set(DEFAULT_SCORING_WEIGHTS) == {"semantic", "keyword", "years"}

    def test_keyword_is_largest(self):
        assert DEFAULT_SCORING_WEIGHTS["keyword"] == max(DEFAULT_SCORING_WEIGHTS.values())


class TestScoreThresholds:
    def test_ordered(self):
        assert SCORE_THRESHOLDS["excellent"] > SCORE_THRESHOLDS["good"] > SCORE_THRESHOLDS["fair"]


class TestPositionWeights:
    def test_ten_front_loaded_weights(self):
        assert len(POSITION_WEIGHTS) == 10
        assert list(POSITION_WEIGHTS) == sorted(POSITION_WEIGHTS, reverse=True)

    @pytest.mark.parametrize("floor, per_chunk", QUALITY_TIERS)
    def test_quality_tiers_positive(self, floor, per_chunk):
        assert 0 < floor <= 1
        assert per_chunk > 0


# ── Index id scheme ─────────────────────────────────────────────────────────


class TestIdTemplates:
    def test_docvec_id(self):
        assert DOCVEC_ID_TEMPLATE.format(doc_id="abc") == "abc::docvec"

    def test_chunk_id(self):
        assert CHUNK_ID_TEMPLATE.format(doc_id="abc", index=7) == "abc::chunk::7"
