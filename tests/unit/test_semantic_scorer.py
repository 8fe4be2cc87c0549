"""
Tests for resume_match.core.matching.semantic_scorer.
"""

import math

import pytest

from resume_match.core.matching.semantic_scorer import (
    SemanticScorer,
    coverage_boost,
    position_weight,
    quality_boost,
    weighted_mean,
)


@pytest.fixture
def scorer():
    return SemanticScorer(relevance_threshold=0.2, top_k=20)


class TestPositionWeight:
    def test_head_schedule(self):
        assert position_weight(0) == 0.40
        assert position_weight(1) == 0.25
        assert position_weight(9) == 0.003

    def test_tail_decays(self):
        assert position_weight(10) == pytest.approx(0.003 * math.exp(-0.2))
        assert position_weight(15) < position_weight(10)

    def test_weighted_mean_of_uniform_scores(self):
        assert weighted_mean([0.6] * 12) == pytest.approx(0.6)

    def test_weighted_mean_front_loaded(self):
        assert weighted_mean([1.0, 0.0]) == pytest.approx(0.4 / 0.65)


class TestBoosts:
    def test_quality_needs_three_high_chunks(self):
        assert quality_boost([0.95, 0.95]) == 0.0

    def test_quality_tiers_accumulate(self):
        # 3 x 0.015 + 3 x 0.025 + 2 x 0.03
        assert quality_boost([0.95, 0.9, 0.88]) == pytest.approx(0.18)

    def test_quality_capped(self):
        assert quality_boost([0.99] * 10) == pytest.approx(0.20)

    def test_coverage_saturates(self):
        assert coverage_boost(1) == pytest.approx(0.05 / 15)
        assert coverage_boost(15) == pytest.approx(0.05)
        assert coverage_boost(40) == pytest.approx(0.05)


class TestSemanticScorer:
    def test_empty_is_zero(self, scorer):
        assert scorer.score([]) == 0.0
        assert scorer.score_relevances([]) == 0.0

    def test_no_survivors_damped(self, scorer):
        assert scorer.score_relevances([0.15, 0.1]) == pytest.approx(0.075)

    def test_single_relevant_chunk(self, scorer):
        assert scorer.score_relevances([0.875]) == pytest.approx(0.875 + 0.05 / 15)

    def test_only_survivors_count(self, scorer):
        with_noise = scorer.score_relevances([0.8, 0.1, 0.05])
        assert with_noise == pytest.approx(scorer.score_relevances([0.8]))

    def test_boosts_capped_for_mediocre_mean(self, scorer):
        # Many chunks just at the quality floor: mean under 0.7 but boosts push past 0.9
        relevances = [0.7] * 13 + [0.2] * 7
        assert scorer.score_relevances(relevances) == pytest.approx(0.85)

    def test_strong_match_clamped_to_one(self, scorer):
        assert scorer.score_relevances([1.0] * 20) == 1.0

    def test_only_top_k_used(self):
        scorer = SemanticScorer(relevance_threshold=0.2, top_k=2)
        assert scorer.score_relevances([0.9, 0.8, 0.3]) == scorer.score_relevances([0.9, 0.8])

    def test_score_reads_chunk_relevance(self, scorer, make_scored):
        chunks = [make_scored("a", 0.9), make_scored("b", 0.5)]
        assert scorer.score(chunks) == scorer.score_relevances([0.9, 0.5])

    @pytest.mark.parametrize("relevances", [[0.3], [0.9], [0.5, 0.4]])
    def test_never_decreases_from_empty(self, scorer, relevances):
        assert scorer.score_relevances(relevances) >= scorer.score_relevances([])

    def test_never_decreases_when_first_relevant_chunk_added(self, scorer):
        before = scorer.score_relevances([0.15])
        after = scorer.score_relevances([0.25, 0.15])
        assert after >= before

    @pytest.mark.parametrize("value", [0.25, 0.6, 0.75, 0.95])
    def test_never_decreases_when_tie_appended(self, scorer, value):
        previous = scorer.score_relevances([value])
        for n in range(2, 26):
            current = scorer.score_relevances([value] * n)
            assert current >= previous - 1e-12
            previous = current

    @pytest.mark.parametrize("relevances", [[0.0], [0.5] * 30, [1.0, 0.9, 0.2], [0.21] * 3])
    def test_output_in_unit_interval(self, scorer, relevances):
        assert 0.0 <= scorer.score_relevances(relevances) <= 1.0
