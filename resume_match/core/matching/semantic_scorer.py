"""
Document-level semantic score.

Aggregates the relevance of a resume's best chunks for the job
description vector into one score, front-loading the best matches and
adding small bounded boosts for quality and coverage.
"""

import math
from typing import Optional, Sequence

from resume_match.data.models import ScoredChunk
from resume_match.utils.config import get_settings
from resume_match.utils.constants import (
    BOOSTED_SCORE_CEILING,
    CAPPED_SCORE,
    COVERAGE_BOOST_CAP,
    COVERAGE_SATURATION,
    NO_SURVIVOR_DAMPING,
    POSITION_WEIGHTS,
    QUALITY_BOOST_CAP,
    QUALITY_MIN_HIGH_CHUNKS,
    QUALITY_TIERS,
    TAIL_WEIGHT_DECAY,
    WEAK_MEAN_CEILING,
)

from resume_match.core.retrieval.normalization import clamp01


def position_weight(position: int) -> float:
    """Weight of the chunk at a 0-based rank."""
    if position < len(POSITION_WEIGHTS):
        return POSITION_WEIGHTS[position]
    last = len(POSITION_WEIGHTS) - 1
    return math.exp(-TAIL_WEIGHT_DECAY * (position - last)) * POSITION_WEIGHTS[last]


def weighted_mean(scores: Sequence[float]) -> float:
    """Rank-weighted mean of scores sorted best first."""
    if not scores:
        return 0.0
    weights = [position_weight(i) for i in range(len(scores))]
    return sum(w * s for w, s in zip(weights, scores)) / sum(weights)


def quality_boost(scores: Sequence[float]) -> float:
    """Bonus for several high-relevance chunks; zero for a lone outlier."""
    high = sum(1 for s in scores if s >= QUALITY_TIERS[0][0])
    if high < QUALITY_MIN_HIGH_CHUNKS:
        return 0.0
    boost = sum(per_chunk * sum(1 for s in scores if s >= floor) for floor, per_chunk in QUALITY_TIERS)
    return min(QUALITY_BOOST_CAP, boost)


def coverage_boost(count: int) -> float:
    """Bonus for broad topical coverage, saturating at 15 chunks."""
    return min(COVERAGE_BOOST_CAP, COVERAGE_BOOST_CAP * min(count, COVERAGE_SATURATION) / COVERAGE_SATURATION)


class SemanticScorer:
    """
    Turns ranked chunk relevances into a semantic score in [0, 1].

    Chunks below the relevance threshold are treated as unrelated. When
    none pass, half the top relevance is returned so a weak match still
    counts for something.
    """

    def __init__(
        self,
        relevance_threshold: Optional[float] = None,
        top_k: Optional[int] = None,
    ):
        settings = get_settings().matching
        self.relevance_threshold = (
            settings.relevance_threshold if relevance_threshold is None else relevance_threshold
        )
        self.top_k = top_k or settings.semantic_top_k

    def score(self, ranked_chunks: Sequence[ScoredChunk]) -> float:
        """Score chunks sorted by relevance descending."""
        return self.score_relevances([chunk.relevance for chunk in ranked_chunks])

    def score_relevances(self, relevances: Sequence[float]) -> float:
        """Score relevance values sorted descending."""
        if not relevances:
            return 0.0

        values = [clamp01(r) for r in relevances]
        survivors = [v for v in values if v >= self.relevance_threshold]
        if not survivors:
            return clamp01(NO_SURVIVOR_DAMPING * max(values))

        used = survivors[: self.top_k]
        mean = weighted_mean(used)
        score = mean + quality_boost(used) + coverage_boost(len(used))

        # Boosts must not turn a mediocre core signal into a strong match
        if mean < WEAK_MEAN_CEILING and score > BOOSTED_SCORE_CEILING:
            score = CAPPED_SCORE

        return clamp01(score)
