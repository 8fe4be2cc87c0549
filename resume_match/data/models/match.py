"""
Match and scoring data models for ResumeMatch.

Defines the schema for match results, scoring weights and the evidence
attached to each decision.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from resume_match.utils.constants import (
    DEFAULT_SCORING_WEIGHTS,
    LexicalMatchKind,
    MatchScoreLevel,
    SkillTier,
)

from .base import FrozenModel, utcnow


class MatchWeights(FrozenModel):
    """Weights of the three match signals. Must be non-negative and sum to 1."""

    semantic: float = Field(DEFAULT_SCORING_WEIGHTS["semantic"], ge=0)
    keyword: float = Field(DEFAULT_SCORING_WEIGHTS["keyword"], ge=0)
    years: float = Field(DEFAULT_SCORING_WEIGHTS["years"], ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "MatchWeights":
        total = self.semantic + self.keyword + self.years
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Weights must sum to 1, got {total:.4f}")
        return self

    def as_dict(self) -> dict[str, float]:
        return {"semantic": self.semantic, "keyword": self.keyword, "years": self.years}


class EvidenceChunk(FrozenModel):
    """A resume excerpt supporting a score."""

    chunk_id: str
    snippet: str = ""
    score: float = Field(0.0, ge=0.0, le=1.0)


class SkillEvidence(FrozenModel):
    """How a single required skill was decided."""

    skill: str
    tier: SkillTier = SkillTier.GENERAL
    matched: bool = False
    agg_score: float = Field(0.0, ge=0.0, le=1.0)  # mean of top-3 evidence relevances
    top_score: float = Field(0.0, ge=0.0, le=1.0)
    semantic_match: bool = False
    lexical_match: Optional[LexicalMatchKind] = None
    matched_term: Optional[str] = None  # skill or synonym found in evidence
    evidence_ids: list[str] = Field(default_factory=list)
    error: Optional[str] = None  # set when the skill failed in isolation


class MatchResult(FrozenModel):
    """
    Outcome of matching one resume against one job description.

    ``matched_skills`` and ``missing_skills`` partition the required
    skills. The explanation is derived from the numeric fields and can be
    regenerated at any time.
    """

    resume_id: str
    jd_id: str

    semantic_score: float = Field(..., ge=0.0, le=1.0)
    keyword_score: float = Field(..., ge=0.0, le=1.0)
    years_score: float = Field(..., ge=0.0, le=1.0)
    final_percent: int = Field(..., ge=0, le=100)

    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)

    resume_years: Optional[int] = Field(None, ge=0)
    required_years: Optional[int] = Field(None, ge=0)

    explanation: str = ""
    top_chunks: list[EvidenceChunk] = Field(default_factory=list)
    skill_evidence: list[SkillEvidence] = Field(default_factory=list)
    weights: MatchWeights = Field(default_factory=MatchWeights)

    calculated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def validate_partition(self) -> "MatchResult":
        overlap = set(self.matched_skills) & set(self.missing_skills)
        if overlap:
            raise ValueError(f"Skills cannot be both matched and missing: {sorted(overlap)}")
        return self

    @property
    def final_score(self) -> float:
        """Final score on a 0-1 scale."""
        return self.final_percent / 100

    @property
    def score_level(self) -> MatchScoreLevel:
        return MatchScoreLevel.from_score(self.final_score)

    @property
    def required_skills(self) -> list[str]:
        return [*self.matched_skills, *self.missing_skills]
