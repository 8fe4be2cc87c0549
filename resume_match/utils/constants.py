"""
Application-wide constants for ResumeMatch.

This module contains all constant values used throughout the application.
Tunable thresholds that operators may want to override live in
``MatchingSettings``; the values here are the reference defaults and the
fixed calibration constants of the scoring algorithm.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "ResumeMatch"
APP_DISPLAY_NAME: Final[str] = "Resume to Job Description Match Engine"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# Score Normalization
# =============================================================================

# Real resume/JD cosine similarities cluster in 0.2-1.0; anything below the
# floor is treated as noise.
COSINE_NOISE_FLOOR: Final[float] = 0.2
COSINE_RANGE: Final[float] = 0.8

# Saturation constant for the deployed embedding scale.
DOT_MAX: Final[float] = 40.0

# Euclidean distance at which relevance reaches zero.
MAX_DIST: Final[float] = 10.0


# =============================================================================
# Scoring Constants
# =============================================================================

# Default weights for the final match percentage (must sum to 1)
DEFAULT_SCORING_WEIGHTS: Final[dict[str, float]] = {
    "semantic": 0.40,
    "keyword": 0.55,
    "years": 0.05,
}

# Score thresholds
SCORE_THRESHOLDS: Final[dict[str, float]] = {
    "excellent": 0.85,
    "good": 0.70,
    "fair": 0.50,
    "poor": 0.30,
}

# Semantic scorer
RELEVANCE_THRESHOLD: Final[float] = 0.2
SEMANTIC_TOP_K: Final[int] = 20
NO_SURVIVOR_DAMPING: Final[float] = 0.5
POSITION_WEIGHTS: Final[tuple[float, ...]] = (
    0.40, 0.25, 0.15, 0.10, 0.05, 0.025, 0.015, 0.01, 0.005, 0.003,
)
TAIL_WEIGHT_DECAY: Final[float] = 0.2

QUALITY_BOOST_CAP: Final[float] = 0.20
QUALITY_MIN_HIGH_CHUNKS: Final[int] = 3
# (relevance floor, boost per chunk at or above it)
QUALITY_TIERS: Final[tuple[tuple[float, float], ...]] = (
    (0.70, 0.015),
    (0.85, 0.025),
    (0.90, 0.03),
)
COVERAGE_BOOST_CAP: Final[float] = 0.05
COVERAGE_SATURATION: Final[int] = 15

# Guard against boosts turning a mediocre core signal into a strong match
WEAK_MEAN_CEILING: Final[float] = 0.70
BOOSTED_SCORE_CEILING: Final[float] = 0.90
CAPPED_SCORE: Final[float] = 0.85

# Skill matcher
SEMANTIC_THRESHOLD: Final[float] = 0.6
EVIDENCE_THRESHOLD: Final[float] = 0.6
SKILL_TARGET_K: Final[int] = 10
SKILL_AGGREGATE_TOP_N: Final[int] = 3
TOP_SKILL_WEIGHT: Final[int] = 2
GENERAL_SKILL_WEIGHT: Final[int] = 1
MAX_SYNONYMS_PER_SKILL: Final[int] = 6
SKILL_CONTEXT_TEMPLATE: Final[str] = "Skill: {skill} - technical expertise and experience"
SKILL_CACHE_MAX_JOBS: Final[int] = 256

# Lexical matching
MIN_SUBSTRING_TERM_LENGTH: Final[int] = 3
MIN_FUZZY_TERM_LENGTH: Final[int] = 5
FUZZY_RATIO_THRESHOLD: Final[float] = 0.88
ACRONYM_MIN_LENGTH: Final[int] = 3
ACRONYM_MAX_LENGTH: Final[int] = 5
# Extra words allowed between the words of a multi-word term
CONJUNCTION_WINDOW_SLACK: Final[int] = 2
LEXICAL_STOPWORDS: Final[frozenset[str]] = frozenset({
    "and", "or", "of", "the", "for", "with", "in", "on", "to", "a", "an",
})

# Diversity selection
DEFAULT_MMR_LAMBDA: Final[float] = 0.6

# Retrieval
FALLBACK_TOP_K: Final[int] = 200
DEFAULT_EXPECTED_CHUNKS: Final[int] = 200
MAX_FETCH_CHUNKS: Final[int] = 200
MAX_SNIPPET_LENGTH: Final[int] = 300
DOCVEC_CHUNK_INDEX: Final[int] = -1
DOCVEC_ID_TEMPLATE: Final[str] = "{doc_id}::docvec"
CHUNK_ID_TEMPLATE: Final[str] = "{doc_id}::chunk::{index}"
TOP_EVIDENCE_CHUNKS: Final[int] = 3


# =============================================================================
# Experience Extraction
# =============================================================================

MIN_PLAUSIBLE_YEARS: Final[int] = 1
MAX_PLAUSIBLE_YEARS: Final[int] = 50
EARLIEST_PLAUSIBLE_YEAR: Final[int] = 1900

MONTH_NAMES: Final[tuple[str, ...]] = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)

# Years-score curve: (minimum ratio, score)
YEARS_SCORE_STEPS: Final[tuple[tuple[float, float], ...]] = (
    (1.0, 1.0),
    (0.8, 0.9),
    (0.6, 0.7),
)
YEARS_SCORE_LINEAR_SLOPE: Final[float] = 0.8


# =============================================================================
# Explanation Buckets
# =============================================================================

SEMANTIC_EXPLANATION_BUCKETS: Final[tuple[tuple[float, str], ...]] = (
    (0.7, "Strong semantic match"),
    (0.5, "Moderate semantic match"),
)
KEYWORD_EXPLANATION_BUCKETS: Final[tuple[tuple[float, str], ...]] = (
    (0.8, "excellent skill match"),
    (0.6, "good skill match"),
    (0.4, "partial skill match"),
)
EXPLANATION_SKILL_LIST_LIMIT: Final[int] = 3
HIGH_QUALITY_CHUNK_SCORE: Final[float] = 0.8


# =============================================================================
# Question Answering
# =============================================================================

QA_TOP_K: Final[int] = 10
QA_MAX_HISTORY_MESSAGES: Final[int] = 10


# =============================================================================
# Enums
# =============================================================================


class DocType(str, Enum):
    """Type of an indexed document."""

    RESUME = "resume"
    JOB_DESCRIPTION = "job_description"


class DocumentStatus(str, Enum):
    """Processing status of a stored document."""

    PENDING = "pending"
    PROCESSING = "processing"
    INDEXED = "indexed"
    FAILED = "failed"


class IndexMetric(str, Enum):
    """Distance metric configured on the vector index."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOTPRODUCT = "dotproduct"


class SkillTier(str, Enum):
    """Weight tier assigned to a required skill by the JD extractor."""

    TOP = "top"
    GENERAL = "general"


class LexicalMatchKind(str, Enum):
    """How a skill term was found in an evidence snippet."""

    WORD_BOUNDARY = "word_boundary"
    SUBSTRING = "substring"
    NORMALIZED = "normalized"
    ACRONYM = "acronym"
    CONJUNCTION = "conjunction"
    FUZZY = "fuzzy"


class MatchScoreLevel(Enum):
    """Categorical levels for match scores."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def from_score(cls, score: float) -> "MatchScoreLevel":
        """Convert a numeric score to a level."""
        if score >= SCORE_THRESHOLDS["excellent"]:
            return cls.EXCELLENT
        elif score >= SCORE_THRESHOLDS["good"]:
            return cls.GOOD
        elif score >= SCORE_THRESHOLDS["fair"]:
            return cls.FAIR
        return cls.POOR


class AuditAction(str, Enum):
    """Types of actions that can be audited."""

    MATCH_CALCULATED = "match_calculated"
    QUESTION_ANSWERED = "question_answered"
    SKILL_EMBEDDINGS_CACHED = "skill_embeddings_cached"
