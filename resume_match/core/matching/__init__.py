"""Resume to job description matching."""

from .experience import ExperienceExtractor, years_score
from .matching_engine import (
    MatchingEngine,
    explain_match,
    explain_result,
    final_percent,
    get_matching_engine,
)
from .semantic_scorer import SemanticScorer
from .skill_matcher import (
    LexicalMatcher,
    SkillEmbeddingCache,
    SkillMatcher,
    SkillMatchOutcome,
    keyword_score,
)

__all__ = [
    "ExperienceExtractor",
    "LexicalMatcher",
    "MatchingEngine",
    "SemanticScorer",
    "SkillEmbeddingCache",
    "SkillMatchOutcome",
    "SkillMatcher",
    "explain_match",
    "explain_result",
    "final_percent",
    "get_matching_engine",
    "keyword_score",
    "years_score",
]
