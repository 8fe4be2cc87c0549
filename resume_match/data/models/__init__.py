"""
Pydantic data models and schemas for ResumeMatch.

This module provides all data models used throughout the application,
including stored documents, index chunks and match results.
"""

# Base models
from .base import BaseDocument, EmbeddedModel, FrozenModel, TimestampMixin

# Chunk models
from .chunk import Chunk, ChunkFilter, ScoredChunk

# Document models
from .document import (
    DocumentRecord,
    JobDescriptionRecord,
    SkillRecord,
    normalize_synonyms,
)

# Match models
from .match import (
    EvidenceChunk,
    MatchResult,
    MatchWeights,
    SkillEvidence,
)

# Question answering models
from .chat import ChatMessage, QAAnswer

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "FrozenModel",
    "TimestampMixin",
    # Chunk
    "Chunk",
    "ChunkFilter",
    "ScoredChunk",
    # Document
    "DocumentRecord",
    "JobDescriptionRecord",
    "SkillRecord",
    "normalize_synonyms",
    # Match
    "EvidenceChunk",
    "MatchResult",
    "MatchWeights",
    "SkillEvidence",
    # Question answering
    "ChatMessage",
    "QAAnswer",
]
