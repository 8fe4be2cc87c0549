"""
Question answering data models.
"""

from datetime import datetime
from typing import Literal

from pydantic import Field

from .base import EmbeddedModel, FrozenModel, utcnow
from .match import EvidenceChunk


class ChatMessage(EmbeddedModel):
    """One turn of a conversation about a resume."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class QAAnswer(FrozenModel):
    """Generated answer together with the resume evidence it was grounded on."""

    question: str
    answer: str
    evidence: list[EvidenceChunk] = Field(default_factory=list)
