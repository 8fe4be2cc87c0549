"""
Document store data models.

Defines the stored records for indexed documents and the structured
requirements extracted from job descriptions.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator

from resume_match.utils.constants import (
    DEFAULT_EXPECTED_CHUNKS,
    GENERAL_SKILL_WEIGHT,
    MAX_SYNONYMS_PER_SKILL,
    TOP_SKILL_WEIGHT,
    DocType,
    DocumentStatus,
    SkillTier,
)

from .base import BaseDocument, EmbeddedModel


def normalize_synonyms(skill: str, synonyms: Optional[list[str]]) -> list[str]:
    """
    Order a synonym list with the skill first, drop repeats and cap its size.

    Repeats are detected case-insensitively; the first spelling wins.
    """
    terms: list[str] = []
    seen: set[str] = set()
    for term in [skill, *(synonyms or [])]:
        cleaned = term.strip() if isinstance(term, str) else ""
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        terms.append(cleaned)
    return terms[:MAX_SYNONYMS_PER_SKILL]


class SkillRecord(EmbeddedModel):
    """A required skill with its synonym list and optional cached embedding."""

    skill: str = Field(..., min_length=1)
    synonyms: list[str] = Field(default_factory=list)
    tier: SkillTier = SkillTier.GENERAL
    embedding: Optional[list[float]] = None

    @model_validator(mode="after")
    def ensure_skill_first(self) -> "SkillRecord":
        """The first synonym is always the skill itself."""
        self.synonyms = normalize_synonyms(self.skill, self.synonyms)
        return self

    @property
    def is_top(self) -> bool:
        return self.tier == SkillTier.TOP

    @property
    def weight(self) -> int:
        return TOP_SKILL_WEIGHT if self.is_top else GENERAL_SKILL_WEIGHT


class DocumentRecord(BaseDocument):
    """
    Stored metadata and raw text of an uploaded document.

    ``vector_count`` counts every vector written for the document,
    including its docvec.
    """

    doc_type: DocType
    title: Optional[str] = None
    raw_text: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    vector_count: Optional[int] = Field(None, ge=0)
    error_message: Optional[str] = None

    @property
    def is_indexed(self) -> bool:
        """Whether the document's vectors are available for matching."""
        return self.status == DocumentStatus.INDEXED

    def expected_chunk_count(self, cap: int) -> int:
        """
        Estimate how many real chunks were indexed for this document.

        Used to rebuild chunk ids when similarity queries return nothing.

        Args:
            cap: Maximum number of chunk ids to generate.

        Returns:
            Number of chunk ids to fetch.
        """
        total = self.vector_count or DEFAULT_EXPECTED_CHUNKS
        # One vector is the docvec
        return max(0, min(total - 1, cap))

    class Settings:
        """MongoDB collection settings."""

        name = "documents"
        indexes = [
            "doc_type",
            "status",
            "created_at",
        ]


class JobDescriptionRecord(BaseDocument):
    """
    Structured requirements extracted from a job description.

    Shares its id with the job description's ``DocumentRecord``. Skill
    lists and synonyms come from an external extractor and are stored
    as-is.
    """

    top_skills: list[str] = Field(default_factory=list)
    general_skills: list[str] = Field(default_factory=list)
    skill_synonyms: dict[str, list[str]] = Field(default_factory=dict)
    required_years: Optional[int] = Field(None, ge=0)
    skill_embeddings: Optional[dict[str, list[float]]] = None

    @field_validator("top_skills", "general_skills")
    @classmethod
    def strip_skills(cls, v: list[str]) -> list[str]:
        """Drop blank skill names."""
        return [s.strip() for s in v if s and s.strip()]

    @property
    def required_skills(self) -> list[str]:
        """All required skills, top tier first, without repeats."""
        return [record.skill for record in self.skill_records()]

    @property
    def years_requirement(self) -> Optional[int]:
        """Required years, with zero meaning no requirement."""
        return self.required_years or None

    def skill_records(self) -> list[SkillRecord]:
        """
        Build ordered skill records for matching.

        A skill listed in both tiers is kept once, as a top skill. Cached
        embeddings are attached where present.
        """
        records: list[SkillRecord] = []
        seen: set[str] = set()
        embeddings = self.skill_embeddings or {}

        for tier, skills in ((SkillTier.TOP, self.top_skills), (SkillTier.GENERAL, self.general_skills)):
            for skill in skills:
                if skill in seen:
                    continue
                seen.add(skill)
                records.append(
                    SkillRecord(
                        skill=skill,
                        synonyms=self.skill_synonyms.get(skill, []),
                        tier=tier,
                        embedding=embeddings.get(skill),
                    )
                )

        return records

    class Settings:
        """MongoDB collection settings."""

        name = "job_descriptions"
        indexes = [
            "created_at",
        ]
