"""
Document store contract consumed by the match engine.

The engine only reads documents and job description requirements, and
writes back the per-job-description skill embedding cache.
"""

from abc import ABC, abstractmethod
from typing import Optional

from resume_match.data.models import DocumentRecord, JobDescriptionRecord


class DocumentStore(ABC):
    """Abstract base class for document stores."""

    @abstractmethod
    async def get_document(self, doc_id: str) -> Optional[DocumentRecord]:
        """Get a document's raw text, status and vector count."""
        pass

    @abstractmethod
    async def get_job_description(self, jd_id: str) -> Optional[JobDescriptionRecord]:
        """Get the structured requirements of a job description."""
        pass

    @abstractmethod
    async def save_skill_embeddings(
        self,
        jd_id: str,
        embeddings: dict[str, list[float]],
    ) -> None:
        """
        Merge skill embeddings into the job description's cache.

        Concurrent writers for the same job description may overwrite each
        other; embeddings are deterministic so the last writer wins.
        """
        pass
