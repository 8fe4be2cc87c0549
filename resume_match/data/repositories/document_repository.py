"""
MongoDB implementation of the document store.
"""

from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from resume_match.data.database import DatabaseManager, get_database_manager
from resume_match.data.models import DocumentRecord, JobDescriptionRecord
from resume_match.data.models.base import utcnow
from resume_match.utils.config import get_settings
from resume_match.utils.logger import get_logger

from .base import DocumentStore

logger = get_logger(__name__)


class DocumentRepository(DocumentStore):
    """
    Document store backed by two MongoDB collections.

    Documents and job description requirements share ids with the
    vector index entries.
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or get_database_manager()
        db_settings = get_settings().database
        self._documents_collection = db_settings.documents_collection
        self._jd_collection = db_settings.job_descriptions_collection

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    def _documents(self) -> AsyncIOMotorCollection:
        return self._db_manager.get_collection(self._documents_collection)

    def _job_descriptions(self) -> AsyncIOMotorCollection:
        return self._db_manager.get_collection(self._jd_collection)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_document(self, doc_id: str) -> Optional[DocumentRecord]:
        document = await self._documents().find_one({"_id": doc_id})
        if document is None:
            return None
        return DocumentRecord.model_validate(document)

    async def get_job_description(self, jd_id: str) -> Optional[JobDescriptionRecord]:
        document = await self._job_descriptions().find_one({"_id": jd_id})
        if document is None:
            return None
        if document.get("skill_embeddings"):
            document["skill_embeddings"] = {
                self._unescape_key(skill): vector
                for skill, vector in document["skill_embeddings"].items()
            }
        return JobDescriptionRecord.model_validate(document)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def save_skill_embeddings(
        self,
        jd_id: str,
        embeddings: dict[str, list[float]],
    ) -> None:
        if not embeddings:
            return

        # Dotted paths merge per skill instead of replacing the whole map;
        # skill names are stored as keys so "." and "$" are escaped.
        update: dict[str, Any] = {
            f"skill_embeddings.{self._escape_key(skill)}": vector
            for skill, vector in embeddings.items()
        }
        update["updated_at"] = utcnow()

        result = await self._job_descriptions().update_one({"_id": jd_id}, {"$set": update})
        if result.matched_count == 0:
            logger.warning(f"Skill embeddings not cached: job description {jd_id} not found")
        else:
            logger.debug(f"Cached {len(embeddings)} skill embeddings for job description {jd_id}")

    @staticmethod
    def _escape_key(key: str) -> str:
        return key.replace("$", "＄").replace(".", "．")

    @staticmethod
    def _unescape_key(key: str) -> str:
        return key.replace("＄", "$").replace("．", ".")
