"""
Database connection manager for ResumeMatch.

Provides the asynchronous (Motor) MongoDB client used by the document
store adapter.
"""

from typing import Any, Optional
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from resume_match.utils.config import get_settings
from resume_match.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages the MongoDB connection.

    Implements singleton pattern for connection reuse.
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[AsyncIOMotorClient] = None

    def __new__(cls) -> "DatabaseManager":
        """Ensure singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize database manager with settings."""
        if getattr(self, "_initialized", False):
            return

        self._settings = get_settings()
        self._db_name = self._settings.database.name
        self._uri = self.build_uri()
        self._initialized = True

    def build_uri(self) -> str:
        """
        Build MongoDB connection URI from settings.

        Credentials are URL-encoded; hosts containing shell or URI
        metacharacters are rejected.
        """
        db_settings = self._settings.database

        host = db_settings.host.strip()
        if not host or any(c in host for c in [";", "&", "|", "$", "`", "/", "@"]):
            raise ValueError(f"Invalid database host: {host}")

        auth = ""
        if db_settings.username and db_settings.password:
            encoded_user = quote_plus(db_settings.username)
            encoded_pass = quote_plus(db_settings.password)
            auth = f"{encoded_user}:{encoded_pass}@"

        return f"mongodb://{auth}{host}:{db_settings.port}"

    # -------------------------------------------------------------------------
    # Client
    # -------------------------------------------------------------------------

    def get_client(self) -> AsyncIOMotorClient:
        """Get or create the MongoDB client."""
        if self._client is None:
            logger.info("Creating asynchronous MongoDB client")
            self._client = AsyncIOMotorClient(
                self._uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                maxPoolSize=50,
            )
        return self._client

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        return self.get_client()[self._db_name]

    def get_collection(self, collection_name: str) -> Any:
        """Get a collection by name."""
        return self.get_database()[collection_name]

    async def check_connection(self) -> bool:
        """Check if the connection is healthy."""
        try:
            await self.get_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Connection check failed: {e}")
            return False

    def close(self) -> None:
        """Close the client connection."""
        if self._client:
            logger.info("Closing MongoDB client")
            self._client.close()
            self._client = None

    # -------------------------------------------------------------------------
    # Index Management
    # -------------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """Create indexes for the document collections."""
        from resume_match.data.models import DocumentRecord, JobDescriptionRecord

        logger.info("Ensuring database indexes")
        db_settings = self._settings.database

        for collection_name, model in (
            (db_settings.documents_collection, DocumentRecord),
            (db_settings.job_descriptions_collection, JobDescriptionRecord),
        ):
            collection = self.get_collection(collection_name)
            for field in model.Settings.indexes:
                await collection.create_index(field)

        logger.info("Database indexes created successfully")


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_async_db() -> AsyncIOMotorDatabase:
    """Convenience function to get the database."""
    return get_database_manager().get_database()
