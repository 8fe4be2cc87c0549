"""
Data layer for ResumeMatch.

Provides the database connection, data models, and the document store
used by the match engine.

Submodules:
- database: MongoDB connection management
- models: Pydantic data models/schemas
- repositories: Document store contract and MongoDB implementation
"""

from .database import (
    DatabaseManager,
    get_async_db,
    get_database_manager,
)

__all__ = [
    "DatabaseManager",
    "get_async_db",
    "get_database_manager",
]
