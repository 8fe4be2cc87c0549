"""
Document store access for ResumeMatch.
"""

from .base import DocumentStore
from .document_repository import DocumentRepository

__all__ = [
    "DocumentStore",
    "DocumentRepository",
]
