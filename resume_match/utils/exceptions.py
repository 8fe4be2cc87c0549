"""
Exception hierarchy for the match engine.

Missing preconditions and dimension mismatches fail fast and are never
retried. Retrieval errors are only raised once every fallback has failed.
"""

from typing import Any, Optional


class MatchEngineError(Exception):
    """Base exception for ResumeMatch."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/response."""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class MissingPreconditionError(MatchEngineError):
    """A document the request depends on is absent or unusable."""

    def __init__(self, message: str, doc_id: str, status: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["doc_id"] = doc_id
        if status is not None:
            details["status"] = status
        super().__init__(message, error_code=kwargs.pop("error_code", "MISSING_PRECONDITION"), details=details, **kwargs)
        self.doc_id = doc_id
        self.status = status


class DocumentNotFoundError(MissingPreconditionError):
    """Raised when a document id is unknown to the document store."""

    def __init__(self, doc_id: str, doc_label: str = "Document"):
        super().__init__(
            f"{doc_label} {doc_id} not found",
            doc_id=doc_id,
            error_code="DOCUMENT_NOT_FOUND",
        )


class DocumentNotIndexedError(MissingPreconditionError):
    """Raised when a document exists but has not finished indexing."""

    def __init__(self, doc_id: str, status: str, doc_label: str = "Document"):
        super().__init__(
            f"{doc_label} {doc_id} is not indexed yet. Status: {status}",
            doc_id=doc_id,
            status=status,
            error_code="DOCUMENT_NOT_INDEXED",
        )


class DimensionMismatchError(MatchEngineError):
    """Raised when a query vector and the indexed vectors disagree in size."""

    def __init__(self, expected: int, actual: int, context: str = "vector"):
        super().__init__(
            f"{context} dimension mismatch: expected {expected}, got {actual}. "
            "Possible embedding model mismatch.",
            error_code="DIMENSION_MISMATCH",
            details={"expected": expected, "actual": actual, "context": context},
        )
        self.expected = expected
        self.actual = actual


class RetrievalError(MatchEngineError):
    """Raised when the vector index cannot serve a request through any fallback."""

    def __init__(self, message: str, doc_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if doc_id:
            details["doc_id"] = doc_id
        super().__init__(message, error_code="RETRIEVAL_ERROR", details=details, **kwargs)


class SkillMatchingError(MatchEngineError):
    """Raised for a failure confined to a single skill."""

    def __init__(self, skill: str, message: str, **kwargs):
        super().__init__(
            f"Skill '{skill}': {message}",
            error_code="SKILL_MATCHING_ERROR",
            details={"skill": skill},
            **kwargs,
        )
        self.skill = skill


class AnswerGenerationError(MatchEngineError):
    """Raised when the answer generator cannot produce a response."""

    def __init__(self, message: str, model_name: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if model_name:
            details["model_name"] = model_name
        super().__init__(message, error_code="ANSWER_GENERATION_ERROR", details=details, **kwargs)


class InvalidWeightsError(MatchEngineError):
    """Raised when scoring weights are negative or do not sum to 1."""

    def __init__(self, weights: dict[str, float]):
        super().__init__(
            f"Scoring weights must be non-negative and sum to 1, got {weights}",
            error_code="INVALID_WEIGHTS",
            details={"weights": weights},
        )
