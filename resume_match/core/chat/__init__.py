"""Question answering grounded on retrieved resume evidence."""

from .qa_service import (
    AnswerGenerator,
    GeminiAnswerGenerator,
    QuestionAnsweringService,
    build_prompt,
    get_qa_service,
)

__all__ = [
    "AnswerGenerator",
    "GeminiAnswerGenerator",
    "QuestionAnsweringService",
    "build_prompt",
    "get_qa_service",
]
