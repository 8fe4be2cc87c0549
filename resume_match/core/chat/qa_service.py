"""
Question answering over a candidate's resume.

Answers are grounded on resume chunks selected by the same retrieval and
diversity selection used for scoring, and generated by an LLM.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from resume_match.core.retrieval.evidence import EvidenceRetriever
from resume_match.core.retrieval.mmr import select_evidence
from resume_match.data.models import ChatMessage, DocumentRecord, EvidenceChunk, QAAnswer, ScoredChunk
from resume_match.data.repositories.base import DocumentStore
from resume_match.ml.embeddings.embedding_model import EmbeddingGenerator
from resume_match.utils.config import get_settings
from resume_match.utils.constants import AuditAction
from resume_match.utils.exceptions import (
    AnswerGenerationError,
    DocumentNotFoundError,
    DocumentNotIndexedError,
)
from resume_match.utils.logger import LoggerMixin, audit_log

SNIPPET_SEPARATOR = "\n\n---\n\n"

ANSWER_INSTRUCTIONS = (
    "Instructions:\n"
    "- Answer using only the information in the resume context above.\n"
    "- Do not include citations, chunk references or bracketed numbers like [1].\n"
    "- Answer naturally, as if you had read the whole resume.\n"
    "- If the resume does not contain the information, say so.\n"
    "- Be concise."
)


class AnswerGenerator(ABC):
    """Turns a fully assembled prompt into an answer."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        raise NotImplementedError


class GeminiAnswerGenerator(AnswerGenerator):
    """Answer generator backed by Google's Gemini API."""

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None):
        llm_settings = get_settings().llm
        self.model_name = model_name or llm_settings.model
        self._api_key = api_key or llm_settings.api_key
        self._model = None

    def _get_model(self):
        if self._model is None:
            if not self._api_key:
                raise AnswerGenerationError(
                    "No Gemini API key configured (set LLM_API_KEY)",
                    model_name=self.model_name,
                )
            import google.generativeai as genai

            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def generate(self, prompt: str) -> str:
        model = self._get_model()
        try:
            response = await model.generate_content_async(prompt)
            return response.text.strip()
        except Exception as e:
            raise AnswerGenerationError(
                f"Failed to generate answer: {e}",
                model_name=self.model_name,
                cause=e,
            ) from e


def build_prompt(
    question: str,
    chunks: Sequence[ScoredChunk],
    history: Optional[Sequence[ChatMessage]] = None,
    max_history: Optional[int] = None,
) -> str:
    """
    Assemble the grounded prompt for a question.

    Args:
        question: The user's question.
        chunks: Selected resume evidence, in selection order.
        history: Earlier conversation turns, oldest first.
        max_history: Number of most recent turns kept.

    Returns:
        Prompt text.
    """
    limit = get_settings().llm.max_history_messages if max_history is None else max_history
    context = SNIPPET_SEPARATOR.join(chunk.snippet for chunk in chunks)

    sections = [
        "You are a recruiting assistant answering questions about a candidate's resume.",
        f"Resume context:\n{context}" if context else "Resume context:\n(no relevant resume content found)",
    ]

    recent = list(history or [])[-limit:] if limit > 0 else []
    if recent:
        turns = "\n".join(
            f"{'User' if message.role == 'user' else 'Assistant'}: {message.content}"
            for message in recent
        )
        sections.append(f"Previous conversation:\n{turns}")

    sections.append(f"Question: {question}")
    sections.append(ANSWER_INSTRUCTIONS)
    return "\n\n".join(sections)


class QuestionAnsweringService(LoggerMixin):
    """Answers questions about one indexed resume."""

    def __init__(
        self,
        retriever: EvidenceRetriever,
        embedder: EmbeddingGenerator,
        document_store: DocumentStore,
        generator: AnswerGenerator,
        top_k: Optional[int] = None,
        max_history: Optional[int] = None,
        mmr_lambda: Optional[float] = None,
    ):
        settings = get_settings()
        self.retriever = retriever
        self.embedder = embedder
        self.document_store = document_store
        self.generator = generator
        self.top_k = top_k or settings.llm.qa_top_k
        self.max_history = settings.llm.max_history_messages if max_history is None else max_history
        self.mmr_lambda = settings.matching.mmr_lambda if mmr_lambda is None else mmr_lambda

    async def answer(
        self,
        resume_id: str,
        question: str,
        history: Optional[Sequence[ChatMessage]] = None,
    ) -> QAAnswer:
        """
        Answer a question about a resume.

        Raises:
            MissingPreconditionError: The resume is unknown or not indexed.
            DimensionMismatchError: The question embedding does not fit the index.
            AnswerGenerationError: The generator failed.
        """
        resume = await self._require_indexed(resume_id)

        query_vector = await self.embedder.embed(question)
        pool = await self.retriever.retrieve(query_vector, resume, self.top_k * 2)
        selected = select_evidence(query_vector, pool, self.top_k, self.mmr_lambda)
        self.logger.debug(f"Selected {len(selected)} of {len(pool)} chunks for question on {resume_id}")

        prompt = build_prompt(question, selected, history, self.max_history)
        answer = await self.generator.generate(prompt)

        audit_log(
            AuditAction.QUESTION_ANSWERED.value,
            {"resume_id": resume_id, "evidence_chunks": [c.id for c in selected]},
            audit_type="ACCESS",
        )
        return QAAnswer(
            question=question,
            answer=answer,
            evidence=[
                EvidenceChunk(chunk_id=c.id, snippet=c.snippet, score=c.relevance)
                for c in selected
            ],
        )

    async def _require_indexed(self, resume_id: str) -> DocumentRecord:
        document = await self.document_store.get_document(resume_id)
        if document is None:
            raise DocumentNotFoundError(resume_id, doc_label="Resume")
        if not document.is_indexed:
            raise DocumentNotIndexedError(resume_id, str(document.status), doc_label="Resume")
        return document


# Singleton instance
_qa_service: Optional[QuestionAnsweringService] = None


def get_qa_service() -> QuestionAnsweringService:
    """Get the question answering service sharing the match engine's backends."""
    global _qa_service
    if _qa_service is None:
        from resume_match.core.matching import get_matching_engine

        engine = get_matching_engine()
        _qa_service = QuestionAnsweringService(
            retriever=engine.retriever,
            embedder=engine.embedder,
            document_store=engine.document_store,
            generator=GeminiAnswerGenerator(),
        )
    return _qa_service
