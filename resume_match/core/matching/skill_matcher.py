"""
Per-skill matching of job description requirements against resume evidence.

A skill is matched when its best resume evidence is semantically close
enough, or when any evidence snippet mentions the skill or one of its
synonyms. Semantic and lexical evidence are alternative paths; either
one suffices.
"""

import asyncio
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any, Optional, Sequence

from resume_match.core.retrieval.evidence import EvidenceRetriever
from resume_match.core.retrieval.mmr import select_evidence
from resume_match.core.tasks import gather_or_cancel
from resume_match.data.models import DocumentRecord, ScoredChunk, SkillEvidence, SkillRecord
from resume_match.data.repositories.base import DocumentStore
from resume_match.ml.embeddings.embedding_model import EmbeddingGenerator
from resume_match.utils.config import get_settings
from resume_match.utils.constants import (
    ACRONYM_MAX_LENGTH,
    ACRONYM_MIN_LENGTH,
    CONJUNCTION_WINDOW_SLACK,
    FUZZY_RATIO_THRESHOLD,
    GENERAL_SKILL_WEIGHT,
    LEXICAL_STOPWORDS,
    MIN_FUZZY_TERM_LENGTH,
    MIN_SUBSTRING_TERM_LENGTH,
    SKILL_AGGREGATE_TOP_N,
    SKILL_CACHE_MAX_JOBS,
    SKILL_CONTEXT_TEMPLATE,
    TOP_SKILL_WEIGHT,
    AuditAction,
    LexicalMatchKind,
    SkillTier,
)
from resume_match.utils.exceptions import DimensionMismatchError, SkillMatchingError
from resume_match.utils.logger import LoggerMixin, audit_log

_WORD_RE = re.compile(r"[a-z0-9][a-z0-9+#]*")
_CASED_WORD_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9+#]*")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SEPARATOR_RE = re.compile(r"[\s\-_]+")


def normalize_term(text: str) -> str:
    """Lowercase, strip punctuation and remove separators ("Node.js" -> "nodejs")."""
    return _SEPARATOR_RE.sub("", _PUNCT_RE.sub("", text.lower())).strip()


def words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


# =============================================================================
# Lexical matching
# =============================================================================


@dataclass(frozen=True)
class LexicalMatch:
    """A skill term found in a snippet."""

    kind: LexicalMatchKind
    term: str


class LexicalMatcher:
    """
    Detects a skill or synonym mentioned in a text snippet.

    Strategies, tried in order for each term: whole-word match, plain
    substring, substring after normalization, acronym expansion,
    all words of a multi-word term present, and fuzzy matching of
    similarly sized word windows.
    """

    def __init__(
        self,
        min_substring_length: int = MIN_SUBSTRING_TERM_LENGTH,
        min_fuzzy_length: int = MIN_FUZZY_TERM_LENGTH,
        fuzzy_threshold: float = FUZZY_RATIO_THRESHOLD,
        conjunction_slack: int = CONJUNCTION_WINDOW_SLACK,
    ):
        self.min_substring_length = min_substring_length
        self.min_fuzzy_length = min_fuzzy_length
        self.fuzzy_threshold = fuzzy_threshold
        self.conjunction_slack = conjunction_slack

    def find(self, snippet: str, terms: Sequence[str]) -> Optional[LexicalMatch]:
        """First term found in the snippet, or None."""
        text = snippet.lower()
        if not text.strip():
            return None
        normalized_text = normalize_term(text)
        text_words = words(text)

        for term in terms:
            lowered = term.lower().strip()
            if not lowered:
                continue
            kind = self._match_term(term.strip(), lowered, snippet, text, normalized_text, text_words)
            if kind is not None:
                return LexicalMatch(kind=kind, term=term)
        return None

    def contains(self, snippet: str, terms: Sequence[str]) -> bool:
        return self.find(snippet, terms) is not None

    def _match_term(
        self,
        original: str,
        term: str,
        snippet: str,
        text: str,
        normalized_text: str,
        text_words: list[str],
    ) -> Optional[LexicalMatchKind]:
        # Lookarounds instead of \b so terms like "c++" and ".net" work
        if re.search(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])", text):
            return LexicalMatchKind.WORD_BOUNDARY

        # Short terms ("r", "c", "go") only count as whole words
        if len(term) >= self.min_substring_length and term in text:
            return LexicalMatchKind.SUBSTRING

        normalized = normalize_term(term)
        if len(normalized) >= self.min_substring_length and normalized in normalized_text:
            return LexicalMatchKind.NORMALIZED

        if self._acronym_match(original, term, snippet, text_words):
            return LexicalMatchKind.ACRONYM

        significant = [w for w in words(term) if w not in LEXICAL_STOPWORDS]
        if len(significant) >= 2 and self._words_near(significant, text_words):
            return LexicalMatchKind.CONJUNCTION

        if len(term) >= self.min_fuzzy_length and self._fuzzy_match(term, text_words):
            return LexicalMatchKind.FUZZY

        return None

    @staticmethod
    def _acronym_length_ok(acronym: str) -> bool:
        return ACRONYM_MIN_LENGTH <= len(acronym) <= ACRONYM_MAX_LENGTH

    def _acronym_match(self, original: str, term: str, snippet: str, text_words: list[str]) -> bool:
        """"Amazon Web Services" <-> "AWS" in either direction."""
        significant = [w for w in words(term) if w not in LEXICAL_STOPWORDS]
        if len(significant) >= 2:
            acronym = "".join(w[0] for w in significant)
            return self._acronym_length_ok(acronym) and acronym in text_words

        # Only terms written as acronyms expand ("AWS", not "aws"), and only
        # across capitalized words ("Google Cloud Platform")
        if not (original.isalpha() and original.isupper() and self._acronym_length_ok(original)):
            return False

        phrase_words = [w for w in _CASED_WORD_RE.findall(snippet) if w.lower() not in LEXICAL_STOPWORDS]
        n = len(term)
        for i in range(len(phrase_words) - n + 1):
            window = phrase_words[i:i + n]
            if all(w[0].isupper() for w in window) and "".join(w[0] for w in window).lower() == term:
                return True
        return False

    def _words_near(self, term_words: list[str], text_words: list[str]) -> bool:
        """All term words inside one short window of the text, in any order."""
        needed = set(term_words)
        span = len(needed) + self.conjunction_slack
        for i, word in enumerate(text_words):
            if word in needed and needed <= set(text_words[i:i + span]):
                return True
        return False

    def _fuzzy_match(self, term: str, text_words: list[str]) -> bool:
        """Edit-distance style match against word windows of the term's length."""
        term_words = words(term)
        if not term_words:
            return False
        target = " ".join(term_words)
        n = len(term_words)

        for i in range(len(text_words) - n + 1):
            window = " ".join(text_words[i:i + n])
            if abs(len(window) - len(target)) > 2:
                continue
            matcher = SequenceMatcher(None, target, window)
            if matcher.quick_ratio() < self.fuzzy_threshold:
                continue
            if matcher.ratio() >= self.fuzzy_threshold:
                return True
        return False


# =============================================================================
# Skill embedding cache
# =============================================================================


class SkillEmbeddingCache(LoggerMixin):
    """
    Lazily generated skill embeddings, cached per job description.

    Embeddings already stored on the job description are reused. New ones
    are generated concurrently, one call per skill, kept in memory and
    written back to the document store. Concurrent requests for the same
    job description may both embed a skill; the last write wins.

    Only the ``max_jobs`` most recently used job descriptions are kept in
    memory; older ones are served from the document store copy.
    """

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        document_store: Optional[DocumentStore] = None,
        max_jobs: int = SKILL_CACHE_MAX_JOBS,
    ):
        if max_jobs < 1:
            raise ValueError(f"max_jobs must be positive, got {max_jobs}")
        self.embedder = embedder
        self.document_store = document_store
        self.max_jobs = max_jobs
        self._memory: OrderedDict[str, dict[str, list[float]]] = OrderedDict()

    @staticmethod
    def context_text(skill: str) -> str:
        return SKILL_CONTEXT_TEMPLATE.format(skill=skill)

    def cached(self, jd_id: str) -> dict[str, list[float]]:
        return dict(self._memory.get(jd_id, {}))

    def _job_memory(self, jd_id: str) -> dict[str, list[float]]:
        """In-memory embeddings of one job description, marked most recently used."""
        memory = self._memory.get(jd_id)
        if memory is not None:
            self._memory.move_to_end(jd_id)
            return memory

        memory = self._memory[jd_id] = {}
        while len(self._memory) > self.max_jobs:
            evicted, _ = self._memory.popitem(last=False)
            self.logger.debug(f"Evicted skill embeddings of job description {evicted} from memory")
        return memory

    async def get_embeddings(
        self,
        jd_id: str,
        skills: Sequence[SkillRecord],
    ) -> dict[str, list[float] | Exception]:
        """
        Embedding per skill name; a failed embedding maps to its exception.
        """
        memory = self._job_memory(jd_id)
        results: dict[str, list[float] | Exception] = {}
        missing: list[str] = []

        for record in skills:
            if record.embedding:
                results[record.skill] = record.embedding
            elif record.skill in memory:
                results[record.skill] = memory[record.skill]
            else:
                missing.append(record.skill)

        if not missing:
            return results

        generated = await asyncio.gather(
            *(self.embedder.embed(self.context_text(skill)) for skill in missing),
            return_exceptions=True,
        )

        new_embeddings: dict[str, list[float]] = {}
        for skill, outcome in zip(missing, generated):
            if isinstance(outcome, Exception):
                self.logger.warning(f"Embedding failed for skill '{skill}': {outcome}")
                results[skill] = outcome
                continue
            vector = [float(x) for x in outcome]
            results[skill] = vector
            new_embeddings[skill] = vector

        if new_embeddings:
            memory.update(new_embeddings)
            await self._persist(jd_id, new_embeddings)

        return results

    async def _persist(self, jd_id: str, embeddings: dict[str, list[float]]) -> None:
        audit_log(
            AuditAction.SKILL_EMBEDDINGS_CACHED.value,
            {"jd_id": jd_id, "skills": sorted(embeddings)},
            audit_type="CACHE",
        )
        if self.document_store is None:
            return
        try:
            await self.document_store.save_skill_embeddings(jd_id, embeddings)
        except Exception as e:
            # The in-memory copy still serves this process
            self.logger.warning(f"Could not store skill embeddings for {jd_id}: {e}")


# =============================================================================
# Skill matcher
# =============================================================================


@dataclass
class SkillMatchOutcome:
    """Partition of required skills plus per-skill evidence."""

    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    keyword_score: float = 0.0
    evidence: list[SkillEvidence] = field(default_factory=list)


def keyword_score(evidence: Sequence[SkillEvidence]) -> float:
    """
    Tier-weighted share of matched skills.

    Top skills count twice, general skills once. No skills scores 0.
    """
    total = sum(_tier_weight(e) for e in evidence)
    if total == 0:
        return 0.0
    return sum(_tier_weight(e) for e in evidence if e.matched) / total


def _tier_weight(evidence: SkillEvidence) -> int:
    return TOP_SKILL_WEIGHT if evidence.tier == SkillTier.TOP else GENERAL_SKILL_WEIGHT


class SkillMatcher(LoggerMixin):
    """Decides for every required skill whether the resume supports it."""

    def __init__(
        self,
        retriever: EvidenceRetriever,
        embedding_cache: SkillEmbeddingCache,
        lexical_matcher: Optional[LexicalMatcher] = None,
        semantic_threshold: Optional[float] = None,
        evidence_threshold: Optional[float] = None,
        target_k: Optional[int] = None,
        mmr_lambda: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ):
        settings = get_settings().matching
        self.retriever = retriever
        self.embedding_cache = embedding_cache
        self.lexical_matcher = lexical_matcher or LexicalMatcher()
        self.semantic_threshold = settings.semantic_threshold if semantic_threshold is None else semantic_threshold
        self.evidence_threshold = settings.evidence_threshold if evidence_threshold is None else evidence_threshold
        self.target_k = target_k or settings.skill_target_k
        self.mmr_lambda = settings.mmr_lambda if mmr_lambda is None else mmr_lambda
        self.max_concurrency = max_concurrency or settings.max_concurrent_skills

    async def match_skills(
        self,
        required_skills: Sequence[SkillRecord],
        resume: DocumentRecord,
        jd_id: str,
        expected_dimension: Optional[int] = None,
    ) -> SkillMatchOutcome:
        """
        Match every required skill against the resume.

        Args:
            required_skills: Skills in report order.
            resume: Resume whose chunks provide evidence.
            jd_id: Job description owning the skill embedding cache.
            expected_dimension: Embedding dimension of the index.

        Returns:
            Matched/missing partition, keyword score and per-skill evidence.

        Raises:
            DimensionMismatchError: A skill embedding does not fit the index.
        """
        if not required_skills:
            return SkillMatchOutcome()

        embeddings = await self.embedding_cache.get_embeddings(jd_id, required_skills)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def evaluate(record: SkillRecord) -> SkillEvidence:
            async with semaphore:
                return await self._evaluate_isolated(record, embeddings.get(record.skill), resume, expected_dimension)

        evidence = await gather_or_cancel(*(evaluate(r) for r in required_skills))

        outcome = SkillMatchOutcome(evidence=evidence, keyword_score=keyword_score(evidence))
        for item in evidence:
            (outcome.matched if item.matched else outcome.missing).append(item.skill)

        self.logger.debug(
            f"Skills for resume {resume.id}: {len(outcome.matched)} matched, "
            f"{len(outcome.missing)} missing"
        )
        return outcome

    async def _evaluate_isolated(
        self,
        record: SkillRecord,
        embedding: Any,
        resume: DocumentRecord,
        expected_dimension: Optional[int],
    ) -> SkillEvidence:
        """Evaluate one skill; failures other than dimension mismatches stay local."""
        try:
            if isinstance(embedding, Exception):
                raise embedding
            if not embedding:
                raise ValueError("no embedding available")
            if expected_dimension is not None and len(embedding) != expected_dimension:
                raise DimensionMismatchError(expected_dimension, len(embedding), context=f"Skill '{record.skill}' embedding")

            pool = await self.retriever.retrieve(embedding, resume, 2 * self.target_k)
            chunks = select_evidence(embedding, pool, self.target_k, self.mmr_lambda)
            return self.decide(record, chunks)

        except DimensionMismatchError:
            raise
        except Exception as e:
            error = SkillMatchingError(record.skill, str(e), cause=e)
            self.logger.warning(f"{error.message}; counted as missing")
            return SkillEvidence(skill=record.skill, tier=record.tier, error=error.message)

    def decide(self, record: SkillRecord, chunks: Sequence[ScoredChunk]) -> SkillEvidence:
        """
        Apply the match rule to a skill's selected evidence.

        Matched if the mean of the three best relevances and the best
        relevance both clear their thresholds, or if any snippet mentions
        the skill or a synonym.
        """
        scores = sorted((c.relevance for c in chunks), reverse=True)
        top_n = scores[:SKILL_AGGREGATE_TOP_N]
        agg_score = sum(top_n) / len(top_n) if top_n else 0.0
        top_score = scores[0] if scores else 0.0

        semantic = bool(chunks) and agg_score >= self.semantic_threshold and top_score >= self.evidence_threshold

        lexical = None
        for chunk in chunks:
            lexical = self.lexical_matcher.find(chunk.snippet, record.synonyms)
            if lexical is not None:
                break

        return SkillEvidence(
            skill=record.skill,
            tier=record.tier,
            matched=semantic or lexical is not None,
            agg_score=agg_score,
            top_score=top_score,
            semantic_match=semantic,
            lexical_match=lexical.kind if lexical else None,
            matched_term=lexical.term if lexical else None,
            evidence_ids=[c.id for c in chunks],
        )
