"""
Diversity-aware evidence selection (Maximal Marginal Relevance).

Both match scoring and question answering select evidence through
``select_evidence`` so the two paths behave identically.
"""

from typing import Optional, Sequence

from resume_match.data.models import ScoredChunk
from resume_match.utils.constants import DEFAULT_MMR_LAMBDA
from resume_match.utils.exceptions import DimensionMismatchError

from .dedup import dedupe


def tokenize(text: str) -> frozenset[str]:
    """Lowercase whitespace-separated word set."""
    return frozenset(text.lower().split())


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def jaccard_similarity(text1: str, text2: str) -> float:
    """Word-set Jaccard similarity of two snippets; 0 when both are empty."""
    return jaccard(tokenize(text1), tokenize(text2))


class DiversitySelector:
    """
    Greedy MMR selection.

    Each step picks the remaining chunk maximizing
    ``lambda * relevance - (1 - lambda) * max_similarity_to_selected``.
    Greedy selection is not globally optimal; that approximation is
    accepted. Ties go to the chunk that came first.
    """

    def __init__(self, lambda_: float = DEFAULT_MMR_LAMBDA):
        if not 0.0 <= lambda_ <= 1.0:
            raise ValueError(f"MMR lambda must be in [0, 1], got {lambda_}")
        self.lambda_ = lambda_

    def select(self, chunks: Sequence[ScoredChunk], k: int) -> list[ScoredChunk]:
        """
        Select up to ``k`` relevant, mutually diverse chunks.

        Args:
            chunks: Candidate chunks with normalized relevance.
            k: Number of chunks to select.

        Returns:
            ``min(k, len(chunks))`` chunks; the input itself when it
            already fits.
        """
        if k <= 0:
            return []
        if len(chunks) <= k:
            return list(chunks)

        remaining = sorted(chunks, key=lambda c: c.relevance, reverse=True)
        tokens = [tokenize(c.snippet) for c in remaining]

        selected = [remaining.pop(0)]
        selected_tokens = tokens.pop(0)
        # Highest similarity of each remaining chunk to anything selected
        max_sim = [jaccard(t, selected_tokens) for t in tokens]

        while len(selected) < k and remaining:
            best_idx = 0
            best_score = float("-inf")
            for i, chunk in enumerate(remaining):
                score = self.lambda_ * chunk.relevance - (1 - self.lambda_) * max_sim[i]
                if score > best_score:
                    best_score = score
                    best_idx = i

            selected.append(remaining.pop(best_idx))
            picked_tokens = tokens.pop(best_idx)
            max_sim.pop(best_idx)
            max_sim = [max(s, jaccard(t, picked_tokens)) for s, t in zip(max_sim, tokens)]

        return selected


def select_evidence(
    query_vector: Optional[Sequence[float]],
    candidate_pool: Sequence[ScoredChunk],
    k: int,
    lambda_: Optional[float] = None,
) -> list[ScoredChunk]:
    """
    Deduplicate a candidate pool and pick a diverse top-k.

    Args:
        query_vector: Vector the pool was retrieved with. Pool chunks that
            carry vectors must share its dimension.
        candidate_pool: Chunks with normalized relevance.
        k: Number of chunks to return.
        lambda_: Relevance weight; defaults to 0.6.

    Returns:
        Selected chunks.

    Raises:
        DimensionMismatchError: A pool vector differs in size from the query.
    """
    if query_vector is not None:
        expected = len(query_vector)
        for chunk in candidate_pool:
            if chunk.vector is not None and len(chunk.vector) != expected:
                raise DimensionMismatchError(expected, len(chunk.vector), context=f"Chunk {chunk.id}")

    selector = DiversitySelector(DEFAULT_MMR_LAMBDA if lambda_ is None else lambda_)
    return selector.select(dedupe(list(candidate_pool)), k)
