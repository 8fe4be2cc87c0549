"""
Score normalization.

Maps raw similarity scores, whose range depends on the index metric, onto
a uniform [0, 1] relevance scale.
"""

import asyncio
import math
from typing import Any, Optional

from resume_match.data.models import ScoredChunk
from resume_match.utils.constants import (
    COSINE_NOISE_FLOOR,
    COSINE_RANGE,
    DOT_MAX,
    MAX_DIST,
    IndexMetric,
)
from resume_match.utils.logger import LoggerMixin


def clamp01(value: Any) -> float:
    """Clamp to [0, 1]. Non-numeric and non-finite values become 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def normalize_score(raw_score: Any, metric: IndexMetric | str) -> float:
    """
    Normalize a raw index score to a relevance in [0, 1].

    Args:
        raw_score: Similarity (cosine, dot product) or distance (euclidean).
        metric: Metric the score was produced with.

    Returns:
        Relevance in [0, 1]; 0 for non-finite input.
    """
    try:
        raw = float(raw_score)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(raw):
        return 0.0

    metric = IndexMetric(metric)
    if metric == IndexMetric.COSINE:
        # Resume/JD cosine similarities cluster in 0.2-1.0
        return clamp01((raw - COSINE_NOISE_FLOOR) / COSINE_RANGE)
    if metric == IndexMetric.DOTPRODUCT:
        return clamp01(raw / DOT_MAX)
    return clamp01(1.0 - raw / MAX_DIST)


def normalize_chunks(chunks: list[ScoredChunk], metric: IndexMetric | str) -> list[ScoredChunk]:
    """Attach normalized relevance to every chunk, preserving order."""
    return [chunk.with_relevance(normalize_score(chunk.raw_score, metric)) for chunk in chunks]


class MetricResolver(LoggerMixin):
    """
    Resolves the vector index metric once and caches it.

    Concurrent callers share a single in-flight lookup. If the index
    cannot report its metric the default is used.
    """

    def __init__(self, vector_store: Any, default: IndexMetric = IndexMetric.COSINE):
        self._store = vector_store
        self._default = IndexMetric(default)
        self._metric: Optional[IndexMetric] = None
        self._lock = asyncio.Lock()

    @property
    def metric(self) -> Optional[IndexMetric]:
        """Resolved metric, or None before resolution."""
        return self._metric

    async def resolve(self) -> IndexMetric:
        """Get the index metric, querying the index on first use."""
        if self._metric is not None:
            return self._metric

        async with self._lock:
            if self._metric is None:
                try:
                    self._metric = IndexMetric(await self._store.describe_metric())
                    self.logger.info(f"Vector index metric: {self._metric.value}")
                except Exception as e:
                    self.logger.warning(
                        f"Could not detect index metric ({e}); defaulting to {self._default.value}"
                    )
                    self._metric = self._default
        return self._metric
