"""Score normalization, deduplication, diversity selection and evidence retrieval."""

from .dedup import dedupe, snippet_hash
from .evidence import EvidenceRetriever
from .mmr import DiversitySelector, jaccard_similarity, select_evidence
from .normalization import MetricResolver, clamp01, normalize_chunks, normalize_score

__all__ = [
    "DiversitySelector",
    "EvidenceRetriever",
    "MetricResolver",
    "clamp01",
    "dedupe",
    "jaccard_similarity",
    "normalize_chunks",
    "normalize_score",
    "select_evidence",
    "snippet_hash",
]
