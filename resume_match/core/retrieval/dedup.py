"""
Exact-duplicate removal for evidence snippets.

Near-duplicates are left to the diversity term of MMR selection.
"""

from typing import TypeVar

from resume_match.data.models import Chunk

C = TypeVar("C", bound=Chunk)


def normalize_snippet(text: str) -> str:
    """Lowercase, collapse whitespace and trim."""
    return " ".join(text.lower().split())


def snippet_hash(text: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + c) of the normalized snippet."""
    h = 0
    for ch in normalize_snippet(text):
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def dedupe(chunks: list[C]) -> list[C]:
    """
    Drop chunks whose normalized snippet was already seen.

    Order-preserving; the first occurrence wins.
    """
    seen: set[int] = set()
    unique: list[C] = []
    for chunk in chunks:
        key = snippet_hash(chunk.snippet)
        if key in seen:
            continue
        seen.add(key)
        unique.append(chunk)
    return unique
