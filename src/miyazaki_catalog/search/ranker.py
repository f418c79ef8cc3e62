"""
Cosine similarity and top-K ranking for semantic search.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class ScoredWork:
    """A work summary paired with its similarity to the query."""

    work: dict[str, Any]
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {**self.work, "score": self.score}


def cosine_similarity(a: Any, b: Any) -> float | None:
    """Cosine similarity over the shared-length prefix of two vectors.

    Returns None when either input is not a sequence, is empty, or has
    zero magnitude over the compared prefix.
    """
    if not _is_vector(a) or not _is_vector(b):
        return None
    length = min(len(a), len(b))
    if not length:
        return None

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(length):
        val_a = float(a[i])
        val_b = float(b[i])
        dot += val_a * val_b
        norm_a += val_a * val_a
        norm_b += val_b * val_b

    magnitude = math.sqrt(norm_a) * math.sqrt(norm_b)
    if not magnitude:
        return None
    return dot / magnitude


def rank_works(
    query_vector: Sequence[float],
    candidates: list[tuple[dict[str, Any], Sequence[float] | None]],
    *,
    limit: int = DEFAULT_TOP_K,
) -> list[ScoredWork]:
    """Score (work, vector) pairs against the query and keep the best *limit*.

    Candidates without a vector or with an undefined score are dropped.
    Equal scores keep their input order.
    """
    scored: list[ScoredWork] = []
    for work, vector in candidates:
        if vector is None:
            continue
        score = cosine_similarity(query_vector, vector)
        if score is None:
            continue
        scored.append(ScoredWork(work=work, score=score))

    ordered = sorted(scored, key=lambda item: -item.score)
    return ordered[: max(limit, 0)]


def _is_vector(value: Any) -> bool:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return False
    return all(
        isinstance(item, (int, float)) and not isinstance(item, bool) for item in value
    )
