"""
Local cosine-similarity ranking.

This is the default retrieval path: it needs no external index and is always
correct for the owner's stored forms.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

Vector = Sequence[float]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """0.0 for mismatched lengths, empty vectors, or a zero norm. Never raises."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        x = float(x or 0.0)
        y = float(y or 0.0)
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def rank_scored(query: Vector, candidates: Iterable[Tuple[str, Vector]], k: int) -> List[Tuple[str, float]]:
    """Top-k `(id, score)` by descending similarity; equal scores keep input order."""
    if k <= 0:
        return []
    scored = [(item_id, cosine_similarity(query, vector or [])) for item_id, vector in candidates]
    # `sorted` is stable, so ties preserve candidate order.
    scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
    return scored[:k]


def rank(query: Vector, candidates: Iterable[Tuple[str, Vector]], k: int) -> List[str]:
    return [item_id for item_id, _ in rank_scored(query, candidates, k)]


__all__ = ["cosine_similarity", "rank", "rank_scored"]
