"""Cosine similarity over L2-normalized embeddings."""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np

from tb_mentor.models.retrieval import RankedCandidate


def l2_normalize(vector: Sequence[float]) -> np.ndarray:
    """Scale a vector to unit length; undefined norms give the zero vector."""
    arr = np.asarray(vector, dtype=np.float64)
    norm = float(np.sqrt(np.dot(arr, arr))) if arr.size else 0.0
    if not norm or not np.isfinite(norm):
        return np.zeros_like(arr)
    return arr / norm


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two normalized vectors over their common prefix."""
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)
    length = min(a_arr.size, b_arr.size)
    if not length:
        return 0.0
    return float(np.dot(a_arr[:length], b_arr[:length]))


def score_indices(
    query_vector: Sequence[float],
    embeddings: Sequence[Sequence[float]],
    indices: Iterable[int],
    channel: str = "prose",
) -> List[RankedCandidate]:
    """Score each corpus position against the query, best first."""
    scored = [
        RankedCandidate(
            index=idx,
            score=cosine_similarity(query_vector, embeddings[idx]),
            channel=channel,
        )
        for idx in indices
    ]
    # sorted() is stable, so ties keep corpus order
    return sorted(scored, key=lambda candidate: candidate.score, reverse=True)
