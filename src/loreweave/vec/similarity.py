"""Cosine similarity over plain float lists, via numpy."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def _normalized_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray | None:
    """Stack same-dimension vectors into an L2-normalized matrix.

    Empty vectors are skipped; vectors whose length differs from the
    first non-empty one are skipped too. Zero vectors stay zero.
    """
    rows = [v for v in vectors if len(v) > 0]
    if not rows:
        return None
    dim = len(rows[0])
    matrix = np.asarray([v for v in rows if len(v) == dim], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms = np.where(norms == 0, 1, norms)
    return matrix / norms


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b, in [-1, 1].

    0.0 for empty, zero-length, or dimension-mismatched inputs.
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def max_similarity(
    queries: Sequence[Sequence[float]],
    candidates: Sequence[Sequence[float]],
) -> float:
    """Best cosine similarity over every (query, candidate) pair.

    Covers query variants on one side and chunked candidates on the
    other. 0.0 when either side has nothing comparable.
    """
    q = _normalized_matrix(queries)
    c = _normalized_matrix(candidates)
    if q is None or c is None or q.shape[1] != c.shape[1]:
        return 0.0
    return float(np.clip(np.max(q @ c.T), -1.0, 1.0))
