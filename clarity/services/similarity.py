"""Cosine similarity between dense embedding vectors.

Pure functions, no state.  ``similarity`` scores one pair of vectors;
``similarities`` scores a query against every row of a matrix in one
vectorised numpy call and is what the VectorIndex uses for search.

Zero vectors are undefined input (the result is ``nan``); callers never
embed empty strings.  A dimension mismatch is a programming error and
raises ``ValueError`` immediately.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of *a* and *b*, in ``[-1, 1]``."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or va.shape != vb.shape:
        raise ValueError(
            f"Vectors must be one-dimensional and equal length, got {va.shape} and {vb.shape}"
        )
    return float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb)))


def similarities(query: Sequence[float] | np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Return the cosine similarity of *query* against each row of *matrix*."""
    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    if q.ndim != 1 or m.ndim != 2 or m.shape[1] != q.shape[0]:
        raise ValueError(
            f"Query of shape {q.shape} cannot be compared with matrix of shape {m.shape}"
        )
    norms = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    return (m @ q) / norms
