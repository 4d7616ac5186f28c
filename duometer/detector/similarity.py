"""Similarity estimation from MinHash signatures."""
from __future__ import annotations

from typing import AbstractSet, Sequence

import numpy as np

from .minhash import EMPTY_SLOT


def estimate(sig_a: np.ndarray, sig_b: np.ndarray) -> float:
    """Estimated Jaccard similarity: share of slots where both signatures agree.

    Both signatures must come from the same :class:`~.minhash.HashFamily`.
    Empty slots never count as agreement, so documents without shingles
    score 0.0 against everything, themselves included.
    """
    a = np.asarray(sig_a)
    b = np.asarray(sig_b)
    matches = np.count_nonzero((a == b) & (a != EMPTY_SLOT))
    return matches / len(a)


def estimate_batch(
    matrix: np.ndarray,
    rows_a: Sequence[int],
    rows_b: Sequence[int],
) -> np.ndarray:
    """Vectorised :func:`estimate` over pairs of rows of a signature matrix."""
    left = matrix[np.asarray(rows_a, dtype=np.intp)]
    right = matrix[np.asarray(rows_b, dtype=np.intp)]
    matches = np.count_nonzero((left == right) & (left != EMPTY_SLOT), axis=1)
    return matches / matrix.shape[1]


def jaccard(a: AbstractSet[int], b: AbstractSet[int]) -> float:
    """Exact Jaccard similarity of two fingerprint sets."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)
