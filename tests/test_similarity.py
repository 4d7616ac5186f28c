"""Similarity estimator tests."""
from __future__ import annotations

import numpy as np

from duometer.detector.minhash import EMPTY_SLOT, HashFamily, build_signature, empty_signature
from duometer.detector.similarity import estimate, estimate_batch, jaccard


def _sig(values) -> np.ndarray:
    return np.asarray(values, dtype=np.uint64)


def test_estimate_counts_agreeing_positions() -> None:
    assert estimate(_sig([1, 2, 3, 4]), _sig([1, 2, 0, 0])) == 0.5
    assert estimate(_sig([1, 2, 3, 4]), _sig([4, 3, 2, 1])) == 0.0


def test_self_similarity_is_one() -> None:
    sig = build_signature({3, 1, 4, 1, 5, 9, 2, 6}, num_perm=84, seed=11)
    assert estimate(sig, sig) == 1.0


def test_empty_documents_are_never_similar() -> None:
    empty = empty_signature(10)
    full = build_signature({1, 2}, num_perm=10, seed=1)
    assert estimate(empty, empty) == 0.0
    assert estimate(empty, full) == 0.0


def test_sentinel_slots_do_not_count() -> None:
    a = _sig([1, 2, EMPTY_SLOT, EMPTY_SLOT])
    b = _sig([1, 9, EMPTY_SLOT, EMPTY_SLOT])
    assert estimate(a, b) == 0.25


def test_estimate_batch_matches_estimate() -> None:
    family = HashFamily(num_perm=32, seed=3)
    sets = [set(range(i, i + 40)) for i in range(0, 100, 10)]
    matrix = np.vstack([family.signature(s) for s in sets])
    rows_a = [0, 0, 1, 3, 5]
    rows_b = [1, 2, 4, 3, 9]
    batch = estimate_batch(matrix, rows_a, rows_b)
    for i, (ra, rb) in enumerate(zip(rows_a, rows_b)):
        assert batch[i] == estimate(matrix[ra], matrix[rb])


def test_estimate_tracks_true_jaccard() -> None:
    a = set(range(0, 300))
    b = set(range(100, 400))
    assert jaccard(a, b) == 0.5
    family = HashFamily(num_perm=256, seed=2024)
    assert abs(estimate(family.signature(a), family.signature(b)) - 0.5) < 0.15


def test_disjoint_sets_approach_zero() -> None:
    a = set(range(0, 200))
    b = set(range(1000, 1200))
    scores = []
    for seed in range(20):
        family = HashFamily(num_perm=128, seed=seed)
        scores.append(estimate(family.signature(a), family.signature(b)))
    assert sum(scores) / len(scores) < 0.05


def test_exact_jaccard() -> None:
    assert jaccard({1, 2, 3}, {2, 3, 4}) == 0.5
    assert jaccard(set(), {1}) == 0.0
    assert jaccard({7}, {7}) == 1.0
