"""Candidate-pair generation for duometer.

Two strategies share one interface, :meth:`CandidateGenerator.generate`:

* :class:`SharedMemberCandidates` pairs documents whose signatures agree in
  at least one slot. High recall, many false positives.
* :class:`SuperShingleCandidates` pairs documents sharing a whole block of
  ``size`` consecutive slots. A pair with Jaccard ``J`` agrees on a block
  with probability roughly ``J ** size``, so larger blocks prune harder at
  the cost of recall.

Both build an inverted index over the first collection once, then query it
with every signature of the second collection. Pairs are returned as
``(min_id, max_id)`` so each unordered pair appears once and self pairs are
never produced.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Set, Tuple

import numpy as np
import xxhash

from .minhash import EMPTY_SLOT

logger = logging.getLogger(__name__)

Pair = Tuple[int, int]
Signatures = Mapping[int, np.ndarray]


def _canonical(a: int, b: int) -> Pair:
    return (a, b) if a < b else (b, a)


class CandidateGenerator:
    """Base class for candidate strategies."""

    name = "base"

    def keys(self, signature: np.ndarray) -> Iterable[Hashable]:
        """Index keys of one signature. Two documents sharing a key are candidates."""
        raise NotImplementedError

    def generate(self, sigs_a: Signatures, sigs_b: Signatures) -> Set[Pair]:
        """Return the candidate pairs between *sigs_a* and *sigs_b*.

        Passing the same mapping twice (or two mappings with equal keys)
        gives single-collection mode.
        """
        index: Dict[Hashable, List[int]] = defaultdict(list)
        for doc_id, sig in sigs_a.items():
            for key in self.keys(sig):
                index[key].append(doc_id)

        pairs: Set[Pair] = set()
        for doc_id, sig in sigs_b.items():
            for key in self.keys(sig):
                for other in index.get(key, ()):
                    if other != doc_id:
                        pairs.add(_canonical(other, doc_id))

        logger.debug(
            "%s: %d index keys, %d candidate pairs", self.name, len(index), len(pairs)
        )
        return pairs

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SharedMemberCandidates(CandidateGenerator):
    """Candidates share at least one ``(position, value)`` signature slot."""

    name = "shared-member"

    def keys(self, signature: np.ndarray) -> Iterable[Tuple[int, int]]:
        return [
            (pos, int(value))
            for pos, value in enumerate(signature)
            if value != EMPTY_SLOT
        ]


def super_shingles(signature: np.ndarray, size: int) -> List[Tuple[int, int]]:
    """Split *signature* into blocks of *size* slots and fingerprint each block.

    Returns ``(block_index, xxh64)`` tuples. The last block is short when
    *size* does not divide the signature length. Blocks that contain an
    empty slot are left out. Fingerprints hash the raw little-endian bytes
    of the block, so the order of the slots matters.
    """
    sig = np.ascontiguousarray(signature, dtype="<u8")
    out = []
    for block_idx, start in enumerate(range(0, len(sig), size)):
        block = sig[start : start + size]  # noqa: E203
        if np.any(block == EMPTY_SLOT):
            continue
        out.append((block_idx, xxhash.xxh64_intdigest(block.tobytes())))
    return out


class SuperShingleCandidates(CandidateGenerator):
    """Candidates share at least one ``(block_index, super-shingle)``.

    Blocks are disjoint, so growing the block size only shrinks the candidate
    set when the smaller size divides the larger one (4 to 8, not 4 to 5).
    """

    name = "super-shingle"

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"super-shingle size must be positive, got {size}")
        self.size = size

    def keys(self, signature: np.ndarray) -> Iterable[Tuple[int, int]]:
        return super_shingles(signature, self.size)

    def __repr__(self) -> str:
        return f"SuperShingleCandidates(size={self.size})"


def create_candidate_generator(super_shingle_size: Optional[int] = None) -> CandidateGenerator:
    """Super-shingle strategy when a block size is given, shared-member otherwise."""
    if super_shingle_size is None:
        return SharedMemberCandidates()
    return SuperShingleCandidates(super_shingle_size)
