"""MinHash utilities for duometer.

Signatures are plain ``numpy.uint64`` vectors of length *k*. The hash family
is the one ``datasketch.MinHash`` derives from a seed (``a * h + b`` modulo a
Mersenne prime, truncated to 32 bits), so every real slot value is below
``2**32``. That leaves :data:`EMPTY_SLOT` free to mark documents with no
shingles at all.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np
import xxhash
from datasketch import MinHash

# -----------------------------------------------------------
# Constants
# -----------------------------------------------------------

DEFAULT_NUM_PERM = 84

# Slot value used for every position of an empty signature. Never produced by
# a real permutation (those are masked to 32 bits) and never counted as a match.
EMPTY_SLOT = np.uint64(0xFFFFFFFFFFFFFFFF)

_MASK64 = 0xFFFFFFFFFFFFFFFF
_SEED_MASK = 0xFFFFFFFF
_UPDATE_CHUNK = 8192
# datasketch permutation scheme; affine32 keeps every hash value below 2**32.
SCHEME = "affine32"

# -----------------------------------------------------------
# xxHash helpers
# -----------------------------------------------------------


def _hash_xx64(value: str) -> int:
    return xxhash.xxh64_intdigest(value.encode("utf-8"))


def batch_xxhash64(strings: List[str]) -> List[int]:
    """Return unsigned 64-bit xxHash fingerprints for *strings*."""
    return [_hash_xx64(s) for s in strings]


def _fingerprint_hash(data: bytes) -> int:
    # 32-bit base hash fed into the datasketch permutations.
    return xxhash.xxh32_intdigest(data)


def _encode(fingerprint: int) -> bytes:
    return (int(fingerprint) & _MASK64).to_bytes(8, byteorder="little")


# -----------------------------------------------------------
# MinHash helpers
# -----------------------------------------------------------


def empty_signature(num_perm: int) -> np.ndarray:
    """Signature of a document without any shingles."""
    return np.full(num_perm, EMPTY_SLOT, dtype=np.uint64)


def is_empty_signature(signature: np.ndarray) -> bool:
    return bool(np.all(signature == EMPTY_SLOT))


class HashFamily:
    """A seeded family of *num_perm* MinHash functions over 64-bit fingerprints.

    The family is fully determined by ``(num_perm, seed)``; two instances built
    with the same arguments produce identical signatures, which is what makes
    signatures from separate collections (or separate runs) comparable.
    Seeds are reduced to 32 bits, so negative seeds are accepted.
    """

    def __init__(self, num_perm: int = DEFAULT_NUM_PERM, seed: int = 1) -> None:
        if num_perm < 1:
            raise ValueError(f"num_perm must be positive, got {num_perm}")
        self.num_perm = num_perm
        self.seed = seed
        self._seed32 = seed & _SEED_MASK
        template = MinHash(num_perm=num_perm, seed=self._seed32, hashfunc=_fingerprint_hash, scheme=SCHEME)
        self.permutations = template.permutations

    def __repr__(self) -> str:
        return f"HashFamily(num_perm={self.num_perm}, seed={self.seed})"

    def signature(self, fingerprints: Optional[Iterable[int]]) -> np.ndarray:
        """Return the MinHash signature of a fingerprint set.

        ``None`` and empty sets both map to :func:`empty_signature`.
        """
        if fingerprints is None:
            return empty_signature(self.num_perm)

        mh = MinHash(
            num_perm=self.num_perm,
            seed=self._seed32,
            hashfunc=_fingerprint_hash,
            permutations=self.permutations,
            scheme=SCHEME,
        )
        seen = False
        chunk: List[bytes] = []
        for fp in fingerprints:
            chunk.append(_encode(fp))
            if len(chunk) >= _UPDATE_CHUNK:
                mh.update_batch(chunk)
                chunk = []
                seen = True
        if chunk:
            mh.update_batch(chunk)
            seen = True

        if not seen:
            return empty_signature(self.num_perm)
        return np.asarray(mh.hashvalues, dtype=np.uint64).copy()


def build_signature(
    fingerprints: Optional[Iterable[int]],
    num_perm: int = DEFAULT_NUM_PERM,
    seed: int = 1,
) -> np.ndarray:
    """One-shot helper around :class:`HashFamily`.

    Prefer a shared :class:`HashFamily` when signing many documents so the
    permutations are only drawn once.
    """
    return HashFamily(num_perm, seed).signature(fingerprints)
