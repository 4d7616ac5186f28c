"""Near-duplicate detection pipeline.

Signatures are built once per document (optionally on a thread pool), a
candidate strategy shortlists pairs, and every candidate is scored with the
MinHash estimator. Results are yielded lazily in batches; nothing is sorted
and the caller decides how much of the output to consume.
"""
from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import numpy as np
from tqdm import tqdm

from .candidates import CandidateGenerator, Pair, SharedMemberCandidates, create_candidate_generator
from .minhash import DEFAULT_NUM_PERM, HashFamily
from .similarity import estimate_batch
from .sources import ExtractionError, ShingleSource

logger = logging.getLogger(__name__)

ScoredPair = Tuple[int, int, float]

DEFAULT_THRESHOLD = 0.2

# -----------------------------------------------------------
# Helpers
# -----------------------------------------------------------


def random_seed() -> int:
    """Fresh 32-bit seed for runs that do not pin one."""
    return random.randrange(1 << 32)


def filter_threshold(pairs: Iterable[ScoredPair], threshold: float = DEFAULT_THRESHOLD) -> Iterator[ScoredPair]:
    """Keep pairs whose similarity is at least *threshold* (inclusive)."""
    return (pair for pair in pairs if pair[2] >= threshold)


# -----------------------------------------------------------
# Core pipeline
# -----------------------------------------------------------


class MinHashDetection:
    """MinHash near-duplicate detector.

    Args:
        source: Shingle hash source supplying fingerprint sets per document id.
        candidates: Candidate strategy; shared-member when omitted.
        workers: Threads used to build signatures. 1 builds them inline.
        include_within: With two distinct collections, also pair documents
            inside the same collection. Cross-collection pairs only by default.
        batch_size: Number of candidate pairs scored per numpy batch.
        show_progress: Show a tqdm bar while building signatures.

    After a run has started, ``seed`` holds the seed in use and ``failures``
    maps every document id whose extraction failed to its error.
    """

    def __init__(
        self,
        source: ShingleSource,
        candidates: Optional[CandidateGenerator] = None,
        *,
        workers: int = 1,
        include_within: bool = False,
        batch_size: int = 4096,
        show_progress: bool = False,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.source = source
        self.candidates = candidates or SharedMemberCandidates()
        self.workers = workers
        self.include_within = include_within
        self.batch_size = batch_size
        self.show_progress = show_progress

        self.seed: Optional[int] = None
        self.failures: Dict[int, ExtractionError] = {}
        self.num_documents = 0
        self.num_candidates = 0

    # --------------------------------------------------
    # Signatures
    # --------------------------------------------------

    def _sign(self, doc_id: int, family: HashFamily) -> Tuple[int, Optional[np.ndarray], Optional[ExtractionError]]:
        try:
            fingerprints = self.source.hashes(doc_id)
        except ExtractionError as e:
            return doc_id, None, e
        return doc_id, family.signature(fingerprints), None

    def build_signatures(self, ids: Iterable[int], family: HashFamily) -> Dict[int, np.ndarray]:
        """Sign every id once. Failed ids are recorded in ``failures`` and left out."""
        ids = list(ids)
        signatures: Dict[int, np.ndarray] = {}

        def _collect(results: Iterable[Tuple[int, Optional[np.ndarray], Optional[ExtractionError]]]) -> None:
            for doc_id, sig, err in tqdm(
                results, total=len(ids), desc="Building signatures", disable=not self.show_progress
            ):
                if err is not None:
                    logger.warning("Skipping %s: %s", self.source.describe(doc_id), err.reason)
                    self.failures[doc_id] = err
                else:
                    signatures[doc_id] = sig

        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                _collect(pool.map(lambda doc_id: self._sign(doc_id, family), ids))
        else:
            _collect(self._sign(doc_id, family) for doc_id in ids)

        logger.info("Built %d signatures (%d failed)", len(signatures), len(ids) - len(signatures))
        return signatures

    # --------------------------------------------------
    # Detection
    # --------------------------------------------------

    def detect(
        self,
        ids_a: Iterable[int],
        ids_b: Iterable[int],
        num_perm: int = DEFAULT_NUM_PERM,
        seed: Optional[int] = None,
    ) -> Iterator[ScoredPair]:
        """Lazily yield ``(id_a, id_b, estimated_similarity)`` for every candidate.

        Equal id sets select single-collection mode. Arguments are validated
        and the seed resolved immediately; documents are only read once the
        returned iterator is consumed.
        """
        if seed is None:
            seed = random_seed()
            logger.info("No seed given, using random seed %d", seed)
        else:
            logger.info("Using seed %d", seed)
        self.seed = seed
        family = HashFamily(num_perm, seed)
        return self._run(set(ids_a), set(ids_b), family)

    def _run(self, set_a: Set[int], set_b: Set[int], family: HashFamily) -> Iterator[ScoredPair]:
        single = set_a == set_b
        all_ids = sorted(set_a | set_b)
        self.num_documents = len(all_ids)
        self.failures = {}

        signatures = self.build_signatures(all_ids, family)

        sigs_a = {i: signatures[i] for i in set_a if i in signatures}
        if single:
            sigs_b = sigs_a
        elif self.include_within:
            sigs_a = sigs_b = signatures
        else:
            sigs_b = {i: signatures[i] for i in set_b if i in signatures}

        pairs = self.candidates.generate(sigs_a, sigs_b)
        self.num_candidates = len(pairs)
        logger.info("%d candidate pairs (%s)", len(pairs), self.candidates.name)

        orient = None if single else _orienter(set_a, set_b)
        yield from self._score(pairs, signatures, orient)

    def _score(
        self,
        pairs: Set[Pair],
        signatures: Dict[int, np.ndarray],
        orient: Optional[Callable[[Pair], Pair]],
    ) -> Iterator[ScoredPair]:
        if not pairs:
            return
        ids = list(signatures)
        row = {doc_id: i for i, doc_id in enumerate(ids)}
        matrix = np.vstack([signatures[doc_id] for doc_id in ids])

        it = iter(pairs)
        while True:
            batch: List[Pair] = list(islice(it, self.batch_size))
            if not batch:
                return
            if orient is not None:
                batch = [orient(p) for p in batch]
            sims = estimate_batch(matrix, [row[a] for a, _ in batch], [row[b] for _, b in batch])
            for (a, b), sim in zip(batch, sims):
                yield a, b, float(sim)


def _orienter(set_a: Set[int], set_b: Set[int]) -> Callable[[Pair], Pair]:
    """Put the collection-A member first whenever the pair allows it."""

    def orient(pair: Pair) -> Pair:
        a, b = pair
        if not (a in set_a and b in set_b) and (b in set_a and a in set_b):
            return b, a
        return pair

    return orient


def detect(
    source: ShingleSource,
    ids_a: Iterable[int],
    ids_b: Optional[Iterable[int]] = None,
    num_perm: int = DEFAULT_NUM_PERM,
    seed: Optional[int] = None,
    super_shingles: Optional[int] = None,
    threshold: Optional[float] = None,
    **kwargs,
) -> Iterator[ScoredPair]:
    """
    Convenience wrapper around :class:`MinHashDetection`.

    Args:
        source: Shingle hash source
        ids_a: First collection of document ids
        ids_b: Second collection (single-collection mode when omitted)
        num_perm: Signature length
        seed: Hash family seed (random when omitted)
        super_shingles: Super-shingle block size; shared-member strategy when omitted
        threshold: Optional inclusive similarity cutoff
        **kwargs: Further :class:`MinHashDetection` options

    Returns:
        Lazy iterator of scored pairs
    """
    ids_a = list(ids_a)
    detector = MinHashDetection(source, create_candidate_generator(super_shingles), **kwargs)
    pairs = detector.detect(ids_a, ids_a if ids_b is None else ids_b, num_perm, seed)
    if threshold is not None:
        pairs = filter_threshold(pairs, threshold)
    return pairs
