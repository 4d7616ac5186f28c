"""duometer detector package.

Core public API lives here so external users can::

    from duometer.detector import DictShingleSource, detect, filter_threshold

    source = DictShingleSource({1: {11, 12, 13}, 2: {11, 12, 13}, 3: {90, 91}})
    for a, b, sim in filter_threshold(detect(source, [1, 2], [3], seed=7), 0.2):
        print(a, b, sim)

Building blocks:
    from duometer.detector.minhash import HashFamily, build_signature
    from duometer.detector.candidates import SharedMemberCandidates, SuperShingleCandidates
    from duometer.detector.similarity import estimate
    from duometer.detector.dedup import MinHashDetection
"""

from importlib.metadata import version as _pkg_version


# Semantic version of the installed package
try:
    __version__: str = _pkg_version("duometer")
except Exception:  # pragma: no cover – local dev path
    __version__ = "0.2.0"


from .minhash import DEFAULT_NUM_PERM, EMPTY_SLOT, HashFamily, build_signature
from .candidates import (
    CandidateGenerator,
    SharedMemberCandidates,
    SuperShingleCandidates,
    create_candidate_generator,
    super_shingles,
)
from .similarity import estimate, jaccard
from .sources import DictShingleSource, ExtractionError, FileShingleSource, ShingleSource
from .dedup import MinHashDetection, detect, filter_threshold

__all__ = [
    "__version__",
    "DEFAULT_NUM_PERM",
    "EMPTY_SLOT",
    "HashFamily",
    "build_signature",
    "CandidateGenerator",
    "SharedMemberCandidates",
    "SuperShingleCandidates",
    "create_candidate_generator",
    "super_shingles",
    "estimate",
    "jaccard",
    "ShingleSource",
    "DictShingleSource",
    "FileShingleSource",
    "ExtractionError",
    "MinHashDetection",
    "detect",
    "filter_threshold",
]
