"""duometer - near-duplicate document detection with MinHash.

Finds near-duplicate documents within one collection or across two:
- Word n-gram shingling of plain text and HTML/XML documents
- MinHash signatures over a seeded hash family
- Candidate pruning by shared signature members or super-shingles
- Jaccard estimation and threshold filtering, streamed lazily

Quick Start:
    # CLI usage
    duometer detect -i corpus/ -o pairs.tsv

    # Python API
    from duometer.detector import DictShingleSource, detect
    pairs = list(detect(DictShingleSource(fingerprints), ids, seed=42, threshold=0.5))
"""

from .detector import __version__

# Re-export main API
from .detector import (
    EMPTY_SLOT,
    HashFamily,
    build_signature,
    SharedMemberCandidates,
    SuperShingleCandidates,
    create_candidate_generator,
    estimate,
    ShingleSource,
    DictShingleSource,
    FileShingleSource,
    ExtractionError,
    MinHashDetection,
    detect,
    filter_threshold,
)

__all__ = [
    "__version__",
    "EMPTY_SLOT",
    "HashFamily",
    "build_signature",
    "SharedMemberCandidates",
    "SuperShingleCandidates",
    "create_candidate_generator",
    "estimate",
    "ShingleSource",
    "DictShingleSource",
    "FileShingleSource",
    "ExtractionError",
    "MinHashDetection",
    "detect",
    "filter_threshold",
]
