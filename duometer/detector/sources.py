"""Shingle hash sources: where the detector gets fingerprint sets from.

A source maps a document id to its set of 64-bit shingle fingerprints, or
raises :class:`ExtractionError` when the document cannot be processed. The
detector treats that as a per-document problem, not a fatal one.
"""
from __future__ import annotations

import logging
import zlib
from pathlib import Path
from typing import Dict, Mapping, Optional, Set, Union

from .file_ingest import read_document
from .ingest import DEFAULT_NGRAM_SIZE, hashed_shingles

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """No fingerprint set could be produced for a document."""

    def __init__(self, doc_id: int, reason: str, path: Optional[Path] = None):
        self.doc_id = doc_id
        self.reason = reason
        self.path = path
        where = f" ({path})" if path is not None else ""
        super().__init__(f"Error when processing document {doc_id}{where}: {reason}")


class ShingleSource:
    """Base class for shingle hash sources."""

    def hashes(self, doc_id: int) -> Set[int]:
        """Return the fingerprint set of *doc_id* or raise :class:`ExtractionError`."""
        raise NotImplementedError

    def describe(self, doc_id: int) -> str:
        """Human-readable name of a document, used in diagnostics."""
        return str(doc_id)


class DictShingleSource(ShingleSource):
    """Source backed by an in-memory ``{doc_id: fingerprints}`` mapping.

    A ``None`` value stands for a document whose extraction failed.
    """

    def __init__(self, fingerprints: Mapping[int, Optional[Set[int]]]):
        self._fingerprints = dict(fingerprints)

    def hashes(self, doc_id: int) -> Set[int]:
        if doc_id not in self._fingerprints:
            raise ExtractionError(doc_id, "unknown document")
        fps = self._fingerprints[doc_id]
        if fps is None:
            raise ExtractionError(doc_id, "no fingerprints available")
        return set(fps)


class FileShingleSource(ShingleSource):
    """Source reading documents from disk and shingling them on demand."""

    def __init__(
        self,
        paths: Mapping[int, Union[str, Path]],
        ngram_size: int = DEFAULT_NGRAM_SIZE,
        plain_text: bool = False,
    ):
        if ngram_size < 1:
            raise ValueError(f"ngram_size must be positive, got {ngram_size}")
        self.paths: Dict[int, Path] = {k: Path(v) for k, v in paths.items()}
        self.ngram_size = ngram_size
        self.plain_text = plain_text

    def describe(self, doc_id: int) -> str:
        path = self.paths.get(doc_id)
        return str(path) if path is not None else str(doc_id)

    def hashes(self, doc_id: int) -> Set[int]:
        path = self.paths.get(doc_id)
        if path is None:
            raise ExtractionError(doc_id, "unknown document")
        logger.debug("Shingling %s", path)
        try:
            text = read_document(path, plain_text=self.plain_text)
        except (OSError, EOFError, zlib.error, ValueError) as e:
            raise ExtractionError(doc_id, str(e), path) from e
        return hashed_shingles(text, self.ngram_size)
