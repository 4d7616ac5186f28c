"""File ingestion module for duometer.

Handles everything between a path on the command line and document text:

- listing documents from a directory or from a listing file
- encoding detection
- plain-text and rich (HTML/XML, gzip) text extraction
- assigning integer document ids over one or two collections
"""
from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import chardet
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MARKUP_SUFFIXES = {".html", ".htm", ".xhtml", ".xml"}


# -----------------------------------------------------------
# Listing
# -----------------------------------------------------------


def list_documents(source: Union[str, Path]) -> List[Path]:
    """List the documents named by *source*.

    A directory yields every regular file below it (recursively, sorted).
    A file is read as a listing with one document path per line; blank lines
    and ``#`` comments are skipped and relative paths are resolved against
    the listing's directory.
    """
    source = Path(source)
    if source.is_dir():
        return sorted(p for p in source.rglob("*") if p.is_file())
    if source.is_file():
        docs = []
        base = source.parent
        for line in source.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            path = Path(line).expanduser()
            docs.append(path if path.is_absolute() else base / path)
        return docs
    raise FileNotFoundError(f"Cannot get files from {source}")


# -----------------------------------------------------------
# Reading
# -----------------------------------------------------------


def detect_encoding(data: bytes, sample_size: int = 8192) -> str:
    """Guess the encoding of *data* using chardet."""
    result = chardet.detect(data[:sample_size])
    return result.get("encoding") or "utf-8"


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode(detect_encoding(data), errors="replace")


def extract_markup(content: str) -> str:
    """Visible text of an HTML/XML document."""
    soup = BeautifulSoup(content, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    # Keep block boundaries so sentence splitting still sees them.
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def read_document(path: Union[str, Path], plain_text: bool = False) -> str:
    """Return the text of the document at *path*.

    With ``plain_text=True`` the file is decoded as-is. Otherwise the suffix
    decides: markup is stripped with BeautifulSoup and ``.gz`` files are
    decompressed and handled according to their inner suffix.

    Raises ``OSError`` when the file cannot be read.
    """
    path = Path(path)
    data = path.read_bytes()
    if plain_text:
        return _decode(data)

    suffix = path.suffix.lower()
    if suffix == ".gz":
        data = gzip.decompress(data)
        suffix = Path(path.stem).suffix.lower()

    text = _decode(data)
    if suffix in MARKUP_SUFFIXES:
        return extract_markup(text)
    return text


# -----------------------------------------------------------
# Identifiers
# -----------------------------------------------------------


def assign_ids(
    docs_a: Sequence[Path],
    docs_b: Optional[Sequence[Path]] = None,
) -> Tuple[List[int], List[int], Dict[int, Path]]:
    """Number the union of both collections.

    A document listed in both collections (or twice in one) gets a single
    id. Without *docs_b* the second id list equals the first, which puts the
    detector in single-collection mode.
    """
    path_to_id: Dict[Path, int] = {}

    def _ids(docs: Sequence[Path]) -> List[int]:
        ids = []
        for doc in docs:
            key = Path(doc)
            if key not in path_to_id:
                path_to_id[key] = len(path_to_id)
            ids.append(path_to_id[key])
        return list(dict.fromkeys(ids))

    ids_a = _ids(docs_a)
    ids_b = _ids(docs_b) if docs_b is not None else list(ids_a)
    id_to_path = {doc_id: path for path, doc_id in path_to_id.items()}
    logger.debug("Assigned %d document ids (%d in A, %d in B)", len(id_to_path), len(ids_a), len(ids_b))
    return ids_a, ids_b, id_to_path


def get_file_stats(paths: Sequence[Path]) -> Dict[str, int]:
    """Basic statistics about the documents that would be processed."""
    stats = {
        "total_files": 0,
        "missing_files": 0,
        "markup_files": 0,
        "gz_files": 0,
        "total_size_bytes": 0,
    }
    for path in paths:
        path = Path(path)
        if not path.is_file():
            stats["missing_files"] += 1
            continue
        stats["total_files"] += 1
        stats["total_size_bytes"] += path.stat().st_size
        suffix = path.suffix.lower()
        if suffix in MARKUP_SUFFIXES:
            stats["markup_files"] += 1
        elif suffix == ".gz":
            stats["gz_files"] += 1
    return stats
