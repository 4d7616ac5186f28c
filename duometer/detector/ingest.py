"""Text shingling utilities for duometer.

A document is split into sentences, each sentence into lowercase word
tokens, and word n-grams are taken inside each sentence so that no shingle
spans a sentence boundary. Shingles are fingerprinted with 64-bit xxHash.
"""
from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Set

from .minhash import batch_xxhash64

DEFAULT_NGRAM_SIZE = 8

# -----------------------------------------------------------
# Tokenisation helpers
# -----------------------------------------------------------

_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+|\n\s*\n")
_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def split_sentences(text: str) -> List[str]:
    """Split *text* on sentence-final punctuation and on blank lines."""
    if text is None or not isinstance(text, str):
        return []
    return [s.strip() for s in _SENTENCE_RE.split(text) if s and s.strip()]


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens of *text*; punctuation is dropped."""
    if text is None or not isinstance(text, str):
        return []
    return _TOKEN_RE.findall(text.lower())


# -----------------------------------------------------------
# N-gram helpers
# -----------------------------------------------------------


def ngrams(tokens: List[str], n: int = DEFAULT_NGRAM_SIZE) -> Iterator[str]:
    """Generate *n*-grams (as space-joined strings) from *tokens*.

    A non-empty token list shorter than *n* yields a single shingle made of
    all its tokens, so short sentences still contribute to the fingerprint.
    """
    if n < 1:
        raise ValueError(f"n-gram size must be positive, got {n}")
    if not tokens:
        return
    if len(tokens) < n:
        yield " ".join(tokens)
        return
    for i in range(len(tokens) - n + 1):
        yield " ".join(tokens[i : i + n])  # noqa: E203


def sentence_ngrams(text: str, n: int = DEFAULT_NGRAM_SIZE) -> Iterator[str]:
    """N-grams of every sentence of *text*; none crosses a sentence boundary."""
    for sentence in split_sentences(text):
        yield from ngrams(tokenize(sentence), n)


def hashed_shingles(text: str, n: int = DEFAULT_NGRAM_SIZE) -> Set[int]:
    """The shingle fingerprint set of *text*."""
    shingles: Iterable[str] = set(sentence_ngrams(text, n))
    return set(batch_xxhash64(list(shingles)))
