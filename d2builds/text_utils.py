"""
Text normalization helpers shared by the indexer, parser and matcher.

All matching in the engine works on the same normalized form: lower-case,
trimmed, whitespace collapsed. Phrase lookups run on token boundaries so that
"arc" never matches inside "search".
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple

_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9'_\-]*")
# Punctuation stripped from either end of a whitespace token
_EDGE_PUNCT = "\"'.,;:!?()[]{}<>"


def normalize_text(text: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", text.strip().lower())


def split_words(normalized: str) -> List[str]:
    """
    Split already-normalized text on whitespace, trimming edge punctuation.

    Leading "-" and trailing "%" survive because the query parser gives them
    meaning (excluded terms and percent targets).
    """
    words = []
    for raw in normalized.split(" "):
        word = raw.strip(_EDGE_PUNCT)
        if word:
            words.append(word)
    return words


@lru_cache(maxsize=4096)
def _tokens_cached(text: str) -> Tuple[str, ...]:
    return tuple(_TOKEN_RE.findall(text.lower()))


def tokenize(text: str) -> Tuple[str, ...]:
    """Extract search tokens (alphanumeric runs, keeping inner '-', '_' and ')."""
    if not text:
        return ()
    return _tokens_cached(text)


def find_phrase(tokens: Sequence[str], phrase: str, start: int = 0) -> int:
    """
    Locate a (possibly multi-word) phrase in a token sequence.

    Returns:
        Index of the first token of the match, or -1.
    """
    parts = phrase.split(" ")
    width = len(parts)
    for i in range(start, len(tokens) - width + 1):
        if list(tokens[i:i + width]) == parts:
            return i
    return -1


@lru_cache(maxsize=1024)
def _word_start_pattern(term: str) -> "re.Pattern[str]":
    return re.compile(r"(?<![a-z0-9])" + re.escape(term))


def contains_word_start(text: str, term: str) -> bool:
    """
    True when term occurs in text starting at a word boundary.

    Plural and suffixed forms still match ("grenade" finds "grenades"),
    mid-word occurrences do not.
    """
    return _word_start_pattern(term).search(text) is not None


def any_word_start(text: str, terms: Iterable[str]) -> bool:
    return any(contains_word_start(text, term) for term in terms)
