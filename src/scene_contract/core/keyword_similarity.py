"""Keyword extraction and overlap similarity for paraphrase-tolerant matching."""

from __future__ import annotations

import re
from collections.abc import Collection
from dataclasses import dataclass
from typing import Final

_QUOTE_CHARS: Final[str] = "\"'“”‘’「」『』«»"
_QUOTE_TRANSLATION: Final[dict[int, None]] = str.maketrans("", "", _QUOTE_CHARS)
_PUNCTUATION = re.compile(r"[^\w\s]+")
_WHITESPACE = re.compile(r"\s+")
_QUOTED_SPAN = re.compile(
    r"\"(?P<straight>[^\"\n]+)\""
    r"|“(?P<curly>[^”\n]+)”"
    r"|「(?P<corner>[^」\n]+)」"
    r"|『(?P<white_corner>[^』\n]+)』"
)
_CLAUSE_SPLIT = re.compile(r"[,.]")
MIN_KEYWORD_CHARS: Final[int] = 2


@dataclass(frozen=True)
class KeywordCoverage:
    """Share of a reference string's keywords present in a text."""

    ratio: float
    found: tuple[str, ...]
    total: int


def extract_keywords(text: str, *, stop_words: Collection[str] = ()) -> set[str]:
    """Normalize quotes, strip punctuation and drop short or stop-word tokens."""
    cleaned = text.translate(_QUOTE_TRANSLATION)
    cleaned = _PUNCTUATION.sub(" ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if not cleaned:
        return set()
    return {
        token
        for token in cleaned.split(" ")
        if len(token) >= MIN_KEYWORD_CHARS and token not in stop_words
    }


def similarity(left: str, right: str, *, stop_words: Collection[str] = ()) -> float:
    """Jaccard overlap of two keyword sets, 0.0 when both are empty."""
    left_keywords = extract_keywords(left, stop_words=stop_words)
    right_keywords = extract_keywords(right, stop_words=stop_words)
    union = left_keywords | right_keywords
    if not union:
        return 0.0
    return len(left_keywords & right_keywords) / len(union)


def keyword_coverage(
    reference: str,
    text: str,
    *,
    stop_words: Collection[str] = (),
) -> KeywordCoverage:
    """Measure how many reference keywords occur verbatim inside the text."""
    keywords = sorted(extract_keywords(reference, stop_words=stop_words))
    if not keywords:
        return KeywordCoverage(ratio=0.0, found=(), total=0)
    found = tuple(keyword for keyword in keywords if keyword in text)
    return KeywordCoverage(ratio=len(found) / len(keywords), found=found, total=len(keywords))


def extract_quoted(text: str) -> list[str]:
    """Return every span enclosed in a matching pair of quote marks."""
    spans: list[str] = []
    for match in _QUOTED_SPAN.finditer(text):
        span = next(group for group in match.groups() if group is not None)
        if span.strip():
            spans.append(span)
    return spans


def extract_core_phrase(text: str, *, min_chars: int = 5, max_chars: int = 50) -> str | None:
    """Pick the quoted line, or else the last clause, that best identifies a boundary."""
    for span in extract_quoted(text):
        if min_chars <= len(span) <= max_chars:
            return span
    clauses = [clause.strip() for clause in _CLAUSE_SPLIT.split(text)]
    clauses = [clause for clause in clauses if len(clause) > min_chars]
    if clauses:
        return clauses[-1]
    return None
