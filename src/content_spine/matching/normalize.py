"""
Text normalizer: deterministic text -> token / trigram transforms.

Every function here is total: any input (including ``None``) yields a
value and nothing raises. The candidate store, scorer and resolver all
compare text through these transforms, so they must agree exactly.

Also home to identifier cleanup (``clean_id`` / ``canonical_id``) and
reference text cleanup (``clean_text``).

Examples:
    >>> normalize("  Cozy   Reading-Nook!! ")
    'cozy reading nook'
    >>> sorted(tokenize("a b a"))
    ['a', 'b']
    >>> canonical_id("12", IdKind.VIDEO)
    'video_0012'
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from content_spine.core.enums import IdKind
from content_spine.core.models import SearchContext

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")
_ID_STRIP = re.compile(r"[^a-z0-9_]")
_SLUG_SEPARATORS = re.compile(r"[-_/]+")

MAX_ID_LENGTH = 32


def normalize(text: str | None) -> str:
    """Lowercase, collapse every non ``[a-z0-9]`` run to one space, trim."""
    if not text:
        return ""
    return _NON_ALNUM.sub(" ", str(text).lower()).strip()


def tokenize(text: str | None) -> frozenset[str]:
    """Set of space-separated tokens of the normalized text."""
    return frozenset(t for t in normalize(text).split(" ") if t)


def trigrams(text: str | None) -> frozenset[str]:
    """Set of 3-character windows over the normalized text padded with two spaces.

    Empty text produces an empty set.
    """
    norm = normalize(text)
    if not norm:
        return frozenset()
    padded = f"  {norm}  "
    return frozenset(padded[i : i + 3] for i in range(len(padded) - 2))


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """|a & b| / |a | b|; 0.0 when either side is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / max(len(a | b), 1)


# ---------------------------------------------------------------------------
# Identifiers and reference text
# ---------------------------------------------------------------------------


def clean_id(value: str | int | None) -> str:
    """Lowercase, keep ``[a-z0-9_]``, truncate to 32 characters."""
    if value is None:
        return ""
    return _ID_STRIP.sub("", str(value).strip().lower())[:MAX_ID_LENGTH]


def canonical_id(value: str | int | None, kind: IdKind) -> str:
    """``clean_id`` plus the zero-padded prefix for purely numeric values."""
    raw = "" if value is None else str(value).strip().lower()
    if raw.isdigit() and raw.isascii():
        raw = kind.numeric_format % int(raw)
    return clean_id(raw)


def clean_text(value: str | None, max_length: int) -> str:
    """Trim, collapse whitespace, truncate to ``max_length`` characters."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value).strip())[:max_length]


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def slug_words(slug: str | None) -> str:
    """``"cozy-reading_nook"`` -> ``"cozy reading nook"``."""
    if not slug:
        return ""
    return _SLUG_SEPARATORS.sub(" ", slug).strip()


# ---------------------------------------------------------------------------
# Search context
# ---------------------------------------------------------------------------


def search_context(title: str | None, terms: Iterable[str] = (), slug: str | None = None) -> SearchContext:
    """Build the text a record is matched on: title, term names, slug words.

    Parts whose normalized form was already added are skipped, so a slug
    that repeats the title does not double its weight.
    """
    raw_parts: list[str] = []
    norm_parts: list[str] = []
    for part in [title or "", *terms, slug_words(slug)]:
        norm = normalize(part)
        if not norm or norm in norm_parts:
            continue
        raw_parts.append(collapse_whitespace(str(part)))
        norm_parts.append(norm)
    normalized = " ".join(norm_parts)
    return SearchContext(
        raw_text=" ".join(raw_parts),
        normalized_text=normalized,
        tokens=tokenize(normalized),
    )


__all__ = [
    "normalize",
    "tokenize",
    "trigrams",
    "jaccard",
    "clean_id",
    "canonical_id",
    "clean_text",
    "collapse_whitespace",
    "slug_words",
    "search_context",
]
