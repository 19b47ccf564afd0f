"""
Hybrid scorer: one confidence value per candidate.

    overlap      = Jaccard over token sets
    trigram_sim  = Jaccard over trigram sets of the normalized texts
    string_sim   = Ratcliff/Obershelp ratio of the normalized texts
    base         = 0.45*overlap + 0.25*trigram_sim + 0.30*string_sim, clamped to [0, 1]
    final        = min(1, base + min(0.4, index_relevance / 10))   when index relevance is present
                 = base                                           otherwise

``string_sim`` uses ``difflib.SequenceMatcher`` with autojunk disabled:
twice the matched characters of a recursive longest-common-substring
comparison over the combined length. It is not guaranteed symmetric;
``overlap`` and ``trigram_sim`` are.

Examples:
    >>> ctx = search_context("Cozy Reading Nook Tour")
    >>> score(ctx, MatchCandidate("video_0001", "cozy reading nook tour"))
    1.0
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import SequenceMatcher

from content_spine.core.models import MatchCandidate, ScoredCandidate, SearchContext
from content_spine.matching.normalize import jaccard, normalize, tokenize, trigrams

OVERLAP_WEIGHT = 0.45
TRIGRAM_WEIGHT = 0.25
STRING_WEIGHT = 0.30
RELEVANCE_CAP = 0.4
RELEVANCE_DIVISOR = 10.0


def overlap(a: str, b: str) -> float:
    return jaccard(tokenize(a), tokenize(b))


def trigram_sim(a: str, b: str) -> float:
    return jaccard(trigrams(a), trigrams(b))


def string_sim(a: str, b: str) -> float:
    """Matched-character ratio of the normalized strings, in [0, 1]."""
    left, right = normalize(a), normalize(b)
    if not left or not right:
        return 0.0
    return SequenceMatcher(None, left, right, autojunk=False).ratio()


def base_score(context_text: str, candidate_text: str) -> float:
    value = (
        OVERLAP_WEIGHT * overlap(context_text, candidate_text)
        + TRIGRAM_WEIGHT * trigram_sim(context_text, candidate_text)
        + STRING_WEIGHT * string_sim(context_text, candidate_text)
    )
    # float error can leave identical strings at 0.9999999999999999
    return min(1.0, max(0.0, round(value, 12)))


def score(context: SearchContext, candidate: MatchCandidate) -> float:
    base = base_score(context.raw_text, candidate.candidate_text)
    if candidate.index_relevance is None:
        return base
    bonus = min(RELEVANCE_CAP, max(0.0, candidate.index_relevance) / RELEVANCE_DIVISOR)
    return min(1.0, base + bonus)


def rank(context: SearchContext, candidates: Iterable[MatchCandidate]) -> list[ScoredCandidate]:
    """Score descending; ties keep retrieval order."""
    scored = [ScoredCandidate(candidate=c, score=score(context, c)) for c in candidates]
    return sorted(scored, key=lambda s: -s.score)


__all__ = [
    "overlap",
    "trigram_sim",
    "string_sim",
    "base_score",
    "score",
    "rank",
]
