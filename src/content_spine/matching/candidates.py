"""
Candidate store adapter: reference rows whose text resembles a record.

Given a category and a ``SearchContext``, returns ``MatchCandidate``
values drawn from the ``ref_search`` surface, excluding every reference
id the assignment ledger has consumed for the active mapping key and
every id already linked (through the mapping meta field) to another
content record.

Manifesto:
    Retrieval casts a cheap, wide net; the scorer decides. The
    accelerated path asks the FTS5 index for the best-ranked rows and
    passes its relevance on. When the index is missing, faults, or
    finds nothing usable, a LIKE scan over the longest tokens runs
    before "no candidates" is concluded.

Architecture:
    ::

        find(category, context, mapping_key, meta_key, post_types)
              │
              ├── excluded = ledger.consumed_set(key) ∪ linked meta ids
              │
              ├── accelerated:  ref_search_fts MATCH '"tok" OR "tok"'
              │                 ORDER BY bm25  → index_relevance = -bm25
              │        │
              │        └─ zero usable rows / sqlite error ─┐
              │                                            ▼
              └── fallback:     ref_search LIKE any of top-4 tokens (len >= 3)
                                ORDER BY ref_id, pool >= 25, no relevance

Guardrails:
    ❌ DON'T: Raise on empty results
    ✅ DO: Raise ``CandidateStoreFault`` only when the fallback itself faults

Tags:
    candidates, retrieval, fts5, bm25, like, fallback, content-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import Any

from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import ReferenceCategory
from content_spine.core.errors import CandidateStoreFault, StorageFault
from content_spine.core.logging import get_logger
from content_spine.core.models import MatchCandidate, SearchContext
from content_spine.core.protocols import ContentRecordStore
from content_spine.core.schema import fts_available
from content_spine.matching.ledger import AssignmentLedger
from content_spine.matching.normalize import canonical_id

logger = get_logger(__name__)

MIN_FALLBACK_POOL = 25
FALLBACK_TOKENS = 4
MIN_TOKEN_LENGTH = 3


def fallback_tokens(context: SearchContext) -> list[str]:
    """The longest (up to four) tokens of at least three characters."""
    tokens = sorted((t for t in context.tokens if len(t) >= MIN_TOKEN_LENGTH), key=lambda t: (-len(t), t))
    return tokens[:FALLBACK_TOKENS]


def fts_query(context: SearchContext) -> str:
    """OR of quoted tokens; tokens are already ``[a-z0-9]`` only."""
    return " OR ".join(f'"{token}"' for token in sorted(context.tokens))


class CandidateStore:
    """Finds candidate reference rows over a SQLite connection.

    Args:
        conn: Connection holding ``ref_search`` (and ``ref_search_fts``).
        content: Content record store, read for already-linked ids.
        ledger: Assignment ledger consulted for consumed ids.
        limit: Candidates returned by the accelerated path.
        fallback_pool: Candidates returned by the fallback path (>= 25).
        use_index: Disable to force the fallback path.
    """

    def __init__(
        self,
        conn: Any,
        content: ContentRecordStore,
        ledger: AssignmentLedger,
        *,
        limit: int = 10,
        fallback_pool: int = MIN_FALLBACK_POOL,
        use_index: bool = True,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self._conn = conn
        self._content = content
        self._ledger = ledger
        self.limit = limit
        self.fallback_pool = max(MIN_FALLBACK_POOL, fallback_pool)
        self._diagnostics = diagnostics
        self._index_available: bool | None = None if use_index else False

    @classmethod
    def from_settings(cls, conn, content, ledger, settings, **kwargs: Any) -> CandidateStore:
        return cls(
            conn,
            content,
            ledger,
            limit=settings.candidate_limit,
            fallback_pool=settings.fallback_pool,
            **kwargs,
        )

    @property
    def index_available(self) -> bool:
        if self._index_available is None:
            try:
                self._index_available = fts_available(self._conn)
            except sqlite3.Error:
                self._index_available = False
        return self._index_available

    # -- public ------------------------------------------------------------

    def find(
        self,
        category: ReferenceCategory,
        context: SearchContext,
        *,
        mapping_key: str,
        meta_key: str,
        post_types: Sequence[str],
        record_id: int | None = None,
    ) -> list[MatchCandidate]:
        """Candidates for ``context``; empty when nothing resembles it.

        Raises:
            CandidateStoreFault: when the fallback path (or the exclusion
                lookup) fails at the storage layer.
        """
        if context.is_empty:
            return []
        excluded = self.excluded_ids(category, mapping_key, meta_key, post_types, record_id)

        if self.index_available:
            try:
                found = self._accelerated(category, context, excluded)
            except sqlite3.Error as exc:
                fault = CandidateStoreFault("Index search failed; using fallback", cause=exc)
                fault.with_context(category=category.value, record_id=record_id)
                self._note_fault("candidates.index_fault", fault)
                found = []
            if found:
                return found
        return self._fallback(category, context, excluded, record_id)

    def excluded_ids(
        self,
        category: ReferenceCategory,
        mapping_key: str,
        meta_key: str,
        post_types: Sequence[str],
        record_id: int | None = None,
    ) -> frozenset[str]:
        consumed = self._ledger.consumed_set(mapping_key)
        try:
            linked = self._content.meta_values(meta_key, post_types, exclude_record_id=record_id)
        except StorageFault as exc:
            raise CandidateStoreFault("Could not read linked ids", cause=exc).with_context(
                category=category.value, record_id=record_id, mapping_key=mapping_key
            ) from exc
        linked_ids = {canonical_id(value, category.kind) for value in linked}
        linked_ids.discard("")
        return consumed | linked_ids

    # -- internal ----------------------------------------------------------

    def _accelerated(
        self, category: ReferenceCategory, context: SearchContext, excluded: frozenset[str]
    ) -> list[MatchCandidate]:
        rows = self._conn.execute(
            "SELECT ref_id, candidate_text, bm25(ref_search_fts) AS bm25_score "
            "FROM ref_search_fts "
            "WHERE ref_search_fts MATCH ? AND category = ? "
            "ORDER BY bm25_score ASC, ref_id ASC "
            "LIMIT ?",
            (fts_query(context), category.value, self.limit + len(excluded)),
        ).fetchall()
        found = [
            MatchCandidate(reference_id=row[0], candidate_text=row[1], index_relevance=-float(row[2]))
            for row in rows
            if row[0] not in excluded
        ]
        return found[: self.limit]

    def _fallback(
        self,
        category: ReferenceCategory,
        context: SearchContext,
        excluded: frozenset[str],
        record_id: int | None,
    ) -> list[MatchCandidate]:
        tokens = fallback_tokens(context)
        if not tokens:
            return []
        where = " OR ".join("search_text LIKE ?" for _ in tokens)
        try:
            rows = self._conn.execute(
                "SELECT ref_id, candidate_text FROM ref_search "
                f"WHERE category = ? AND ({where}) "
                "ORDER BY ref_id ASC LIMIT ?",
                (category.value, *[f"%{t}%" for t in tokens], self.fallback_pool + len(excluded)),
            ).fetchall()
        except sqlite3.Error as exc:
            fault = CandidateStoreFault("Fallback candidate search failed", cause=exc)
            raise fault.with_context(category=category.value, record_id=record_id) from exc
        found = [MatchCandidate(reference_id=row[0], candidate_text=row[1]) for row in rows if row[0] not in excluded]
        return found[: self.fallback_pool]

    def _note_fault(self, event: str, fault: CandidateStoreFault) -> None:
        if self._diagnostics is not None:
            self._diagnostics.record(event, f"WARNING: {fault.message} ({fault.cause})", level="warning")
        else:
            logger.warning(event, **fault.to_dict())


__all__ = ["CandidateStore", "fallback_tokens", "fts_query"]
