"""
Assignment ledger: which reference ids a mapping key has consumed.

A reference row claimed by a fuzzy match under a mapping key is never
offered again under that key, so at most one content record claims a
given row. The ledger is append-only for the lifetime of a mapping key.

Mapping keys combine the meta field and the category
(``"_ref_page_id@page_video"``), so two categories sharing a meta field
do not block each other.

Storage follows the same pattern as ``ProgressStore``: the
``assignment_ledger`` table when a connection is supplied, a dict
otherwise. Each key's set is loaded on first use and cached for the
life of the ledger; ``consume`` writes through and refreshes the cache.

Examples:
    >>> ledger = AssignmentLedger()
    >>> key = mapping_key("_ref_page_id", ReferenceCategory.PAGE_VIDEO)
    >>> ledger.consume(key, "page_00001")
    True
    >>> ledger.consume(key, "page_00001")
    False
    >>> ledger.is_consumed(key, "page_00001")
    True
"""

from __future__ import annotations

from typing import Any

from content_spine.core.enums import ReferenceCategory
from content_spine.core.logging import get_logger
from content_spine.core.timestamps import iso_now

logger = get_logger(__name__)


def mapping_key(meta_key: str, category: ReferenceCategory) -> str:
    return f"{meta_key}@{category.value}"


class AssignmentLedger:
    """Per mapping key set of consumed reference ids."""

    def __init__(self, conn: Any | None = None) -> None:
        self._conn = conn
        self._cache: dict[str, set[str]] = {}

    def is_consumed(self, key: str, ref_id: str) -> bool:
        return ref_id in self._load(key)

    def consumed_set(self, key: str) -> frozenset[str]:
        return frozenset(self._load(key))

    def consume(self, key: str, ref_id: str, *, record_id: int | None = None) -> bool:
        """Mark ``ref_id`` consumed under ``key``. Returns False if it already was."""
        if self.is_consumed(key, ref_id):
            return False
        if self._conn is not None:
            self._conn.execute(
                "INSERT INTO assignment_ledger (mapping_key, ref_id, record_id, assigned_at) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(mapping_key, ref_id) DO NOTHING",
                (key, ref_id, record_id, iso_now()),
            )
            self._conn.commit()
            self._cache.pop(key, None)
        self._load(key).add(ref_id)
        logger.debug("ledger.consumed", mapping_key=key, ref_id=ref_id, record_id=record_id)
        return True

    def _load(self, key: str) -> set[str]:
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        if self._conn is None:
            ids: set[str] = set()
        else:
            rows = self._conn.execute(
                "SELECT ref_id FROM assignment_ledger WHERE mapping_key = ?", (key,)
            ).fetchall()
            ids = {row[0] for row in rows}
        self._cache[key] = ids
        return ids


__all__ = ["AssignmentLedger", "mapping_key"]
