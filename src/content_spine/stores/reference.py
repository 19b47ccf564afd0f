"""
SQLite reference row store.

One table per ``ReferenceCategory`` (the enum carries table, id column
and columns). ``upsert`` is the entry point an importer uses: it cleans
ids and text the same way for every source, replaces rows by
``(category, id)`` (and ``keyword_slot`` for TITLES), then rebuilds the
``ref_search`` row and its FTS5 mirror for every touched id so candidate
search sees the new text.

Manifesto:
    Reference rows are immutable once imported; the core only reads
    them. Cleaning happens at the door so the resolver never sees an id
    outside ``[a-z0-9_]`` or a value wider than its column.

Examples:
    >>> refs = SqliteReferenceStore(conn)
    >>> refs.upsert(ReferenceCategory.PAGE_VIDEO, [{"page_id": "7", "h2_1": "Intro"}])
    1
    >>> refs.exists(ReferenceCategory.PAGE_VIDEO, "page_00007")
    True

Tags:
    reference, import, upsert, fts5, sqlite, content-spine
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping
from typing import Any

from content_spine.core.enums import (
    COLUMN_WIDTHS,
    DEFAULT_COLUMN_WIDTH,
    ReferenceCategory,
)
from content_spine.core.errors import StorageFault
from content_spine.core.logging import get_logger
from content_spine.core.models import ReferenceRow
from content_spine.core.schema import fts_available
from content_spine.matching.normalize import canonical_id, clean_text, normalize

logger = get_logger(__name__)

# TITLES rows without these are dropped on import.
_TITLES_REQUIRED = ("keyword_slot", "focus_keyword", "seo_title")


def clean_reference_row(category: ReferenceCategory, raw: Mapping[str, Any]) -> dict[str, str] | None:
    """Cleaned column dict including the id column, or None when unusable."""
    ref_id = canonical_id(raw.get(category.id_column), category.kind)
    if not ref_id:
        return None
    row = {category.id_column: ref_id}
    for column in category.columns:
        width = COLUMN_WIDTHS.get(column, DEFAULT_COLUMN_WIDTH)
        row[column] = clean_text(raw.get(column), width)
    if category.multi_row and not all(row[c] for c in _TITLES_REQUIRED):
        return None
    return row


class SqliteReferenceStore:
    """``ReferenceRowStore`` backed by SQLite."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self._fts: bool | None = None

    @property
    def fts(self) -> bool:
        if self._fts is None:
            self._fts = fts_available(self._conn)
        return self._fts

    # -- import --------------------------------------------------------------

    def upsert(self, category: ReferenceCategory, rows: Iterable[Mapping[str, Any]]) -> int:
        """Replace rows by id; returns how many were stored."""
        columns = (category.id_column, *category.columns)
        sql = (
            f"INSERT OR REPLACE INTO {category.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        count = 0
        touched: list[str] = []
        try:
            for raw in rows:
                row = clean_reference_row(category, raw)
                if row is None:
                    continue
                self._conn.execute(sql, tuple(row[c] for c in columns))
                ref_id = row[category.id_column]
                if ref_id not in touched:
                    touched.append(ref_id)
                count += 1
            for ref_id in touched:
                self._reindex(category, ref_id)
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StorageFault(f"Reference upsert failed: {exc}", cause=exc).with_context(
                category=category.value
            ) from exc
        logger.info("reference.upserted", category=category.value, rows=count, ids=len(touched))
        return count

    def rebuild_search(self, category: ReferenceCategory | None = None) -> int:
        """Rebuild the search surface for one or every category."""
        categories = [category] if category is not None else list(ReferenceCategory)
        total = 0
        for cat in categories:
            for ref_id in self.list_ids(cat):
                self._reindex(cat, ref_id)
                total += 1
        self._conn.commit()
        return total

    # -- reads ---------------------------------------------------------------

    def get(self, category: ReferenceCategory, ref_id: str) -> ReferenceRow | None:
        if not ref_id:
            return None
        columns = category.columns
        rows = self._read(
            f"SELECT {', '.join(columns)} FROM {category.table} WHERE {category.id_column} = ?",
            (ref_id,),
        )
        if not rows:
            return None
        if category.multi_row:
            slots = {}
            for row in rows:
                values = dict(zip(columns, (str(v or "") for v in row)))
                slots[values["keyword_slot"]] = values
            return ReferenceRow(id=ref_id, category=category, slots=slots)
        values = dict(zip(columns, (str(v or "") for v in rows[0])))
        return ReferenceRow(id=ref_id, category=category, fields=values)

    def exists(self, category: ReferenceCategory, ref_id: str) -> bool:
        if not ref_id:
            return False
        rows = self._read(
            f"SELECT 1 FROM {category.table} WHERE {category.id_column} = ? LIMIT 1",
            (ref_id,),
        )
        return bool(rows)

    def list_ids(self, category: ReferenceCategory, *, limit: int | None = None) -> list[str]:
        sql = f"SELECT DISTINCT {category.id_column} FROM {category.table} ORDER BY {category.id_column} ASC"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [str(row[0]) for row in self._read(sql, params)]

    # -- internal ------------------------------------------------------------

    def _reindex(self, category: ReferenceCategory, ref_id: str) -> None:
        row = self.get(category, ref_id)
        candidate_text = row.candidate_text if row is not None else ""
        search_text = normalize(candidate_text)
        self._conn.execute(
            "INSERT INTO ref_search (category, ref_id, candidate_text, search_text) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(category, ref_id) DO UPDATE SET "
            "  candidate_text = excluded.candidate_text, search_text = excluded.search_text",
            (category.value, ref_id, candidate_text, search_text),
        )
        if self.fts:
            self._conn.execute(
                "DELETE FROM ref_search_fts WHERE category = ? AND ref_id = ?",
                (category.value, ref_id),
            )
            self._conn.execute(
                "INSERT INTO ref_search_fts (search_text, category, ref_id, candidate_text) VALUES (?, ?, ?, ?)",
                (search_text, category.value, ref_id, candidate_text),
            )

    def _read(self, sql: str, params: tuple) -> list:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageFault(f"Reference store read failed: {exc}", cause=exc) from exc


__all__ = ["SqliteReferenceStore", "clean_reference_row"]
