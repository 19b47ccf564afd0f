"""
SQLite content record store.

Implements the ``ContentRecordStore`` protocol over ``content_records``,
``content_meta`` and ``content_terms``. A host adapter (CMS export,
sync job) fills these tables; the core reads records, metadata and term
names and requests metadata, title and body writes.

Read failures raise ``StorageFault``; write failures raise
``WriteBackFault``. Only published records are listed.

Tags:
    content, records, metadata, taxonomy, sqlite, content-spine
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from content_spine.core.errors import StorageFault, WriteBackFault
from content_spine.core.logging import get_logger

logger = get_logger(__name__)

PUBLISHED = "publish"

_FIELD_COLUMNS = {
    "title": "title",
    "slug": "slug",
    "body": "body",
    "type": "post_type",
    "status": "status",
}


def _placeholders(values: Sequence[Any]) -> str:
    return ",".join("?" for _ in values)


class SqliteContentStore:
    """``ContentRecordStore`` backed by SQLite.

    Examples:
        >>> store = SqliteContentStore(conn)
        >>> store.add_record(7, "video", title="Cozy Reading Nook Tour", slug="cozy-reading-nook-tour")
        >>> store.list_ids(["video"], 0, 10)
        [7]
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    # -- reads ---------------------------------------------------------------

    def list_ids(self, types: Sequence[str], min_id_exclusive: int, limit: int) -> list[int]:
        if not types:
            return []
        rows = self._read(
            "SELECT id FROM content_records "
            f"WHERE status = ? AND post_type IN ({_placeholders(types)}) AND id > ? "
            "ORDER BY id ASC LIMIT ?",
            (PUBLISHED, *types, int(min_id_exclusive), max(1, int(limit))),
        )
        return [int(row[0]) for row in rows]

    def list_all_ids(self, types: Sequence[str], *, newest_first: bool = False) -> list[int]:
        if not types:
            return []
        order = "DESC" if newest_first else "ASC"
        rows = self._read(
            "SELECT id FROM content_records "
            f"WHERE status = ? AND post_type IN ({_placeholders(types)}) "
            f"ORDER BY id {order}",
            (PUBLISHED, *types),
        )
        return [int(row[0]) for row in rows]

    def get_field(self, record_id: int, field: str) -> str:
        column = _FIELD_COLUMNS.get(field)
        if column is None:
            raise ValueError(f"Unknown record field: {field!r}")
        rows = self._read(f"SELECT {column} FROM content_records WHERE id = ?", (record_id,))
        return str(rows[0][0] or "") if rows else ""

    def get_meta(self, record_id: int, key: str) -> str:
        if not key:
            return ""
        rows = self._read(
            "SELECT meta_value FROM content_meta WHERE record_id = ? AND meta_key = ?",
            (record_id, key),
        )
        return str(rows[0][0] or "") if rows else ""

    def has_meta(self, record_id: int, key: str) -> bool:
        rows = self._read(
            "SELECT 1 FROM content_meta WHERE record_id = ? AND meta_key = ?",
            (record_id, key),
        )
        return bool(rows)

    def meta_values(
        self, key: str, types: Sequence[str], *, exclude_record_id: int | None = None
    ) -> list[str]:
        if not key or not types:
            return []
        sql = (
            "SELECT m.meta_value FROM content_meta m "
            "JOIN content_records r ON r.id = m.record_id "
            f"WHERE m.meta_key = ? AND m.meta_value != '' AND r.post_type IN ({_placeholders(types)})"
        )
        params: tuple = (key, *types)
        if exclude_record_id is not None:
            sql += " AND m.record_id != ?"
            params += (exclude_record_id,)
        return [str(row[0]) for row in self._read(sql, params)]

    def get_taxonomy_terms(self, record_id: int) -> list[str]:
        rows = self._read(
            "SELECT name FROM content_terms WHERE record_id = ? ORDER BY position ASC, name ASC",
            (record_id,),
        )
        return [str(row[0]) for row in rows]

    # -- writes --------------------------------------------------------------

    def set_meta(self, record_id: int, key: str, value: str) -> None:
        self._write(
            "INSERT INTO content_meta (record_id, meta_key, meta_value) VALUES (?, ?, ?) "
            "ON CONFLICT(record_id, meta_key) DO UPDATE SET meta_value = excluded.meta_value",
            (record_id, key, value),
            record_id=record_id,
        )

    def update_body(self, record_id: int, new_body: str) -> None:
        self._update_column(record_id, "body", new_body)

    def update_title(self, record_id: int, new_title: str) -> None:
        self._update_column(record_id, "title", new_title)

    # -- seeding (host adapters, tests) ----------------------------------------

    def add_record(
        self,
        record_id: int,
        post_type: str,
        *,
        title: str = "",
        slug: str = "",
        body: str = "",
        status: str = PUBLISHED,
        terms: Iterable[str] = (),
        meta: Mapping[str, str] | None = None,
    ) -> None:
        self._write(
            "INSERT INTO content_records (id, post_type, status, title, slug, body) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET post_type = excluded.post_type, "
            "  status = excluded.status, title = excluded.title, "
            "  slug = excluded.slug, body = excluded.body",
            (record_id, post_type, status, title, slug, body),
            record_id=record_id,
        )
        for position, name in enumerate(terms):
            self._write(
                "INSERT OR IGNORE INTO content_terms (record_id, position, name) VALUES (?, ?, ?)",
                (record_id, position, name),
                record_id=record_id,
            )
        for key, value in (meta or {}).items():
            self.set_meta(record_id, key, value)

    # -- internal ------------------------------------------------------------

    def _update_column(self, record_id: int, column: str, value: str) -> None:
        cursor = self._write(
            f"UPDATE content_records SET {column} = ? WHERE id = ?",
            (value, record_id),
            record_id=record_id,
        )
        if getattr(cursor, "rowcount", 1) == 0:
            raise WriteBackFault(f"Record {record_id} does not exist").with_context(record_id=record_id)

    def _read(self, sql: str, params: tuple) -> list:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageFault(f"Content store read failed: {exc}", cause=exc) from exc

    def _write(self, sql: str, params: tuple, *, record_id: int | None = None) -> Any:
        try:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise WriteBackFault(f"Content store write failed: {exc}", cause=exc).with_context(
                record_id=record_id
            ) from exc
        return cursor


__all__ = ["SqliteContentStore", "PUBLISHED"]
