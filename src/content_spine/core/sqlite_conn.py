"""
SQLite access for content-spine.

``open_database`` is how the runtime gets its connection: it resolves the
configured path (``~`` expanded, parent directories created), opens it
and makes sure every table exists, recording whether the FTS5 candidate
index could be created. A path that cannot be opened is a
``StorageFault``, which the CLI reports like any other storage error.

``SqliteConnection`` is the ``Connection`` implementation underneath.
Each ``execute`` returns its own cursor and remembers it, so both
``conn.execute(...).fetchall()`` and ``conn.execute(...); conn.fetchone()``
read the statement just run. Rows are ``sqlite3.Row`` (index or name).
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from content_spine.core.errors import StorageFault
from content_spine.core.logging import get_logger
from content_spine.core.schema import create_tables

logger = get_logger(__name__)

MEMORY = ":memory:"


class SqliteConnection:
    def __init__(self, path: str | Path = MEMORY, *, timeout: float = 5.0) -> None:
        self.path = _resolve_path(path)
        try:
            self._conn = sqlite3.connect(self.path, timeout=timeout, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageFault(f"Cannot open database {self.path}", cause=exc).with_context(path=self.path)
        self._conn.row_factory = sqlite3.Row
        self._last: sqlite3.Cursor | None = None
        self.fts_enabled = False

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        self._last = self._conn.execute(sql, params)
        return self._last

    def fetchone(self) -> Any:
        return self._last.fetchone() if self._last is not None else None

    def fetchall(self) -> list:
        return self._last.fetchall() if self._last is not None else []

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._last = None
        self._conn.close()

    def __repr__(self) -> str:
        return f"SqliteConnection({self.path!r}, fts_enabled={self.fts_enabled})"


def _resolve_path(path: str | Path) -> str:
    if str(path) == MEMORY:
        return MEMORY
    resolved = Path(path).expanduser()
    try:
        resolved.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageFault(f"Cannot create directory for {resolved}", cause=exc).with_context(
            path=str(resolved)
        )
    return str(resolved)


def open_database(path: str | Path = MEMORY, *, with_fts: bool = True) -> SqliteConnection:
    """Open ``path`` with every content-spine table in place."""
    conn = SqliteConnection(path)
    conn.fts_enabled = create_tables(conn, with_fts=with_fts)
    logger.debug("database.opened", path=conn.path, fts_enabled=conn.fts_enabled)
    return conn


__all__ = ["MEMORY", "SqliteConnection", "open_database"]
