"""
Batch progress: per-lane cursors and the global running flag.

Each lane keeps a ``last_id`` cursor; the next tick fetches records with
an id strictly greater than it. The cursor only moves forward except
through an explicit ``reset``.

Manifesto:
    A tick that crashes halfway must not re-walk the whole site, and a
    tick that re-runs must not rewrite what it already wrote. Progress
    is therefore durable, forward-only, and owned by one object with an
    explicit load/save contract instead of ambient option storage.

    - **Forward-only advancement:** ``advance`` ignores smaller ids
    - **Persistence-agnostic:** Database or in-memory (tests)
    - **Explicit reset:** Operator action sets every cursor to 0 and
      ``running`` to false

Architecture:
    ::

        advance(BatchLane.TITLES, 1042)
              │
              ▼
        ┌──────────────────────────────────────────────────────────┐
        │ batch_progress table (or in-memory dict)                 │
        │ lane     | last_id | updated_at                          │
        │ titles   | 1042    | 2026-10-18T09:00:00+00:00           │
        │ video_h2 | 377     | ...                                 │
        └──────────────────────────────────────────────────────────┘
        ┌──────────────────────────────────────────────────────────┐
        │ batch_state: running = "1" | "0"                         │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> store = ProgressStore()
    >>> store.advance(BatchLane.TITLES, 10)
    10
    >>> store.advance(BatchLane.TITLES, 4)
    10
    >>> store.get_cursor(BatchLane.TITLES)
    10

Guardrails:
    ❌ DON'T: Write ``batch_progress`` directly
    ✅ DO: Use advance() which enforces forward-only semantics

Tags:
    progress, cursor, resume, batch, content-spine, forward-only

Doc-Types:
    - API Reference

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from typing import Any

from content_spine.core.enums import BatchLane
from content_spine.core.models import BatchProgress
from content_spine.core.timestamps import iso_now

_RUNNING_KEY = "running"


class ProgressStore:
    """Persistence-agnostic lane cursor store.

    If *conn* is supplied, cursors are persisted to ``batch_progress``
    and the running flag to ``batch_state``. Otherwise in-memory state
    is used.
    """

    def __init__(self, conn: Any | None = None) -> None:
        self._conn = conn
        self._mem: dict[str, int] = {}
        self._mem_running = False

    # -- cursors -------------------------------------------------------------

    def get_cursor(self, lane: BatchLane) -> int:
        if self._conn is None:
            return self._mem.get(lane.value, 0)
        row = self._conn.execute(
            "SELECT last_id FROM batch_progress WHERE lane = ?", (lane.value,)
        ).fetchone()
        return int(row[0]) if row is not None else 0

    def advance(self, lane: BatchLane, last_id: int) -> int:
        """Move the lane cursor forward; returns the resulting cursor.

        A value less than or equal to the stored cursor is a no-op.
        """
        current = self.get_cursor(lane)
        if last_id <= current:
            return current
        if self._conn is None:
            self._mem[lane.value] = last_id
            return last_id
        self._conn.execute(
            "INSERT INTO batch_progress (lane, last_id, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(lane) DO UPDATE SET "
            "  last_id = excluded.last_id, "
            "  updated_at = excluded.updated_at",
            (lane.value, last_id, iso_now()),
        )
        self._conn.commit()
        return last_id

    # -- running flag --------------------------------------------------------

    def is_running(self) -> bool:
        if self._conn is None:
            return self._mem_running
        row = self._conn.execute(
            "SELECT value FROM batch_state WHERE key = ?", (_RUNNING_KEY,)
        ).fetchone()
        return row is not None and row[0] == "1"

    def set_running(self, running: bool) -> None:
        if self._conn is None:
            self._mem_running = running
            return
        self._conn.execute(
            "INSERT INTO batch_state (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "  value = excluded.value, "
            "  updated_at = excluded.updated_at",
            (_RUNNING_KEY, "1" if running else "0", iso_now()),
        )
        self._conn.commit()

    # -- operator actions ----------------------------------------------------

    def reset(self) -> None:
        """Set every cursor to 0 and ``running`` to false."""
        if self._conn is None:
            self._mem.clear()
        else:
            self._conn.execute("DELETE FROM batch_progress")
            self._conn.commit()
        self.set_running(False)

    def snapshot(self) -> BatchProgress:
        return BatchProgress(
            cursors={lane.value: self.get_cursor(lane) for lane in BatchLane},
            running=self.is_running(),
        )


__all__ = ["ProgressStore"]
