"""
Diagnostics sink: an append-only, timestamped, capped log.

Operators read this log to see why a record resolved the way it did,
which candidates scored what, and which writes were blocked or
rejected. Every line is prefixed ``[YYYY-MM-DD HH:MM:SS UTC]``.

Manifesto:
    Structured logs go to whatever the process is wired to; the
    diagnostics sink lives next to the data so ``content-spine logs
    tail`` works on any machine that can open the database. It must
    never grow without bound.

    - **Capped:** Above ``cap`` lines, the oldest are dropped until
      ``keep`` remain
    - **Persistence-agnostic:** ``diagnostics_log`` table or memory
    - **One call:** ``Diagnostics.record`` emits the structlog event
      and the sink line together

Architecture:
    ::

        Diagnostics.record("resolve.fuzzy", "fuzzy video_0001 score=0.71")
              │
              ├──► structlog  logger.info("resolve.fuzzy", ...)
              │
              └──► DiagnosticsLog.append(...)
                      │
                      ▼
                  diagnostics_log (or list)  ── trim when > cap

Examples:
    >>> log = DiagnosticsLog(cap=3, keep=2)
    >>> for i in range(4):
    ...     _ = log.append(f"line {i}")
    >>> [line.split("] ")[1] for line in log.tail()]
    ['line 3', 'line 2']

Tags:
    diagnostics, log, capped, sqlite, content-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any

from content_spine.core.logging import get_logger
from content_spine.core.timestamps import diagnostics_stamp

logger = get_logger(__name__)


class DiagnosticsLog:
    """Capped line log backed by ``diagnostics_log`` or an in-memory list.

    Args:
        conn: Optional database connection.
        cap: Maximum line count before trimming.
        keep: Lines retained after a trim (newest).
    """

    def __init__(self, conn: Any | None = None, *, cap: int = 2500, keep: int = 2000) -> None:
        if keep > cap:
            raise ValueError("keep must not exceed cap")
        self._conn = conn
        self._mem: list[str] = []
        self.cap = cap
        self.keep = keep

    def append(self, message: str) -> str:
        """Append one stamped line and trim when over the cap."""
        line = f"[{diagnostics_stamp()}] {message}"
        if self._conn is not None:
            self._conn.execute("INSERT INTO diagnostics_log (line) VALUES (?)", (line,))
            self._trim_db(self._conn)
            self._conn.commit()
        else:
            self._mem.append(line)
            if len(self._mem) > self.cap:
                del self._mem[: len(self._mem) - self.keep]
        return line

    def tail(self, limit: int | None = None) -> list[str]:
        """Newest-first lines, at most ``limit``."""
        if self._conn is not None:
            sql = "SELECT line FROM diagnostics_log ORDER BY seq DESC"
            params: tuple = ()
            if limit is not None:
                sql += " LIMIT ?"
                params = (limit,)
            return [row[0] for row in self._conn.execute(sql, params).fetchall()]
        lines = list(reversed(self._mem))
        return lines if limit is None else lines[:limit]

    def count(self) -> int:
        if self._conn is not None:
            return int(self._conn.execute("SELECT COUNT(*) FROM diagnostics_log").fetchone()[0])
        return len(self._mem)

    def clear(self) -> None:
        if self._conn is not None:
            self._conn.execute("DELETE FROM diagnostics_log")
            self._conn.commit()
        else:
            self._mem.clear()

    def _trim_db(self, conn: Any) -> None:
        if self.count() <= self.cap:
            return
        conn.execute(
            "DELETE FROM diagnostics_log WHERE seq NOT IN "
            "(SELECT seq FROM diagnostics_log ORDER BY seq DESC LIMIT ?)",
            (self.keep,),
        )


class Diagnostics:
    """Writes a structlog event and a diagnostics line in one call."""

    def __init__(self, sink: DiagnosticsLog | None = None) -> None:
        self.sink = sink if sink is not None else DiagnosticsLog()

    def record(self, event: str, message: str, *, level: str = "info", **fields: Any) -> str:
        getattr(logger, level)(event, message=message, **fields)
        return self.sink.append(message)

    def tail(self, limit: int | None = None) -> list[str]:
        return self.sink.tail(limit)


__all__ = ["DiagnosticsLog", "Diagnostics"]
