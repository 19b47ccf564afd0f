"""
Canonical protocol definitions for Content Spine.

This module defines the single source of truth for the structural
contracts the core consumes: the database ``Connection`` and the
collaborator interfaces of the content host (records, metadata,
taxonomy, body), the reference row store, and the scheduling trigger.

Manifesto:
    The content host, the reference importer and the periodic trigger
    are external collaborators. Domain code depends on their shape, not
    on a concrete implementation, so the resolver and scheduler run the
    same against SQLite stand-ins in tests and a host adapter in
    production.

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Connection           : sync DB protocol (sqlite3 adapter, etc.)
        ├── ContentRecordStore   : content host: ids, fields, meta, terms, body
        ├── ReferenceRowStore    : reference rows: upsert, get, list, exists
        └── ScheduleTrigger      : periodic caller: schedule / cancel

    Consumers:
        matching/resolver.py, matching/candidates.py, batch/lanes.py,
        batch/scheduler.py, batch/backfill.py, batch/lookup.py

Guardrails:
    ❌ DON'T: Import a concrete store inside matching/ or batch/
    ✅ DO: Accept the protocol and let the caller wire the implementation

Tags:
    protocol, connection, content-host, reference-store, trigger,
    content-spine, contracts

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from content_spine.core.enums import ReferenceCategory
    from content_spine.core.models import ReferenceRow

# ---------------------------------------------------------------------------
# Database Connection Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Implementations:
        SqliteConnection (content_spine.core.sqlite_conn), opened by open_database().

    Examples:
        >>> conn.execute("SELECT last_id FROM batch_progress WHERE lane = ?", ("titles",))
        >>> row = conn.fetchone()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters. SYNC."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query. SYNC."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query. SYNC."""
        ...

    def commit(self) -> None:
        """Commit current transaction. SYNC."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction. SYNC."""
        ...


# ---------------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class ContentRecordStore(Protocol):
    """
    Content host interface: the core reads records and requests writes.

    The core never creates or destroys records. ``list_ids`` returns
    published record ids of the given types, strictly greater than
    ``min_id_exclusive``, ascending, at most ``limit``.

    Read failures raise ``StorageFault``; rejected writes raise
    ``WriteBackFault``.

    Tags:
        protocol, content-host, records, metadata
    """

    def list_ids(self, types: Sequence[str], min_id_exclusive: int, limit: int) -> list[int]:
        ...

    def list_all_ids(self, types: Sequence[str], *, newest_first: bool = False) -> list[int]:
        ...

    def get_field(self, record_id: int, field: str) -> str:
        """Return ``title``, ``slug``, ``body`` or ``type``; empty when absent."""
        ...

    def get_meta(self, record_id: int, key: str) -> str:
        """Return the metadata value, or an empty string when absent."""
        ...

    def has_meta(self, record_id: int, key: str) -> bool:
        ...

    def set_meta(self, record_id: int, key: str, value: str) -> None:
        ...

    def meta_values(
        self, key: str, types: Sequence[str], *, exclude_record_id: int | None = None
    ) -> list[str]:
        """All non-empty values of ``key`` on records of ``types``."""
        ...

    def get_taxonomy_terms(self, record_id: int) -> list[str]:
        ...

    def update_body(self, record_id: int, new_body: str) -> None:
        ...

    def update_title(self, record_id: int, new_title: str) -> None:
        ...


@runtime_checkable
class ReferenceRowStore(Protocol):
    """
    Reference row interface.

    Bulk upsert is owned by the external importer; the core uses point
    lookups, existence checks and ordered id listings. Candidate search
    lives in ``content_spine.matching.candidates`` over the same
    connection.

    Tags:
        protocol, reference-rows, lookup
    """

    def upsert(self, category: ReferenceCategory, rows: Iterable[dict[str, str]]) -> int:
        ...

    def get(self, category: ReferenceCategory, ref_id: str) -> ReferenceRow | None:
        ...

    def exists(self, category: ReferenceCategory, ref_id: str) -> bool:
        ...

    def list_ids(self, category: ReferenceCategory, *, limit: int | None = None) -> list[str]:
        ...


TickCallback = Callable[[], Any]


@runtime_checkable
class ScheduleTrigger(Protocol):
    """
    External periodic caller.

    ``schedule`` arranges for ``callback`` to be called every interval
    until ``cancel``. Calling ``schedule`` while already scheduled is a
    no-op.

    Implementations:
        IntervalTrigger (daemon thread), NullTrigger (no periodic calls)
    """

    name: str

    def schedule(self, callback: TickCallback, interval_seconds: float) -> None:
        ...

    def cancel(self) -> None:
        ...

    @property
    def is_scheduled(self) -> bool:
        ...


__all__ = [
    "Connection",
    "ContentRecordStore",
    "ReferenceRowStore",
    "ScheduleTrigger",
    "TickCallback",
]
