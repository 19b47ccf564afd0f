"""
Runtime wiring: one object holding every collaborator for a database.

The CLI, a host adapter and the integration tests all need the same
graph (stores, ledger, candidate store, resolver, safety filter, lanes,
scheduler) built from one settings object and one connection.
``build_runtime`` is the single place that graph is assembled.

Examples:
    >>> rt = build_runtime(load_settings(batch_size=10), conn=open_database())
    >>> rt.scheduler.tick(forced=True).did_work
    False
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from content_spine.batch.lanes import LaneProcessor, build_lanes
from content_spine.batch.scheduler import BatchScheduler
from content_spine.core.diagnostics import Diagnostics, DiagnosticsLog
from content_spine.core.progress import ProgressStore
from content_spine.core.protocols import ScheduleTrigger
from content_spine.core.schema import create_tables
from content_spine.core.settings import ContentSpineSettings, load_settings
from content_spine.core.sqlite_conn import open_database
from content_spine.matching.candidates import CandidateStore
from content_spine.matching.ledger import AssignmentLedger
from content_spine.matching.resolver import Resolver
from content_spine.matching.safety import SafetyFilter
from content_spine.stores.content import SqliteContentStore
from content_spine.stores.reference import SqliteReferenceStore


@dataclass
class Runtime:
    settings: ContentSpineSettings
    conn: Any
    diagnostics: Diagnostics
    content: SqliteContentStore
    references: SqliteReferenceStore
    ledger: AssignmentLedger
    candidates: CandidateStore
    resolver: Resolver
    safety: SafetyFilter
    progress: ProgressStore
    lanes: list[LaneProcessor]
    scheduler: BatchScheduler


def build_runtime(
    settings: ContentSpineSettings | None = None,
    *,
    conn: Any | None = None,
    trigger: ScheduleTrigger | None = None,
    use_index: bool = True,
) -> Runtime:
    """Wire every collaborator over ``conn``.

    Opens ``settings.database_path`` when no connection is given; a
    supplied connection gets any missing tables created.
    """
    settings = settings if settings is not None else load_settings()
    if conn is None:
        conn = open_database(settings.database_path, with_fts=use_index)
    else:
        create_tables(conn, with_fts=use_index)

    diagnostics = Diagnostics(
        DiagnosticsLog(conn, cap=settings.diagnostics_cap, keep=settings.diagnostics_keep)
    )
    content = SqliteContentStore(conn)
    references = SqliteReferenceStore(conn)
    ledger = AssignmentLedger(conn)
    candidates = CandidateStore.from_settings(
        conn, content, ledger, settings, use_index=use_index, diagnostics=diagnostics
    )
    resolver = Resolver(settings, content, references, candidates, ledger, diagnostics=diagnostics)
    safety = SafetyFilter.from_settings(settings, diagnostics=diagnostics)
    progress = ProgressStore(conn)
    lanes = build_lanes(settings, content, references, resolver, safety, diagnostics)
    scheduler = BatchScheduler(settings, progress, lanes, trigger=trigger, diagnostics=diagnostics)
    return Runtime(
        settings=settings,
        conn=conn,
        diagnostics=diagnostics,
        content=content,
        references=references,
        ledger=ledger,
        candidates=candidates,
        resolver=resolver,
        safety=safety,
        progress=progress,
        lanes=lanes,
        scheduler=scheduler,
    )


__all__ = ["Runtime", "build_runtime"]
