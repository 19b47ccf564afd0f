"""
Batch scheduler: cursor-based driver over every lane.

State machine::

    STOPPED ──start()──► RUNNING ──tick() with no work in any lane──► STOPPED
                         RUNNING ──reset()──────────────────────────► STOPPED

One tick runs each lane once, in order (titles, video headings, model
headings). A lane pass fetches up to ``batch_size`` published records
with ids above its cursor, ascending, and hands each to its processor.

Manifesto:
    Forward progress over perfection. A record that fails to resolve,
    is blocked by the safety filter, or whose write is rejected still
    moves the cursor past it. Only a storage fault stops a lane pass
    early, and then the cursor stops at the last record fully attempted
    so the faulting record is retried on the next tick.

    - **One tick at a time:** a second concurrent ``tick`` raises
      ``TickInFlightError`` instead of racing the cursors and ledger
    - **Smallest failure scope:** nothing raised inside a tick escapes;
      a ConfigurationError skips one lane, a StorageFault aborts one
      lane page, a WriteBackFault skips one record
    - **Forced ticks:** run regardless of ``running`` and never change it

Architecture:
    ::

        tick(forced)
          ├── not forced and not running → no-op report
          ├── for lane in lanes:                    LogContext(tick_id, lane)
          │     ids = list_ids(types, cursor, batch_size)
          │     for id in ids: processor.process(id)
          │     progress.advance(lane, last attempted id)
          └── no work anywhere:
                running and not forced → set_running(False), trigger.cancel()

Tags:
    scheduler, batch, cursor, tick, resumable, idempotent, content-spine

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Sequence
from typing import Any

from content_spine.batch.lanes import LaneProcessor
from content_spine.batch.trigger import NullTrigger
from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import SchedulerState
from content_spine.core.errors import (
    ConfigurationError,
    ContentSpineError,
    StorageFault,
    TickInFlightError,
    WriteBackFault,
)
from content_spine.core.logging import LogContext, get_logger
from content_spine.core.models import LaneReport, TickReport
from content_spine.core.progress import ProgressStore
from content_spine.core.protocols import ScheduleTrigger
from content_spine.core.settings import ContentSpineSettings
from content_spine.core.timestamps import new_tick_id

logger = get_logger(__name__)

MIN_BATCH_SIZE = 10
MAX_BATCH_SIZE = 1000


class BatchScheduler:
    """Runs lane passes, owns cursors and the running flag.

    Args:
        settings: Validated settings (batch size, tick interval).
        progress: Cursor and running-flag store.
        lanes: Processors in tick order.
        trigger: Periodic caller; ``NullTrigger`` when omitted.
        diagnostics: Diagnostics sink.
    """

    def __init__(
        self,
        settings: ContentSpineSettings,
        progress: ProgressStore,
        lanes: Sequence[LaneProcessor],
        *,
        trigger: ScheduleTrigger | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.settings = settings
        self.progress = progress
        self.lanes = list(lanes)
        self.trigger = trigger if trigger is not None else NullTrigger()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._tick_lock = threading.Lock()

    @property
    def batch_size(self) -> int:
        return max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, int(self.settings.batch_size)))

    # -- operator actions ----------------------------------------------------

    def start(self) -> None:
        """Set ``running`` and schedule periodic ticks."""
        self.progress.set_running(True)
        self.trigger.schedule(self.tick, self.settings.tick_interval_seconds)
        self.diagnostics.record("batch.started", "Batch started (trigger scheduled).", trigger=self.trigger.name)

    def resume(self) -> bool:
        """Re-schedule the trigger after a restart when progress says running."""
        if not self.progress.is_running():
            return False
        self.trigger.schedule(self.tick, self.settings.tick_interval_seconds)
        logger.info("batch.resumed", trigger=self.trigger.name)
        return True

    def reset(self) -> None:
        """Zero every cursor, clear ``running`` and cancel the trigger."""
        self.progress.reset()
        self.trigger.cancel()
        self.diagnostics.record("batch.reset", "Progress reset and batch stopped.")

    def state(self) -> SchedulerState:
        return SchedulerState.RUNNING if self.progress.is_running() else SchedulerState.STOPPED

    def status(self) -> dict[str, Any]:
        snapshot = self.progress.snapshot()
        return {
            "state": self.state().value,
            "running": snapshot.running,
            "cursors": dict(snapshot.cursors),
            "batch_size": self.batch_size,
            "trigger": self.trigger.health() if hasattr(self.trigger, "health") else {"trigger": self.trigger.name},
        }

    # -- ticking -------------------------------------------------------------

    def tick(self, forced: bool = False) -> TickReport:
        """Run one pass over every lane.

        Raises:
            TickInFlightError: another tick is still running.
        """
        if not self._tick_lock.acquire(blocking=False):
            raise TickInFlightError("A batch tick is already in flight")
        try:
            return self._tick(forced)
        finally:
            self._tick_lock.release()

    def _tick(self, forced: bool) -> TickReport:
        tick_id = new_tick_id()
        report = TickReport(tick_id=tick_id, forced=forced)
        with LogContext(tick_id=tick_id):
            if forced:
                self.diagnostics.record("batch.manual_tick", "[BATCH] Manual batch tick requested.")
            try:
                running = self.progress.is_running()
            except sqlite3.Error as exc:
                self.diagnostics.record(
                    "batch.progress_unavailable",
                    f"[BATCH] Progress unavailable, tick skipped: {exc}",
                    level="error",
                )
                return report
            if not forced and not running:
                logger.debug("batch.tick_idle")
                return report

            for processor in self.lanes:
                report.lanes.append(self._run_lane(processor))

            if not report.did_work:
                if running and not forced:
                    try:
                        self.progress.set_running(False)
                    except sqlite3.Error as exc:
                        self.diagnostics.record(
                            "batch.progress_unavailable",
                            f"[BATCH] Could not clear running flag: {exc}",
                            level="error",
                        )
                        return report
                    self.trigger.cancel()
                    report.stopped = True
                    self.diagnostics.record(
                        "batch.finished", "[BATCH] Batch finished: nothing left to process. Stopped."
                    )
                elif forced:
                    self.diagnostics.record(
                        "batch.manual_idle", "[BATCH] Manual batch tick completed (no work this pass)."
                    )
            logger.info("batch.tick_done", forced=forced, did_work=report.did_work, stopped=report.stopped)
        return report

    def _run_lane(self, processor: LaneProcessor) -> LaneReport:
        lane = processor.lane
        report = LaneReport(lane=lane)
        with LogContext(lane=lane.value):
            try:
                types = processor.post_types()
                self.settings.meta_key_for(lane.kind)
            except ConfigurationError as exc:
                report.skipped = exc.message
                self.diagnostics.record(
                    "lane.skipped",
                    f"[BATCH] {processor.label}: skipped ({exc.message})",
                    level="warning",
                    error=exc.to_dict(),
                )
                return report

            try:
                cursor = self.progress.get_cursor(lane)
                ids = processor.content.list_ids(types, cursor, self.batch_size)
            except (StorageFault, sqlite3.Error) as exc:
                report.aborted = str(exc)
                self.diagnostics.record(
                    "lane.aborted",
                    f"[BATCH] {processor.label}: could not list records ({exc})",
                    level="error",
                )
                return report

            report.fetched = len(ids)
            report.last_id = cursor
            if not ids:
                return report

            last_attempted = cursor
            for record_id in ids:
                try:
                    processor.process(record_id, report)
                except WriteBackFault as exc:
                    report.write_faults += 1
                    self.diagnostics.record(
                        "lane.write_fault",
                        f"{processor.label}: write rejected for record {record_id} ({exc.message})",
                        level="warning",
                        record_id=record_id,
                    )
                except (StorageFault, sqlite3.Error) as exc:
                    report.aborted = str(exc)
                    self.diagnostics.record(
                        "lane.aborted",
                        f"[BATCH] {processor.label}: storage fault at record {record_id}, "
                        f"page aborted ({exc})",
                        level="error",
                        record_id=record_id,
                    )
                    break
                except ContentSpineError as exc:
                    report.aborted = exc.message
                    self.diagnostics.record(
                        "lane.aborted",
                        f"[BATCH] {processor.label}: {exc.message} at record {record_id}, page aborted",
                        level="error",
                        error=exc.to_dict(),
                    )
                    break
                report.attempted += 1
                last_attempted = record_id

            try:
                report.last_id = self.progress.advance(lane, last_attempted)
            except sqlite3.Error as exc:
                report.aborted = str(exc)
                self.diagnostics.record(
                    "lane.aborted",
                    f"[BATCH] {processor.label}: cursor not saved ({exc})",
                    level="error",
                )
                return report
            self.diagnostics.record(
                "lane.applied",
                f"Batch {processor.label} applied: {report.written} records (last_id={report.last_id})",
                **report.to_dict(),
            )
        return report


__all__ = ["BatchScheduler", "MIN_BATCH_SIZE", "MAX_BATCH_SIZE"]
