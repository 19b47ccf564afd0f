"""
Backfill tools: fill missing mapping meta in bulk.

- ``assign_sequential_ids`` pairs records without the mapping meta with
  reference ids, both ascending. It never overwrites existing meta and
  never hands out an id another record already carries.
- ``smart_backfill`` runs fuzzy resolution for every record of a lane
  that has no valid authoritative mapping and commits accepted matches
  through the resolver (ledger + meta).

A missing meta key or empty post-type list skips the tool with a
``ConfigurationError`` diagnostic instead of raising.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import BatchLane, ResolutionMethod
from content_spine.core.errors import ConfigurationError, WriteBackFault
from content_spine.core.logging import get_logger
from content_spine.core.protocols import ContentRecordStore, ReferenceRowStore
from content_spine.core.settings import ContentSpineSettings
from content_spine.matching.normalize import canonical_id
from content_spine.matching.resolver import Resolver

logger = get_logger(__name__)


@dataclass(slots=True)
class BackfillReport:
    lane: BatchLane
    assigned: int = 0
    already_mapped: int = 0
    unresolved: int = 0
    failed: int = 0
    skipped: str | None = None
    assignments: list[tuple[int, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lane": self.lane.value,
            "assigned": self.assigned,
            "already_mapped": self.already_mapped,
            "unresolved": self.unresolved,
            "failed": self.failed,
            "skipped": self.skipped,
        }


def assign_sequential_ids(
    content: ContentRecordStore,
    reference_ids: Sequence[str],
    record_ids: Sequence[int],
    meta_key: str,
    *,
    report: BackfillReport,
    taken: set[str] | frozenset[str] = frozenset(),
) -> BackfillReport:
    """Give each record lacking ``meta_key`` the next free reference id.

    Records are walked in the given (ascending) order. Ids in ``taken``
    are skipped. Assignment stops when reference ids run out; records
    that already carry the meta are counted either way.
    """
    free = [ref_id for ref_id in reference_ids if ref_id and ref_id not in taken]
    index = 0
    for record_id in record_ids:
        if content.has_meta(record_id, meta_key):
            report.already_mapped += 1
            continue
        if index >= len(free):
            continue
        ref_id = free[index]
        try:
            content.set_meta(record_id, meta_key, ref_id)
        except WriteBackFault as exc:
            report.failed += 1
            logger.warning("backfill.write_fault", record_id=record_id, error=exc.message)
            continue
        report.assignments.append((record_id, ref_id))
        report.assigned += 1
        index += 1
    return report


def backfill_ids(
    lane: BatchLane,
    settings: ContentSpineSettings,
    content: ContentRecordStore,
    references: ReferenceRowStore,
    diagnostics: Diagnostics,
) -> BackfillReport:
    """Sequential id backfill for one lane's records from its reference category."""
    report = BackfillReport(lane=lane)
    try:
        meta_key = settings.meta_key_for(lane.kind)
        types = settings.post_types_for(lane)
    except ConfigurationError as exc:
        return _skip(report, exc, diagnostics)

    category = settings.category_for(lane)
    taken = {canonical_id(value, lane.kind) for value in content.meta_values(meta_key, types)}
    assign_sequential_ids(
        content,
        references.list_ids(category),
        content.list_all_ids(types),
        meta_key,
        report=report,
        taken=taken,
    )
    diagnostics.record(
        "backfill.ids",
        f"Backfill {lane.value} ids: assigned {report.assigned} "
        f"(already mapped {report.already_mapped}, failed {report.failed})",
        **report.to_dict(),
    )
    return report


def smart_backfill(
    lane: BatchLane,
    settings: ContentSpineSettings,
    content: ContentRecordStore,
    resolver: Resolver,
    diagnostics: Diagnostics,
) -> BackfillReport:
    """Fuzzy-resolve and commit every record of ``lane`` lacking a valid mapping."""
    report = BackfillReport(lane=lane)
    try:
        settings.meta_key_for(lane.kind)
        types = settings.post_types_for(lane)
    except ConfigurationError as exc:
        return _skip(report, exc, diagnostics)

    category = settings.category_for(lane)
    for record_id in content.list_all_ids(types):
        resolution = resolver.resolve_fuzzy(record_id, lane.kind, category)
        if resolution.method is ResolutionMethod.AUTHORITATIVE:
            report.already_mapped += 1
            continue
        if not resolution.resolved:
            report.unresolved += 1
            continue
        try:
            resolver.commit_resolution(resolution)
        except WriteBackFault as exc:
            report.failed += 1
            logger.warning("backfill.write_fault", record_id=record_id, error=exc.message)
            continue
        report.assignments.append((record_id, resolution.id))
        report.assigned += 1

    diagnostics.record(
        "backfill.smart",
        f"Smart backfill {lane.value}: assigned {report.assigned}, unresolved {report.unresolved} "
        f"(already mapped {report.already_mapped}, failed {report.failed})",
        **report.to_dict(),
    )
    return report


def _skip(report: BackfillReport, exc: ConfigurationError, diagnostics: Diagnostics) -> BackfillReport:
    report.skipped = exc.message
    diagnostics.record(
        "backfill.skipped",
        f"Backfill {report.lane.value} skipped: {exc.message}",
        level="warning",
        key=exc.key,
    )
    return report


__all__ = ["BackfillReport", "assign_sequential_ids", "backfill_ids", "smart_backfill"]
