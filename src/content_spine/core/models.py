"""
Content Spine value objects.

Frozen dataclasses passed between the candidate store, scorer,
resolver and scheduler. Ephemeral types (``SearchContext``,
``MatchCandidate``, ``ScoredCandidate``, ``Resolution``) are never
persisted; ``ReferenceRow`` mirrors one imported reference id.

Tags:
    models, dataclasses, resolution, batch, content-spine

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from content_spine.core.enums import (
    TITLE_SLOTS,
    BatchLane,
    IdKind,
    ReferenceCategory,
    ResolutionMethod,
)
from content_spine.core.errors import ResolutionUnresolved

# ---------------------------------------------------------------------------
# Reference rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReferenceRow:
    """One reference id within a category.

    Attributes:
        id: Canonical reference id (``[a-z0-9_]``, max 32 chars).
        category: Source category; decides which columns are present.
        fields: Column -> value for single-row categories.
        slots: ``keyword_N`` -> column values for TITLES.
    """

    id: str
    category: ReferenceCategory
    fields: dict[str, str] = field(default_factory=dict)
    slots: dict[str, dict[str, str]] = field(default_factory=dict)

    @property
    def text_fields(self) -> tuple[str, ...]:
        """Non-empty text values in column order (slot order for TITLES)."""
        columns = self.category.text_columns
        if self.category.multi_row:
            sources = [self.slots[s] for s in TITLE_SLOTS if s in self.slots]
        else:
            sources = [self.fields]
        return tuple(src[c] for src in sources for c in columns if src.get(c))

    @property
    def candidate_text(self) -> str:
        return " ".join(self.text_fields)

    def slot(self, name: str) -> dict[str, str] | None:
        return self.slots.get(name)

    def value(self, column: str) -> str:
        return self.fields.get(column, "")


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchContext:
    """Text describing one content record at resolution time."""

    raw_text: str
    normalized_text: str
    tokens: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.normalized_text


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """A reference row offered by the candidate store.

    ``index_relevance`` is set only by the accelerated (full-text index)
    path; larger means more relevant.
    """

    reference_id: str
    candidate_text: str
    index_relevance: float | None = None


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    candidate: MatchCandidate
    score: float

    @property
    def reference_id(self) -> str:
        return self.candidate.reference_id


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of ``resolve`` for one record.

    ``resolve`` never mutates state. A FUZZY result is a recommendation
    until ``commit_resolution`` records it in the ledger and writes the
    mapping meta.
    """

    record_id: int
    kind: IdKind
    category: ReferenceCategory
    id: str
    method: ResolutionMethod
    score: float = 0.0
    trace: tuple[str, ...] = ()
    mapping_key: str = ""

    @property
    def resolved(self) -> bool:
        return self.method is not ResolutionMethod.UNRESOLVED and bool(self.id)

    @property
    def needs_commit(self) -> bool:
        return self.method is ResolutionMethod.FUZZY and bool(self.id)

    def require(self) -> str:
        """Return the resolved id or raise ``ResolutionUnresolved``."""
        if not self.resolved:
            raise ResolutionUnresolved(self.record_id, self.trace)
        return self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "kind": self.kind.value,
            "category": self.category.value,
            "id": self.id,
            "method": self.method.value,
            "score": round(self.score, 4),
            "trace": list(self.trace),
        }


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BatchProgress:
    """Snapshot of every lane cursor plus the global running flag."""

    cursors: dict[str, int]
    running: bool

    def cursor(self, lane: BatchLane) -> int:
        return self.cursors.get(lane.value, 0)


@dataclass(slots=True)
class LaneReport:
    """What one lane pass did during a tick."""

    lane: BatchLane
    fetched: int = 0
    attempted: int = 0
    resolved: int = 0
    written: int = 0
    blocked: int = 0
    unresolved: int = 0
    write_faults: int = 0
    last_id: int = 0
    skipped: str | None = None
    aborted: str | None = None

    @property
    def did_work(self) -> bool:
        return self.fetched > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "lane": self.lane.value,
            "fetched": self.fetched,
            "attempted": self.attempted,
            "resolved": self.resolved,
            "written": self.written,
            "blocked": self.blocked,
            "unresolved": self.unresolved,
            "write_faults": self.write_faults,
            "last_id": self.last_id,
            "skipped": self.skipped,
            "aborted": self.aborted,
        }


@dataclass(slots=True)
class TickReport:
    """Result of one scheduler tick across all lanes."""

    tick_id: str
    forced: bool
    lanes: list[LaneReport] = field(default_factory=list)
    stopped: bool = False

    @property
    def did_work(self) -> bool:
        return any(lane.did_work for lane in self.lanes)

    def lane(self, lane: BatchLane) -> LaneReport | None:
        for report in self.lanes:
            if report.lane is lane:
                return report
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick_id": self.tick_id,
            "forced": self.forced,
            "did_work": self.did_work,
            "stopped": self.stopped,
            "lanes": [lane.to_dict() for lane in self.lanes],
        }


__all__ = [
    "ReferenceRow",
    "SearchContext",
    "MatchCandidate",
    "ScoredCandidate",
    "Resolution",
    "BatchProgress",
    "LaneReport",
    "TickReport",
]
