"""
Lane processors: resolve one record and write its reference row back.

Each ``BatchLane`` has a processor. ``process`` runs the per-record
pipeline: resolve, commit an accepted fuzzy match, fetch the reference
row, route its text through the safety filter, write back. The
scheduler owns paging, cursors and error scoping; a processor only
raises what it cannot handle for one record (``WriteBackFault``,
``StorageFault``, ``ConfigurationError``).

Architecture:
    ::

        LaneProcessor.process(record_id, report)
              │
              ├── Resolver.resolve ──── unresolved → report.unresolved
              ├── Resolver.commit_resolution (FUZZY only)
              ├── ReferenceRowStore.get ── missing → report.unresolved
              └── write(record_id, row)
                    TitlesLane    SEO title / description / focus keywords, record title
                    HeadingsLane  marked <h2> block replace-or-append in the body

Tags:
    batch, lanes, write-back, safety, titles, headings, content-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from enum import Enum

from content_spine.batch.blocks import build_block, build_description, replace_or_append
from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import H2_COLUMNS, TITLE_SLOTS, BatchLane, ReferenceCategory
from content_spine.core.models import LaneReport, ReferenceRow
from content_spine.core.protocols import ContentRecordStore, ReferenceRowStore
from content_spine.core.settings import ContentSpineSettings
from content_spine.matching.resolver import Resolver
from content_spine.matching.safety import SafetyFilter

MAX_FOCUS_KEYWORDS = 5


class ApplyOutcome(str, Enum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    BLOCKED = "blocked"
    MISSING = "missing"


class LaneProcessor:
    """Shared per-record pipeline; subclasses implement ``write``."""

    lane: BatchLane
    label: str

    def __init__(
        self,
        settings: ContentSpineSettings,
        content: ContentRecordStore,
        references: ReferenceRowStore,
        resolver: Resolver,
        safety: SafetyFilter,
        diagnostics: Diagnostics,
    ) -> None:
        self.settings = settings
        self.content = content
        self.references = references
        self.resolver = resolver
        self.safety = safety
        self.diagnostics = diagnostics

    @property
    def category(self) -> ReferenceCategory:
        return self.settings.category_for(self.lane)

    def post_types(self) -> list[str]:
        return self.settings.post_types_for(self.lane)

    def process(self, record_id: int, report: LaneReport) -> ApplyOutcome | None:
        category = self.category
        resolution = self.resolver.resolve(record_id, self.lane.kind, category)
        if not resolution.resolved:
            report.unresolved += 1
            self.diagnostics.record(
                "lane.unresolved",
                f"{self.label}: missing {self.lane.kind.value}_id mapping for record {record_id} "
                f"({' > '.join(resolution.trace)})",
                record_id=record_id,
                trace=list(resolution.trace),
            )
            return None

        self.resolver.commit_resolution(resolution)
        row = self.references.get(category, resolution.id)
        if row is None:
            report.unresolved += 1
            self.diagnostics.record(
                "lane.missing_row",
                f"{self.label}: no reference rows for {resolution.id} (record {record_id})",
                record_id=record_id,
                ref_id=resolution.id,
            )
            return None
        report.resolved += 1

        outcome = self.write(record_id, row)
        if outcome is ApplyOutcome.WRITTEN:
            report.written += 1
        elif outcome is ApplyOutcome.BLOCKED:
            report.blocked += 1
            self.diagnostics.record(
                "lane.blocked",
                f"SKIP {self.label}: blocked by safety for record {record_id} ({resolution.id})",
                record_id=record_id,
                ref_id=resolution.id,
            )
        elif outcome is ApplyOutcome.MISSING:
            report.unresolved += 1
            self.diagnostics.record(
                "lane.missing_row",
                f"{self.label}: incomplete reference row {resolution.id} (record {record_id})",
                record_id=record_id,
                ref_id=resolution.id,
            )
        return outcome

    def write(self, record_id: int, row: ReferenceRow) -> ApplyOutcome:
        raise NotImplementedError


class TitlesLane(LaneProcessor):
    """SEO title, description and focus keywords from the TITLES row."""

    lane = BatchLane.TITLES
    label = "Titles"

    def write(self, record_id: int, row: ReferenceRow) -> ApplyOutcome:
        primary = row.slot("keyword_1")
        if not primary:
            return ApplyOutcome.MISSING

        seo_title = self.safety.apply(primary.get("seo_title"))
        focus = self.safety.apply(primary.get("focus_keyword"))
        if not seo_title or not focus:
            return ApplyOutcome.BLOCKED

        if not seo_title.lower().startswith(focus.lower()):
            seo_title = self.safety.apply(f"{focus}: {seo_title}")
            if not seo_title:
                return ApplyOutcome.BLOCKED

        keywords: list[str] = []
        for slot_name in TITLE_SLOTS:
            slot = row.slot(slot_name)
            if not slot or not slot.get("focus_keyword"):
                continue
            keyword = self.safety.apply(slot["focus_keyword"])
            if keyword and keyword not in keywords:
                keywords.append(keyword)
        focus_list = ", ".join(keywords[:MAX_FOCUS_KEYWORDS])

        description = self.safety.apply(build_description(seo_title, focus, primary, keywords))

        s = self.settings
        if s.write_seo_meta:
            self.content.set_meta(record_id, s.seo_title_meta_key, seo_title)
            if description:
                self.content.set_meta(record_id, s.seo_description_meta_key, description)
            if focus_list:
                self.content.set_meta(record_id, s.seo_focus_keyword_meta_key, focus_list)
        if s.update_title:
            self.content.update_title(record_id, seo_title)
        return ApplyOutcome.WRITTEN


class HeadingsLane(LaneProcessor):
    """Marked heading block in the record body from an h2 row."""

    label = "H2"

    def __init__(self, lane: BatchLane, *args, **kwargs) -> None:
        if lane is BatchLane.TITLES:
            raise ValueError("HeadingsLane handles page lanes only")
        super().__init__(*args, **kwargs)
        self.lane = lane
        self.label = f"H2 {lane.value}"

    def write(self, record_id: int, row: ReferenceRow) -> ApplyOutcome:
        headings = [self.safety.apply(row.value(column)) for column in H2_COLUMNS]
        if not all(headings):
            return ApplyOutcome.BLOCKED

        body = self.content.get_field(record_id, "body")
        block = build_block(
            self.content.get_field(record_id, "title"),
            headings,
            self.content.get_taxonomy_terms(record_id),
        )
        updated = replace_or_append(body, block)
        if updated == body:
            return ApplyOutcome.UNCHANGED
        self.content.update_body(record_id, updated)
        return ApplyOutcome.WRITTEN


def build_lanes(
    settings: ContentSpineSettings,
    content: ContentRecordStore,
    references: ReferenceRowStore,
    resolver: Resolver,
    safety: SafetyFilter,
    diagnostics: Diagnostics,
) -> list[LaneProcessor]:
    """Processors in tick order: titles, video headings, model headings."""
    args = (settings, content, references, resolver, safety, diagnostics)
    return [
        TitlesLane(*args),
        HeadingsLane(BatchLane.VIDEO_H2, *args),
        HeadingsLane(BatchLane.MODEL, *args),
    ]


__all__ = [
    "ApplyOutcome",
    "LaneProcessor",
    "TitlesLane",
    "HeadingsLane",
    "build_lanes",
]
