"""
Resolver: content record -> reference id.

Two-phase contract:

- ``resolve`` reads only. It tries the authoritative mapping, then
  (depending on the mapping mode and auto-backfill) fuzzy resolution
  and slug matches, and returns a ``Resolution`` whose ``trace`` names
  the step that produced it.
- ``commit_resolution`` is the only place that mutates state. For a
  FUZZY result it consumes the reference id in the ledger and writes it
  as the record's mapping meta, so the next tick takes the
  authoritative path.

Manifesto:
    Authoritative first, always. A record whose meta already points at
    an existing reference row never reaches the candidate store or the
    scorer. Fuzzy matching is an assist for records that lost their
    link, and its answer only becomes authoritative once committed.

Architecture:
    ::

        resolve(record_id, kind, category)
          1. meta_match       canonical(meta) exists in category → AUTHORITATIVE
          2. smart_meta       mode == smart: fuzzy                  → FUZZY
          3. slug_match       mode == slug: canonical(slug) exists  → SLUG
          4. smart_auto       mode != smart and auto_backfill: fuzzy → FUZZY
          5. slug_fallback    canonical(slug) exists                → SLUG
          6. unmapped                                               → UNRESOLVED

        resolve_fuzzy(record_id, kind, category)
          meta_match, else smart_backfill (fuzzy only), else unmapped

        fuzzy = search_context → CandidateStore.find → rank → top >= threshold

Guardrails:
    ❌ DON'T: Write meta or ledger entries from resolve()
    ✅ DO: Call commit_resolution() with the Resolution you accept

Tags:
    resolver, entity-resolution, fuzzy, smart-backfill, ledger,
    authoritative, content-spine

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import (
    BatchLane,
    IdKind,
    MappingMode,
    ReferenceCategory,
    ResolutionMethod,
)
from content_spine.core.errors import CandidateStoreFault, WriteBackFault
from content_spine.core.logging import get_logger
from content_spine.core.models import Resolution, ScoredCandidate
from content_spine.core.protocols import ContentRecordStore, ReferenceRowStore
from content_spine.core.settings import ContentSpineSettings
from content_spine.matching.ledger import AssignmentLedger, mapping_key
from content_spine.matching.normalize import canonical_id, search_context
from content_spine.matching.scoring import rank

logger = get_logger(__name__)

_LANE_BY_CATEGORY = {
    ReferenceCategory.TITLES: BatchLane.TITLES,
    ReferenceCategory.PAGE_VIDEO: BatchLane.VIDEO_H2,
    ReferenceCategory.PAGE_MODEL_TRAIT: BatchLane.MODEL,
    ReferenceCategory.PAGE_MODEL_NOTRAIT: BatchLane.MODEL,
}


class Resolver:
    """Resolves records to reference ids with the configured strategy.

    Args:
        settings: Validated settings (mapping mode, meta keys, threshold).
        content: Content record store.
        references: Reference row store.
        candidates: Candidate store (anything exposing ``find``).
        ledger: Assignment ledger.
        diagnostics: Optional diagnostics sink for trace/score lines.
    """

    def __init__(
        self,
        settings: ContentSpineSettings,
        content: ContentRecordStore,
        references: ReferenceRowStore,
        candidates: Any,
        ledger: AssignmentLedger,
        *,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.settings = settings
        self.content = content
        self.references = references
        self.candidates = candidates
        self.ledger = ledger
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    # -- phase 1 -----------------------------------------------------------

    def resolve(self, record_id: int, kind: IdKind, category: ReferenceCategory) -> Resolution:
        """Resolve without side effects. ``ConfigurationError`` propagates."""
        meta_key = self.settings.meta_key_for(kind)
        key = mapping_key(meta_key, category)
        mode = self.settings.mapping_mode
        trace: list[str] = []

        def result(ref_id: str, method: ResolutionMethod, score: float = 0.0) -> Resolution:
            return Resolution(
                record_id=record_id,
                kind=kind,
                category=category,
                id=ref_id,
                method=method,
                score=score,
                trace=tuple(trace),
                mapping_key=key,
            )

        meta_id = canonical_id(self.content.get_meta(record_id, meta_key), kind)
        if meta_id and self.references.exists(category, meta_id):
            trace.append("meta_match")
            return result(meta_id, ResolutionMethod.AUTHORITATIVE, 1.0)

        slug_id = canonical_id(self.content.get_field(record_id, "slug"), kind)
        slug_checked = False

        if mode is MappingMode.SMART:
            best = self._fuzzy(record_id, category, key, meta_key)
            if best is not None:
                trace.append("smart_meta")
                return result(best.reference_id, ResolutionMethod.FUZZY, best.score)

        if mode is MappingMode.SLUG:
            slug_checked = True
            if slug_id and self.references.exists(category, slug_id):
                trace.append("slug_match")
                return result(slug_id, ResolutionMethod.SLUG)

        if mode is not MappingMode.SMART and self.settings.auto_backfill:
            best = self._fuzzy(record_id, category, key, meta_key)
            if best is not None:
                trace.append("smart_auto")
                return result(best.reference_id, ResolutionMethod.FUZZY, best.score)

        if not slug_checked and slug_id and self.references.exists(category, slug_id):
            trace.append("slug_fallback")
            return result(slug_id, ResolutionMethod.SLUG)

        trace.append("unmapped")
        return result("", ResolutionMethod.UNRESOLVED)

    def resolve_fuzzy(self, record_id: int, kind: IdKind, category: ReferenceCategory) -> Resolution:
        """Authoritative check, then fuzzy only; used by the smart backfill tool.

        Ignores the mapping mode, the auto-backfill flag and slugs.
        """
        meta_key = self.settings.meta_key_for(kind)
        key = mapping_key(meta_key, category)
        base = Resolution(
            record_id=record_id,
            kind=kind,
            category=category,
            id="",
            method=ResolutionMethod.UNRESOLVED,
            trace=("unmapped",),
            mapping_key=key,
        )
        meta_id = canonical_id(self.content.get_meta(record_id, meta_key), kind)
        if meta_id and self.references.exists(category, meta_id):
            return replace(base, id=meta_id, method=ResolutionMethod.AUTHORITATIVE, score=1.0, trace=("meta_match",))
        best = self._fuzzy(record_id, category, key, meta_key)
        if best is None:
            return base
        return replace(
            base,
            id=best.reference_id,
            method=ResolutionMethod.FUZZY,
            score=best.score,
            trace=("smart_backfill",),
        )

    def _fuzzy(
        self, record_id: int, category: ReferenceCategory, key: str, meta_key: str
    ) -> ScoredCandidate | None:
        context = search_context(
            self.content.get_field(record_id, "title"),
            self.content.get_taxonomy_terms(record_id),
            self.content.get_field(record_id, "slug"),
        )
        if context.is_empty:
            return None
        lane = _LANE_BY_CATEGORY[category]
        try:
            found = self.candidates.find(
                category,
                context,
                mapping_key=key,
                meta_key=meta_key,
                post_types=self.settings.post_types_for(lane),
                record_id=record_id,
            )
        except CandidateStoreFault as exc:
            self.diagnostics.record(
                "resolve.candidates_unavailable",
                f"Fuzzy: candidates unavailable for record {record_id} ({exc.message})",
                level="warning",
                record_id=record_id,
                category=category.value,
            )
            return None
        if not found:
            return None

        ranked = rank(context, found)
        best = ranked[0]
        threshold = self.settings.confidence_threshold
        accepted = best.score >= threshold
        self.diagnostics.record(
            "resolve.fuzzy_scored",
            f"Fuzzy {category.value} record {record_id}: top {best.reference_id} "
            f"score={best.score:.3f} threshold={threshold:.2f} "
            f"({'accepted' if accepted else 'rejected'}, {len(ranked)} candidates)",
            level="debug",
            record_id=record_id,
            ref_id=best.reference_id,
            score=best.score,
            accepted=accepted,
        )
        return best if accepted else None

    # -- phase 2 -----------------------------------------------------------

    def commit_resolution(self, resolution: Resolution) -> bool:
        """Persist an accepted FUZZY result: mapping meta first, then the ledger.

        A rejected meta write leaves the ledger untouched, so the row stays
        offerable. Returns False for results that need no commit.

        Raises:
            WriteBackFault: the content store rejected the meta write.
        """
        if not resolution.needs_commit:
            return False
        meta_key = self.settings.meta_key_for(resolution.kind)
        try:
            self.content.set_meta(resolution.record_id, meta_key, resolution.id)
        except WriteBackFault as exc:
            raise exc.with_context(
                record_id=resolution.record_id,
                reference_id=resolution.id,
                mapping_key=resolution.mapping_key,
            )
        self.ledger.consume(resolution.mapping_key, resolution.id, record_id=resolution.record_id)
        self.diagnostics.record(
            "resolve.committed",
            f"Smart-backfill: record {resolution.record_id} -> {resolution.id} "
            f"(score={resolution.score:.3f}, {' > '.join(resolution.trace)})",
            record_id=resolution.record_id,
            ref_id=resolution.id,
        )
        return True

    def resolve_and_commit(self, record_id: int, kind: IdKind, category: ReferenceCategory) -> Resolution:
        resolution = self.resolve(record_id, kind, category)
        self.commit_resolution(resolution)
        return resolution


__all__ = ["Resolver"]
