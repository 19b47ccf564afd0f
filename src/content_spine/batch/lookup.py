"""Diagnostics lookups: how would a record resolve, what do the tables hold.

Nothing here commits a resolution or writes content.
"""

from __future__ import annotations

from typing import Any

from content_spine.core.enums import BatchLane, ReferenceCategory
from content_spine.core.protocols import ContentRecordStore, ReferenceRowStore
from content_spine.core.settings import ContentSpineSettings
from content_spine.matching.resolver import Resolver

SAMPLE_LIMIT = 10


def lookup(
    record_id: int,
    lane: BatchLane,
    settings: ContentSpineSettings,
    content: ContentRecordStore,
    references: ReferenceRowStore,
    resolver: Resolver,
) -> dict[str, Any]:
    category = settings.category_for(lane)
    resolution = resolver.resolve(record_id, lane.kind, category)
    return {
        "record_id": record_id,
        "slug": content.get_field(record_id, "slug"),
        "resolved_id": resolution.id,
        "method": resolution.method.value,
        "score": round(resolution.score, 4),
        "trace": list(resolution.trace),
        "has_reference": references.exists(category, resolution.id),
    }


def sample_reference_ids(
    references: ReferenceRowStore, category: ReferenceCategory, limit: int = SAMPLE_LIMIT
) -> list[str]:
    return references.list_ids(category, limit=limit)


def sample_records(
    lane: BatchLane,
    settings: ContentSpineSettings,
    content: ContentRecordStore,
    references: ReferenceRowStore,
    resolver: Resolver,
    limit: int = SAMPLE_LIMIT,
) -> list[dict[str, Any]]:
    """Newest records of the lane with their resolved id."""
    types = settings.post_types_for(lane)
    category = settings.category_for(lane)
    rows = []
    for record_id in content.list_all_ids(types, newest_first=True)[:limit]:
        resolution = resolver.resolve(record_id, lane.kind, category)
        rows.append(
            {
                "record_id": record_id,
                "slug": content.get_field(record_id, "slug"),
                "resolved_id": resolution.id,
                "method": resolution.method.value,
                "has_reference": references.exists(category, resolution.id),
            }
        )
    return rows


__all__ = ["lookup", "sample_reference_ids", "sample_records", "SAMPLE_LIMIT"]
