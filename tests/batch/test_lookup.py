"""Tests for content_spine.batch.lookup."""

from __future__ import annotations

from content_spine.batch.lookup import lookup, sample_records, sample_reference_ids
from content_spine.core.enums import BatchLane, ReferenceCategory


class TestLookup:
    def test_reports_without_committing(self, make_runtime, seed, content):
        seed.headings("1", "Cozy Reading Nook", "Warm Lamps", "Rainy Afternoons", "Tea and Books")
        seed.record(10, title="Cozy reading nook tour", slug="cozy-reading-nook-tour")
        rt = make_runtime(confidence_threshold=0.2)
        result = lookup(10, BatchLane.VIDEO_H2, rt.settings, rt.content, rt.references, rt.resolver)
        assert result["record_id"] == 10
        assert result["slug"] == "cozy-reading-nook-tour"
        assert result["resolved_id"] == "page_00001"
        assert result["method"] == "fuzzy"
        assert result["trace"] == ["smart_auto"]
        assert result["has_reference"] is True
        assert content.get_meta(10, "_ref_page_id") == ""

    def test_unresolved(self, make_runtime, seed):
        seed.record(10, title="")
        rt = make_runtime()
        result = lookup(10, BatchLane.VIDEO_H2, rt.settings, rt.content, rt.references, rt.resolver)
        assert result["resolved_id"] == ""
        assert result["has_reference"] is False


class TestSamples:
    def test_reference_ids(self, references, seed):
        for page in range(1, 13):
            seed.headings(str(page), "A", "B", "C", "D")
        ids = sample_reference_ids(references, ReferenceCategory.PAGE_VIDEO)
        assert len(ids) == 10
        assert ids[0] == "page_00001"

    def test_records_newest_first(self, make_runtime, seed):
        seed.headings("1", "A", "B", "C", "D")
        seed.record(10, meta={"_ref_page_id": "1"})
        seed.record(11)
        seed.record(12, "video")
        rt = make_runtime(auto_backfill=False)
        rows = sample_records(BatchLane.VIDEO_H2, rt.settings, rt.content, rt.references, rt.resolver, limit=5)
        assert [row["record_id"] for row in rows] == [11, 10]
        assert rows[1]["resolved_id"] == "page_00001"
        assert rows[1]["has_reference"] is True
        assert rows[0]["method"] == "unresolved"
