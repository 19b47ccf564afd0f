"""Tests for content_spine.batch.backfill."""

from __future__ import annotations

import pytest

from content_spine.batch.backfill import BackfillReport, assign_sequential_ids, backfill_ids, smart_backfill
from content_spine.core.enums import BatchLane, ReferenceCategory

META = "_ref_page_id"


@pytest.fixture
def pages(seed):
    seed.headings("1", "Cozy Reading Nook", "Warm Lamps", "Rainy Afternoons", "Tea and Books")
    seed.headings("2", "Garden Party", "Summer Drinks", "Lawn Games", "Evening Lights")
    seed.headings("3", "Harbor Walks", "Sea Breeze", "Fishing Boats", "Lighthouse Views")
    return seed


class TestAssignSequentialIds:
    def test_pairs_in_order(self, content, seed):
        for record_id in (10, 11, 12):
            seed.record(record_id)
        report = assign_sequential_ids(
            content, ["a", "b"], [10, 11, 12], META, report=BackfillReport(lane=BatchLane.VIDEO_H2)
        )
        assert report.assignments == [(10, "a"), (11, "b")]
        assert content.get_meta(12, META) == ""

    def test_never_overwrites(self, content, seed):
        seed.record(10, meta={META: "keep"})
        seed.record(11)
        report = assign_sequential_ids(
            content, ["a", "b"], [10, 11], META, report=BackfillReport(lane=BatchLane.VIDEO_H2)
        )
        assert content.get_meta(10, META) == "keep"
        assert report.assignments == [(11, "a")]
        assert report.already_mapped == 1

    def test_counts_mapped_records_after_ids_run_out(self, content, seed):
        seed.record(10)
        seed.record(11)
        seed.record(12, meta={META: "b"})
        report = assign_sequential_ids(
            content, ["a", "b"], [10, 11, 12], META, report=BackfillReport(lane=BatchLane.VIDEO_H2), taken={"b"}
        )
        assert report.assignments == [(10, "a")]
        assert content.get_meta(11, META) == ""
        assert report.already_mapped == 1

    def test_skips_taken_ids(self, content, seed):
        seed.record(10)
        report = assign_sequential_ids(
            content, ["a", "b"], [10], META, report=BackfillReport(lane=BatchLane.VIDEO_H2), taken={"a"}
        )
        assert report.assignments == [(10, "b")]


class TestBackfillIds:
    def test_assigns_free_ids(self, runtime, content, pages):
        pages.record(10)
        pages.record(11, meta={META: "2"})
        pages.record(12)
        pages.record(13)
        report = backfill_ids(BatchLane.VIDEO_H2, runtime.settings, content, runtime.references, runtime.diagnostics)
        assert report.assignments == [(10, "page_00001"), (12, "page_00003")]
        assert report.already_mapped == 1
        assert content.get_meta(13, META) == ""
        assert "assigned 2" in runtime.diagnostics.tail(1)[0]

    def test_titles_lane_uses_distinct_video_ids(self, runtime, content, seed):
        seed.titles("1", "a", "A", "b", "c")
        seed.titles("2", "d", "D")
        seed.record(5, "video")
        seed.record(6, "video")
        report = backfill_ids(BatchLane.TITLES, runtime.settings, content, runtime.references, runtime.diagnostics)
        assert report.assignments == [(5, "video_0001"), (6, "video_0002")]

    def test_missing_meta_key_skips(self, make_runtime, content, pages):
        pages.record(10)
        runtime = make_runtime(page_id_meta_key="")
        report = backfill_ids(BatchLane.VIDEO_H2, runtime.settings, content, runtime.references, runtime.diagnostics)
        assert report.skipped and "page_id_meta_key" in report.skipped
        assert report.assigned == 0
        assert "skipped" in runtime.diagnostics.tail(1)[0]


class TestSmartBackfill:
    def test_commits_accepted_matches(self, make_runtime, content, ledger, pages):
        pages.record(10, title="Cozy reading nook tour")
        pages.record(11, title="Garden", meta={META: "page_00002"})
        pages.record(12, title="Zeppelin")
        runtime = make_runtime(confidence_threshold=0.2)
        report = smart_backfill(BatchLane.VIDEO_H2, runtime.settings, content, runtime.resolver, runtime.diagnostics)
        assert report.assignments == [(10, "page_00001")]
        assert report.already_mapped == 1
        assert report.unresolved == 1
        assert content.get_meta(10, META) == "page_00001"
        assert runtime.ledger.is_consumed(f"{META}@{ReferenceCategory.PAGE_VIDEO.value}", "page_00001")

    def test_missing_post_types_skips(self, make_runtime, content, pages):
        runtime = make_runtime(video_h2_post_types="")
        report = smart_backfill(BatchLane.VIDEO_H2, runtime.settings, content, runtime.resolver, runtime.diagnostics)
        assert report.skipped
