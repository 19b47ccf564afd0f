"""Tests for content_spine.batch.lanes."""

from __future__ import annotations

import pytest

from content_spine.batch.blocks import BLOCK_START
from content_spine.batch.lanes import ApplyOutcome, HeadingsLane, TitlesLane
from content_spine.core.enums import BatchLane, ReferenceCategory
from content_spine.core.models import LaneReport


def _lane(runtime, lane: BatchLane):
    return next(p for p in runtime.lanes if p.lane is lane)


class TestTitlesLane:
    @pytest.fixture
    def video(self, seed):
        seed.titles("7", "cozy nook", "Tour of the Cozy Nook", "reading corner", "tea time")
        seed.record(7, "video", title="Raw upload 7", meta={"_ref_video_id": "7"})

    def test_writes_seo_meta(self, runtime, content, video):
        report = LaneReport(lane=BatchLane.TITLES)
        outcome = _lane(runtime, BatchLane.TITLES).process(7, report)
        assert outcome is ApplyOutcome.WRITTEN
        assert report.resolved == 1 and report.written == 1
        assert content.get_meta(7, "_seo_title") == "cozy nook: Tour of the Cozy Nook"
        assert content.get_meta(7, "_seo_focus_keyword") == "cozy nook, reading corner, tea time"
        description = content.get_meta(7, "_seo_description")
        assert description.startswith("cozy nook: Tour of the Cozy Nook. Category: lifestyle.")
        assert description.endswith("Related: reading corner, tea time.")
        assert content.get_field(7, "title") == "Raw upload 7"

    def test_title_already_led_by_focus(self, seed, runtime, content):
        seed.titles("8", "cozy nook", "Cozy Nook Tour")
        seed.record(8, "video", meta={"_ref_video_id": "video_0008"})
        _lane(runtime, BatchLane.TITLES).process(8, LaneReport(lane=BatchLane.TITLES))
        assert content.get_meta(8, "_seo_title") == "Cozy Nook Tour"

    def test_update_title(self, make_runtime, content, video):
        runtime = make_runtime(update_title=True, write_seo_meta=False)
        _lane(runtime, BatchLane.TITLES).process(7, LaneReport(lane=BatchLane.TITLES))
        assert content.get_field(7, "title") == "cozy nook: Tour of the Cozy Nook"
        assert content.get_meta(7, "_seo_title") == ""

    def test_blocked(self, make_runtime, content, video):
        runtime = make_runtime(hard_block_pattern="nook")
        report = LaneReport(lane=BatchLane.TITLES)
        assert _lane(runtime, BatchLane.TITLES).process(7, report) is ApplyOutcome.BLOCKED
        assert report.blocked == 1
        assert content.get_meta(7, "_seo_title") == ""

    def test_soft_replace_applied(self, seed, runtime, content):
        seed.titles("9", "cam girl chat", "Cam girl chat after dark")
        seed.record(9, "video", meta={"_ref_video_id": "9"})
        _lane(runtime, BatchLane.TITLES).process(9, LaneReport(lane=BatchLane.TITLES))
        assert content.get_meta(9, "_seo_title") == "live creator chat late night"

    def test_unresolved(self, seed, make_runtime):
        seed.record(10, "video", title="Nothing like it")
        runtime = make_runtime(auto_backfill=False)
        report = LaneReport(lane=BatchLane.TITLES)
        assert _lane(runtime, BatchLane.TITLES).process(10, report) is None
        assert report.unresolved == 1
        assert "missing video_id mapping for record 10" in runtime.diagnostics.tail(1)[0]


class TestHeadingsLane:
    @pytest.fixture
    def page(self, seed):
        seed.headings("1", "Cozy Reading Nook", "Warm Lamps", "Rainy Afternoons", "Tea & Books")
        seed.record(20, "video_page", title="Cozy Den", body="<p>Intro</p>", terms=["Reading"],
                    meta={"_ref_page_id": "1"})

    def test_writes_block(self, runtime, content, page):
        report = LaneReport(lane=BatchLane.VIDEO_H2)
        assert _lane(runtime, BatchLane.VIDEO_H2).process(20, report) is ApplyOutcome.WRITTEN
        body = content.get_field(20, "body")
        assert body.startswith("<p>Intro</p>\n" + BLOCK_START)
        assert "<h2>Warm Lamps</h2>" in body
        assert "<h2>Tea &amp; Books</h2>" in body
        assert "<li>Reading</li>" in body

    def test_second_pass_unchanged(self, runtime, content, page):
        lane = _lane(runtime, BatchLane.VIDEO_H2)
        lane.process(20, LaneReport(lane=BatchLane.VIDEO_H2))
        first = content.get_field(20, "body")
        report = LaneReport(lane=BatchLane.VIDEO_H2)
        assert lane.process(20, report) is ApplyOutcome.UNCHANGED
        assert report.written == 0
        assert content.get_field(20, "body") == first

    def test_any_blocked_heading_skips(self, make_runtime, content, page):
        runtime = make_runtime(hard_block_pattern="lamps")
        report = LaneReport(lane=BatchLane.VIDEO_H2)
        assert _lane(runtime, BatchLane.VIDEO_H2).process(20, report) is ApplyOutcome.BLOCKED
        assert content.get_field(20, "body") == "<p>Intro</p>"

    def test_model_lane_uses_configured_table(self, seed, make_runtime, content):
        seed.headings("5", "T1", "T2", "T3", "T4", category=ReferenceCategory.PAGE_MODEL_TRAIT, trait="Tall")
        seed.headings("5", "N1", "N2", "N3", "N4", category=ReferenceCategory.PAGE_MODEL_NOTRAIT)
        seed.record(30, "model", title="Model", meta={"_ref_page_id": "5"})

        runtime = make_runtime(model_h2_source="trait")
        _lane(runtime, BatchLane.MODEL).process(30, LaneReport(lane=BatchLane.MODEL))
        assert "<h2>T1</h2>" in content.get_field(30, "body")

        runtime = make_runtime()
        _lane(runtime, BatchLane.MODEL).process(30, LaneReport(lane=BatchLane.MODEL))
        body = content.get_field(30, "body")
        assert "<h2>N1</h2>" in body
        assert "<h2>T1</h2>" not in body

    def test_titles_lane_rejected(self, runtime):
        with pytest.raises(ValueError):
            HeadingsLane(
                BatchLane.TITLES,
                runtime.settings,
                runtime.content,
                runtime.references,
                runtime.resolver,
                runtime.safety,
                runtime.diagnostics,
            )


class TestLaneOrder:
    def test_tick_order(self, runtime):
        assert [p.lane for p in runtime.lanes] == [BatchLane.TITLES, BatchLane.VIDEO_H2, BatchLane.MODEL]
        assert isinstance(runtime.lanes[0], TitlesLane)
