"""Tests for content_spine.matching.resolver."""

from __future__ import annotations

import pytest

from content_spine.core.diagnostics import Diagnostics
from content_spine.core.enums import IdKind, ReferenceCategory, ResolutionMethod
from content_spine.core.errors import CandidateStoreFault, ResolutionUnresolved, WriteBackFault
from content_spine.matching.candidates import CandidateStore
from content_spine.matching.ledger import mapping_key
from content_spine.matching.resolver import Resolver

CATEGORY = ReferenceCategory.PAGE_VIDEO
META = "_ref_page_id"
KEY = mapping_key(META, CATEGORY)


class ExplodingCandidates:
    """Fails the test if fuzzy resolution is attempted."""

    def find(self, *args, **kwargs):
        raise AssertionError("candidate store must not be consulted")


class FaultyCandidates:
    def find(self, *args, **kwargs):
        raise CandidateStoreFault("fallback search failed")


@pytest.fixture
def seeded(seed):
    seed.headings("1", "Cozy Reading Nook", "Warm Lamps", "Rainy Afternoons", "Tea and Books")
    seed.headings("2", "Garden Party", "Summer Drinks", "Lawn Games", "Evening Lights")
    return seed


@pytest.fixture
def make_resolver(conn, content, references, ledger, make_settings):
    def factory(*, candidates=None, use_index=True, diagnostics=None, **overrides):
        settings = make_settings(**overrides)
        if candidates is None:
            candidates = CandidateStore.from_settings(conn, content, ledger, settings, use_index=use_index)
        return Resolver(settings, content, references, candidates, ledger, diagnostics=diagnostics)

    return factory


class TestAuthoritative:
    @pytest.mark.parametrize("mode", ["meta", "smart", "slug"])
    def test_meta_wins_without_fuzzy(self, make_resolver, seeded, mode):
        seeded.record(10, title="Cozy reading nook tour", meta={META: "2"})
        resolver = make_resolver(candidates=ExplodingCandidates(), mapping_mode=mode)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.id == "page_00002"
        assert resolution.method is ResolutionMethod.AUTHORITATIVE
        assert resolution.trace == ("meta_match",)
        assert resolution.needs_commit is False

    def test_dangling_meta_falls_through(self, make_resolver, seeded):
        seeded.record(10, title="", slug="", meta={META: "page_09999"})
        resolver = make_resolver(candidates=ExplodingCandidates(), auto_backfill=False)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.method is ResolutionMethod.UNRESOLVED
        assert resolution.trace == ("unmapped",)


class TestFuzzy:
    def test_titles_row_found_from_slug_at_default_threshold(self, make_resolver, seed):
        seed.titles("video_0001", "cozy reading", "Cozy Reading Nook Tour")
        seed.titles("video_0002", "garden party", "Summer Garden Party Ideas")
        seed.record(20, post_type="video", slug="cozy-reading-nook-tour")
        resolver = make_resolver()
        assert resolver.settings.confidence_threshold == 0.35
        resolution = resolver.resolve(20, IdKind.VIDEO, ReferenceCategory.TITLES)
        assert resolution.id == "video_0001"
        assert resolution.method in (ResolutionMethod.FUZZY, ResolutionMethod.SLUG)
        assert resolution.trace

    def test_cozy_reading_resolves(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour", slug="cozy-reading-nook-tour")
        resolver = make_resolver(confidence_threshold=0.2)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.id == "page_00001"
        assert resolution.method is ResolutionMethod.FUZZY
        assert resolution.trace == ("smart_auto",)
        assert resolution.needs_commit

    def test_fallback_path_resolves(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(use_index=False, confidence_threshold=0.2)
        assert resolver.resolve(10, IdKind.PAGE, CATEGORY).id == "page_00001"

    def test_below_threshold_unresolved(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.99)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert not resolution.resolved
        with pytest.raises(ResolutionUnresolved):
            resolution.require()

    def test_resolve_has_no_side_effects(self, make_resolver, seeded, content, ledger):
        seeded.record(10, title="Cozy reading nook tour")
        make_resolver(confidence_threshold=0.2).resolve(10, IdKind.PAGE, CATEGORY)
        assert content.get_meta(10, META) == ""
        assert not ledger.is_consumed(KEY, "page_00001")

    def test_auto_backfill_off_skips_fuzzy(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(candidates=ExplodingCandidates(), auto_backfill=False)
        assert resolver.resolve(10, IdKind.PAGE, CATEGORY).method is ResolutionMethod.UNRESOLVED

    def test_smart_mode_runs_before_slug(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour", slug="2")
        resolver = make_resolver(mapping_mode="smart", auto_backfill=False, confidence_threshold=0.2)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.id == "page_00001"
        assert resolution.trace == ("smart_meta",)

    def test_candidate_fault_is_recorded(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        diagnostics = Diagnostics()
        resolver = make_resolver(candidates=FaultyCandidates(), diagnostics=diagnostics)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.method is ResolutionMethod.UNRESOLVED
        assert "candidates unavailable" in diagnostics.tail(1)[0]


class TestSlug:
    def test_slug_mode(self, make_resolver, seeded):
        seeded.record(10, title="Anything", slug="2")
        resolver = make_resolver(candidates=ExplodingCandidates(), mapping_mode="slug", auto_backfill=False)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.id == "page_00002"
        assert resolution.method is ResolutionMethod.SLUG
        assert resolution.trace == ("slug_match",)
        assert resolution.needs_commit is False

    def test_slug_fallback(self, make_resolver, seeded):
        seeded.record(10, title="Anything", slug="2")
        resolver = make_resolver(candidates=ExplodingCandidates(), auto_backfill=False)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolution.trace == ("slug_fallback",)


class TestCommit:
    def test_commit_makes_next_resolve_authoritative(self, make_resolver, seeded, content, ledger):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.2)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert resolver.commit_resolution(resolution) is True
        assert content.get_meta(10, META) == "page_00001"
        assert ledger.is_consumed(KEY, "page_00001")
        again = resolver.resolve(10, IdKind.PAGE, CATEGORY)
        assert again.method is ResolutionMethod.AUTHORITATIVE

    def test_consumed_id_not_reassigned(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        seeded.record(11, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.2)
        first = resolver.resolve_and_commit(10, IdKind.PAGE, CATEGORY)
        second = resolver.resolve(11, IdKind.PAGE, CATEGORY)
        assert first.id == "page_00001"
        assert second.id != "page_00001"

    def test_non_fuzzy_needs_no_commit(self, make_resolver, seeded):
        seeded.record(10, title="x", meta={META: "1"})
        resolver = make_resolver(candidates=ExplodingCandidates())
        assert resolver.commit_resolution(resolver.resolve(10, IdKind.PAGE, CATEGORY)) is False

    def test_write_fault_carries_context(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.2)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)

        def reject(*args):
            raise WriteBackFault("meta update rejected")

        resolver.content.set_meta = reject
        with pytest.raises(WriteBackFault) as exc_info:
            resolver.commit_resolution(resolution)
        assert exc_info.value.context.reference_id == "page_00001"

    def test_rejected_write_leaves_row_assignable(self, make_resolver, seeded, content, ledger):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.2)
        resolution = resolver.resolve(10, IdKind.PAGE, CATEGORY)

        def reject(*args):
            raise WriteBackFault("meta update rejected")

        resolver.content.set_meta = reject
        with pytest.raises(WriteBackFault):
            resolver.commit_resolution(resolution)
        del resolver.content.set_meta

        assert content.get_meta(10, META) == ""
        assert not ledger.is_consumed(KEY, "page_00001")
        retry = resolver.resolve_and_commit(10, IdKind.PAGE, CATEGORY)
        assert retry.id == "page_00001"
        assert retry.method is ResolutionMethod.FUZZY
        assert content.get_meta(10, META) == "page_00001"
        assert ledger.is_consumed(KEY, "page_00001")


class TestResolveFuzzy:
    def test_ignores_slug(self, make_resolver, seeded):
        seeded.record(10, title="", slug="2")
        resolver = make_resolver(mapping_mode="slug")
        resolution = resolver.resolve_fuzzy(10, IdKind.PAGE, CATEGORY)
        assert resolution.method is ResolutionMethod.UNRESOLVED

    def test_smart_backfill_trace(self, make_resolver, seeded):
        seeded.record(10, title="Cozy reading nook tour")
        resolver = make_resolver(confidence_threshold=0.2, auto_backfill=False)
        resolution = resolver.resolve_fuzzy(10, IdKind.PAGE, CATEGORY)
        assert resolution.trace == ("smart_backfill",)
        assert resolution.id == "page_00001"
