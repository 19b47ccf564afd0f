"""Tests for content_spine.batch.blocks."""

from __future__ import annotations

from content_spine.batch.blocks import (
    BLOCK_END,
    BLOCK_START,
    DESCRIPTION_MAX,
    build_block,
    build_description,
    intro_sentence,
    replace_or_append,
)


class TestBuildBlock:
    def test_delimited_and_ordered(self):
        block = build_block("Cozy Den", ["A", "B", "C", "D"], ["Reading"])
        assert block.startswith(BLOCK_START)
        assert block.endswith(BLOCK_END)
        assert block.index("<h2>A</h2>") < block.index("<h2>D</h2>")
        assert "<li>Reading</li>" in block
        assert "Cozy Den brings together highlights" in block

    def test_escapes_html(self):
        block = build_block("<b>x</b>", ["Tea & Books", "B", "C", "D"], ["<script>"])
        assert "<h2>Tea &amp; Books</h2>" in block
        assert "&lt;script&gt;" in block
        assert "<b>x</b>" not in block

    def test_no_terms_no_list(self):
        assert "Explore more:" not in build_block("T", ["A", "B", "C", "D"], [])

    def test_empty_title(self):
        assert intro_sentence("  ").startswith("This page brings together")


class TestReplaceOrAppend:
    def test_append(self):
        assert replace_or_append("<p>Intro</p>", "BLOCK") == "<p>Intro</p>\nBLOCK"

    def test_empty_body(self):
        assert replace_or_append("", "BLOCK") == "BLOCK"

    def test_replace_existing(self):
        body = f"<p>Intro</p>\n{BLOCK_START}\nold\n{BLOCK_END}\n<p>Outro</p>"
        new_block = build_block("T", ["A", "B", "C", "D"])
        updated = replace_or_append(body, new_block)
        assert "old" not in updated
        assert updated.endswith("<p>Outro</p>")
        assert updated.count(BLOCK_START) == 1

    def test_idempotent(self):
        block = build_block("T", ["A", "B", "C", "D"], ["x"])
        once = replace_or_append("<p>Intro</p>", block)
        assert replace_or_append(once, block) == once


class TestDescription:
    def test_parts(self):
        primary = {"category": "lifestyle", "tone": "warm"}
        description = build_description("Cozy Nook", "cozy", primary, ["cozy", "tea", "books"])
        assert description == (
            "Cozy Nook. Category: lifestyle. Tone: warm. "
            "Explore cozy and related highlights. Related: tea, books."
        )

    def test_empty_parts_omitted(self):
        assert build_description("T", "", {}, []) == "T."

    def test_truncated(self):
        description = build_description("x" * 300, "k", {}, [])
        assert len(description) == DESCRIPTION_MAX
