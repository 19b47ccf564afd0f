"""Tests for content_spine.cli: smoke tests via CliRunner against a temp database."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from content_spine import __version__
from content_spine.cli.app import app
from content_spine.core.enums import ReferenceCategory
from content_spine.core.settings import load_settings
from content_spine.runtime import build_runtime

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    monkeypatch.setenv("CONTENT_SPINE_LOG_LEVEL", "WARNING")


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "spine.db"
    rt = build_runtime(load_settings(database_path=path))
    rt.references.upsert(
        ReferenceCategory.PAGE_VIDEO,
        [
            {"page_id": "1", "h2_1": "Cozy Reading Nook", "h2_2": "Warm Lamps", "h2_3": "Rainy Afternoons",
             "h2_4": "Tea and Books"},
            {"page_id": "2", "h2_1": "Garden Party", "h2_2": "Summer Drinks", "h2_3": "Lawn Games",
             "h2_4": "Evening Lights"},
        ],
    )
    rt.content.add_record(10, "video_page", title="Cozy reading nook tour", slug="cozy-reading-nook-tour")
    rt.content.add_record(11, "video_page", title="Garden", meta={"_ref_page_id": "2"})
    rt.conn.close()
    return str(path)


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# ─── Root ────────────────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "batch" in result.output

    def test_invalid_settings_exit_1(self, monkeypatch, db):
        monkeypatch.setenv("CONTENT_SPINE_BATCH_SIZE", "5")
        result = runner.invoke(app, ["batch", "status", "--database", db])
        assert result.exit_code == 1


# ─── Batch ───────────────────────────────────────────────────────────────


class TestBatchCLI:
    def test_status_json(self, db):
        data = _json(runner.invoke(app, ["batch", "status", "--database", db, "--json"]))
        assert data["state"] == "stopped"
        assert data["cursors"] == {"titles": 0, "video_h2": 0, "model": 0}

    def test_start_marks_running(self, db):
        result = runner.invoke(app, ["batch", "start", "--database", db])
        assert result.exit_code == 0
        data = _json(runner.invoke(app, ["batch", "status", "--database", db, "--json"]))
        assert data["running"] is True

    def test_tick_json(self, db):
        data = _json(runner.invoke(app, ["batch", "tick", "--database", db, "--json"]))
        assert data["forced"] is True
        video = next(lane for lane in data["lanes"] if lane["lane"] == "video_h2")
        assert video["fetched"] == 2
        assert video["last_id"] == 11

    def test_tick_table(self, db):
        result = runner.invoke(app, ["batch", "tick", "--database", db])
        assert result.exit_code == 0
        assert "video_h2" in result.stdout

    def test_reset(self, db):
        runner.invoke(app, ["batch", "tick", "--database", db])
        result = runner.invoke(app, ["batch", "reset", "--database", db, "--yes"])
        assert result.exit_code == 0
        data = _json(runner.invoke(app, ["batch", "status", "--database", db, "--json"]))
        assert data["cursors"]["video_h2"] == 0


# ─── Tools ───────────────────────────────────────────────────────────────


class TestToolsCLI:
    def test_lookup_json(self, db):
        data = _json(runner.invoke(app, ["tools", "lookup", "11", "--lane", "video_h2", "--database", db, "--json"]))
        assert data["resolved_id"] == "page_00002"
        assert data["method"] == "authoritative"

    def test_unknown_lane(self, db):
        result = runner.invoke(app, ["tools", "lookup", "11", "--lane", "nope", "--database", db])
        assert result.exit_code == 1

    def test_backfill_ids_json(self, db):
        data = _json(runner.invoke(app, ["tools", "backfill-ids", "--lane", "video_h2", "--database", db, "--json"]))
        assert data["assigned"] == 1
        assert data["already_mapped"] == 1

    def test_smart_backfill_json(self, db, monkeypatch):
        monkeypatch.setenv("CONTENT_SPINE_CONFIDENCE_THRESHOLD", "0.2")
        data = _json(runner.invoke(app, ["tools", "smart-backfill", "--lane", "video_h2", "--database", db, "--json"]))
        assert data["assigned"] == 1
        data = _json(runner.invoke(app, ["tools", "lookup", "10", "--lane", "video_h2", "--database", db, "--json"]))
        assert data["method"] == "authoritative"
        assert data["resolved_id"] == "page_00001"

    def test_samples_json(self, db):
        data = _json(runner.invoke(app, ["tools", "samples", "--lane", "video_h2", "--database", db, "--json"]))
        assert data["category"] == "page_video"
        assert data["reference_ids"] == ["page_00001", "page_00002"]
        assert [row["record_id"] for row in data["records"]] == [11, 10]


# ─── Logs ────────────────────────────────────────────────────────────────


class TestLogsCLI:
    def test_tail_after_tick(self, db):
        runner.invoke(app, ["batch", "tick", "--database", db])
        data = _json(runner.invoke(app, ["logs", "tail", "--database", db, "--json", "--limit", "5"]))
        assert data["lines"]
        assert any("Manual batch tick" in line for line in
                   _json(runner.invoke(app, ["logs", "tail", "--database", db, "--json"]))["lines"])

    def test_tail_empty(self, db):
        result = runner.invoke(app, ["logs", "tail", "--database", db])
        assert result.exit_code == 0
        assert "No diagnostics yet" in result.stdout

    def test_clear(self, db):
        runner.invoke(app, ["batch", "tick", "--database", db])
        assert runner.invoke(app, ["logs", "clear", "--database", db]).exit_code == 0
        assert _json(runner.invoke(app, ["logs", "tail", "--database", db, "--json"]))["lines"] == []
