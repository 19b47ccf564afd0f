"""
Shared pytest fixtures for content-spine tests.

This module provides:
- An in-memory SQLite connection with every table created
- Content and reference stores over that connection
- A settings factory that never reads the operator's environment
- A fully wired runtime with a ``NullTrigger``

Usage:
    def test_something(content, references, make_settings):
        settings = make_settings(mapping_mode="smart")
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from content_spine.batch.trigger import NullTrigger
from content_spine.core.enums import ReferenceCategory
from content_spine.core.settings import ContentSpineSettings, load_settings
from content_spine.core.sqlite_conn import SqliteConnection, open_database
from content_spine.matching.ledger import AssignmentLedger
from content_spine.runtime import Runtime, build_runtime
from content_spine.stores.content import SqliteContentStore
from content_spine.stores.reference import SqliteReferenceStore


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark CLI tests as integration, everything else as unit."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts and test_path.parts[0] == "cli":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep CONTENT_SPINE_* variables and any .env file out of tests."""
    for key in list(os.environ):
        if key.startswith("CONTENT_SPINE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def conn() -> Iterator[SqliteConnection]:
    connection = open_database()
    yield connection
    connection.close()


@pytest.fixture
def content(conn: SqliteConnection) -> SqliteContentStore:
    return SqliteContentStore(conn)


@pytest.fixture
def references(conn: SqliteConnection) -> SqliteReferenceStore:
    return SqliteReferenceStore(conn)


@pytest.fixture
def ledger(conn: SqliteConnection) -> AssignmentLedger:
    return AssignmentLedger(conn)


# =============================================================================
# Settings and runtime
# =============================================================================


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., ContentSpineSettings]:
    def factory(**overrides) -> ContentSpineSettings:
        overrides.setdefault("database_path", tmp_path / "content_spine.db")
        return load_settings(**overrides)

    return factory


@pytest.fixture
def settings(make_settings: Callable[..., ContentSpineSettings]) -> ContentSpineSettings:
    return make_settings()


@pytest.fixture
def make_runtime(conn: SqliteConnection, make_settings) -> Callable[..., Runtime]:
    def factory(*, use_index: bool = True, **overrides) -> Runtime:
        return build_runtime(
            make_settings(**overrides), conn=conn, trigger=NullTrigger(), use_index=use_index
        )

    return factory


@pytest.fixture
def runtime(make_runtime: Callable[..., Runtime]) -> Runtime:
    return make_runtime()


# =============================================================================
# Seed data
# =============================================================================


class Seeder:
    """Helpers for writing reference rows and content records in tests."""

    def __init__(self, content: SqliteContentStore, references: SqliteReferenceStore) -> None:
        self.content = content
        self.references = references

    def titles(self, video_id: str, focus: str, seo_title: str, *extra_keywords: str) -> int:
        """Slot 1 from ``focus``/``seo_title``; slots 2.. from ``extra_keywords``."""
        rows = [
            {
                "video_id": video_id,
                "keyword_slot": "keyword_1",
                "focus_keyword": focus,
                "seo_title": seo_title,
                "tone": "warm",
                "category": "lifestyle",
            }
        ]
        for index, keyword in enumerate(extra_keywords, start=2):
            rows.append(
                {
                    "video_id": video_id,
                    "keyword_slot": f"keyword_{index}",
                    "focus_keyword": keyword,
                    "seo_title": f"{keyword} highlights",
                }
            )
        return self.references.upsert(ReferenceCategory.TITLES, rows)

    def headings(
        self,
        page_id: str,
        *headings: str,
        category: ReferenceCategory = ReferenceCategory.PAGE_VIDEO,
        trait: str | None = None,
    ) -> int:
        row = {"page_id": page_id}
        for index, heading in enumerate(headings, start=1):
            row[f"h2_{index}"] = heading
        if trait is not None:
            row["trait"] = trait
        return self.references.upsert(category, [row])

    def record(self, record_id: int, post_type: str = "video_page", **kwargs) -> int:
        self.content.add_record(record_id, post_type, **kwargs)
        return record_id


@pytest.fixture
def seed(content: SqliteContentStore, references: SqliteReferenceStore) -> Seeder:
    return Seeder(content, references)
