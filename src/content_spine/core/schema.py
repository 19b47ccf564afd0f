"""
Content Spine tables.

Defines table names and DDL statements for everything the core
persists: the content host stand-in, one reference table per
``ReferenceCategory``, the candidate search surface, the assignment
ledger, batch progress, and the diagnostics sink.

Manifesto:
    The resolver, the scheduler and the tools share one SQLite file.
    Keeping every statement in one registry means tests, the CLI and
    production bootstrap create exactly the same schema.

Architecture:
    ::

        Table Registry (TABLES):
        ┌────────────────────────────────────────────────────────────┐
        │ content_records    → host records (id, type, title, slug)  │
        │ content_meta       → per-record metadata (key/value)       │
        │ content_terms      → taxonomy term names per record        │
        │ ref_titles         → TITLES, one row per keyword slot      │
        │ ref_video_h2       → PAGE_VIDEO headings                   │
        │ ref_model_h2       → PAGE_MODEL_TRAIT headings + trait     │
        │ ref_model_h2_nt    → PAGE_MODEL_NOTRAIT headings           │
        │ ref_search         → searchable text per (category, id)    │
        │ assignment_ledger  → consumed ids per mapping key          │
        │ batch_progress     → per-lane cursor                       │
        │ batch_state        → global running flag                   │
        │ diagnostics_log    → capped, timestamped lines             │
        └────────────────────────────────────────────────────────────┘

        Optional:
        ┌────────────────────────────────────────────────────────────┐
        │ ref_search_fts     → FTS5 mirror of ref_search.search_text │
        │                      (absent when SQLite lacks FTS5)       │
        └────────────────────────────────────────────────────────────┘

Tags:
    schema, ddl, sqlite, fts5, tables, content-spine

Doc-Types:
    - API Reference
    - Database Schema
"""

from __future__ import annotations

import sqlite3

from content_spine.core.logging import get_logger

logger = get_logger(__name__)

# =============================================================================
# TABLE NAMES
# =============================================================================

TABLES = {
    # --- content host stand-in ---
    "records": "content_records",
    "meta": "content_meta",
    "terms": "content_terms",
    # --- reference rows ---
    "titles": "ref_titles",
    "video_h2": "ref_video_h2",
    "model_h2": "ref_model_h2",
    "model_h2_nt": "ref_model_h2_nt",
    "search": "ref_search",
    "search_fts": "ref_search_fts",
    # --- resolution / batch state ---
    "ledger": "assignment_ledger",
    "progress": "batch_progress",
    "state": "batch_state",
    "diagnostics": "diagnostics_log",
}


# =============================================================================
# DDL STATEMENTS
# =============================================================================

DDL = {
    # =========================================================================
    # CONTENT HOST
    #
    # Published records only are walked by the lanes; status is kept so a
    # host adapter can mirror drafts without them being processed.
    # =========================================================================
    "records": """
        CREATE TABLE IF NOT EXISTS content_records (
            id INTEGER PRIMARY KEY,
            post_type TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'publish',
            title TEXT NOT NULL DEFAULT '',
            slug TEXT NOT NULL DEFAULT '',
            body TEXT NOT NULL DEFAULT ''
        )
    """,
    "records_idx_type": """
        CREATE INDEX IF NOT EXISTS idx_content_records_type
        ON content_records(post_type, status, id)
    """,
    "meta": """
        CREATE TABLE IF NOT EXISTS content_meta (
            record_id INTEGER NOT NULL,
            meta_key TEXT NOT NULL,
            meta_value TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (record_id, meta_key)
        )
    """,
    "meta_idx_key": """
        CREATE INDEX IF NOT EXISTS idx_content_meta_key
        ON content_meta(meta_key, meta_value)
    """,
    "terms": """
        CREATE TABLE IF NOT EXISTS content_terms (
            record_id INTEGER NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            name TEXT NOT NULL,
            PRIMARY KEY (record_id, name)
        )
    """,
    # =========================================================================
    # REFERENCE ROWS
    #
    # TITLES keeps one row per (video_id, keyword_slot); the page tables
    # keep one row per page_id.
    # =========================================================================
    "titles": """
        CREATE TABLE IF NOT EXISTS ref_titles (
            video_id TEXT NOT NULL,
            keyword_slot TEXT NOT NULL,     -- keyword_1 .. keyword_5
            focus_keyword TEXT NOT NULL DEFAULT '',
            seo_title TEXT NOT NULL DEFAULT '',
            tone TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT '',
            source_longtail TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (video_id, keyword_slot)
        )
    """,
    "video_h2": """
        CREATE TABLE IF NOT EXISTS ref_video_h2 (
            page_id TEXT PRIMARY KEY,
            h2_1 TEXT NOT NULL DEFAULT '',
            h2_2 TEXT NOT NULL DEFAULT '',
            h2_3 TEXT NOT NULL DEFAULT '',
            h2_4 TEXT NOT NULL DEFAULT ''
        )
    """,
    "model_h2": """
        CREATE TABLE IF NOT EXISTS ref_model_h2 (
            page_id TEXT PRIMARY KEY,
            trait TEXT NOT NULL DEFAULT '',
            h2_1 TEXT NOT NULL DEFAULT '',
            h2_2 TEXT NOT NULL DEFAULT '',
            h2_3 TEXT NOT NULL DEFAULT '',
            h2_4 TEXT NOT NULL DEFAULT ''
        )
    """,
    "model_h2_nt": """
        CREATE TABLE IF NOT EXISTS ref_model_h2_nt (
            page_id TEXT PRIMARY KEY,
            h2_1 TEXT NOT NULL DEFAULT '',
            h2_2 TEXT NOT NULL DEFAULT '',
            h2_3 TEXT NOT NULL DEFAULT '',
            h2_4 TEXT NOT NULL DEFAULT ''
        )
    """,
    # =========================================================================
    # CANDIDATE SEARCH SURFACE
    #
    # Rebuilt by the reference store on upsert. search_text is the
    # normalized concatenation of the category's text columns.
    # =========================================================================
    "search": """
        CREATE TABLE IF NOT EXISTS ref_search (
            category TEXT NOT NULL,
            ref_id TEXT NOT NULL,
            candidate_text TEXT NOT NULL DEFAULT '',
            search_text TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (category, ref_id)
        )
    """,
    # =========================================================================
    # RESOLUTION / BATCH STATE
    # =========================================================================
    "ledger": """
        CREATE TABLE IF NOT EXISTS assignment_ledger (
            mapping_key TEXT NOT NULL,      -- "{meta_key}@{category}"
            ref_id TEXT NOT NULL,
            record_id INTEGER,
            assigned_at TEXT NOT NULL,
            PRIMARY KEY (mapping_key, ref_id)
        )
    """,
    "progress": """
        CREATE TABLE IF NOT EXISTS batch_progress (
            lane TEXT PRIMARY KEY,
            last_id INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT
        )
    """,
    "state": """
        CREATE TABLE IF NOT EXISTS batch_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT
        )
    """,
    "diagnostics": """
        CREATE TABLE IF NOT EXISTS diagnostics_log (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            line TEXT NOT NULL
        )
    """,
}

FTS_DDL = """
    CREATE VIRTUAL TABLE IF NOT EXISTS ref_search_fts USING fts5(
        search_text,
        category UNINDEXED,
        ref_id UNINDEXED,
        candidate_text UNINDEXED
    )
"""


def create_fts_table(conn) -> bool:
    """Create the FTS5 mirror; returns False when SQLite lacks FTS5."""
    try:
        conn.execute(FTS_DDL)
    except sqlite3.OperationalError as exc:
        logger.warning("schema.fts_unavailable", error=str(exc))
        return False
    conn.commit()
    return True


def fts_available(conn) -> bool:
    """True when the ``ref_search_fts`` table exists on this connection."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
        (TABLES["search_fts"],),
    ).fetchone()
    return row is not None


def create_tables(conn, *, with_fts: bool = True) -> bool:
    """
    Create every Content Spine table.

    Safe to call multiple times (CREATE IF NOT EXISTS). Returns whether
    the FTS5 search mirror is available.
    """
    for _name, ddl in DDL.items():
        conn.execute(ddl)
    conn.commit()
    if not with_fts:
        return False
    return create_fts_table(conn)


__all__ = [
    "TABLES",
    "DDL",
    "FTS_DDL",
    "create_fts_table",
    "create_tables",
    "fts_available",
]
