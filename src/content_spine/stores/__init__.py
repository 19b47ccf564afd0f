"""SQLite implementations of the content record and reference row stores."""

from content_spine.stores.content import SqliteContentStore
from content_spine.stores.reference import SqliteReferenceStore

__all__ = ["SqliteContentStore", "SqliteReferenceStore"]
