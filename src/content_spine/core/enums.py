"""
Shared enums for Content Spine.

``ReferenceCategory`` is a closed set: each variant carries its table,
id column, text columns and the id kind used to canonicalize numeric
identifiers, so no code path dispatches on free-form category strings.

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from enum import Enum


class IdKind(str, Enum):
    """
    Kind of reference identifier.

    Purely numeric identifiers are canonicalized with a kind-specific,
    zero-padded prefix.
    """

    VIDEO = "video"
    PAGE = "page"

    @property
    def numeric_format(self) -> str:
        return "video_%04d" if self is IdKind.VIDEO else "page_%05d"


class ReferenceCategory(str, Enum):
    """Source category of a reference row."""

    TITLES = "titles"
    PAGE_VIDEO = "page_video"
    PAGE_MODEL_TRAIT = "page_model_trait"
    PAGE_MODEL_NOTRAIT = "page_model_notrait"

    @property
    def table(self) -> str:
        return _CATEGORY_TABLES[self]

    @property
    def id_column(self) -> str:
        return "video_id" if self is ReferenceCategory.TITLES else "page_id"

    @property
    def kind(self) -> IdKind:
        return IdKind.VIDEO if self is ReferenceCategory.TITLES else IdKind.PAGE

    @property
    def columns(self) -> tuple[str, ...]:
        """Data columns (excluding the id column) in storage order."""
        return _CATEGORY_COLUMNS[self]

    @property
    def text_columns(self) -> tuple[str, ...]:
        """Columns whose values make up a row's searchable text."""
        return _CATEGORY_TEXT_COLUMNS[self]

    @property
    def multi_row(self) -> bool:
        """TITLES keeps one storage row per keyword slot."""
        return self is ReferenceCategory.TITLES


H2_COLUMNS = ("h2_1", "h2_2", "h2_3", "h2_4")
TITLE_SLOTS = ("keyword_1", "keyword_2", "keyword_3", "keyword_4", "keyword_5")

_CATEGORY_TABLES = {
    ReferenceCategory.TITLES: "ref_titles",
    ReferenceCategory.PAGE_VIDEO: "ref_video_h2",
    ReferenceCategory.PAGE_MODEL_TRAIT: "ref_model_h2",
    ReferenceCategory.PAGE_MODEL_NOTRAIT: "ref_model_h2_nt",
}

_CATEGORY_COLUMNS = {
    ReferenceCategory.TITLES: (
        "keyword_slot",
        "focus_keyword",
        "seo_title",
        "tone",
        "category",
        "source_longtail",
    ),
    ReferenceCategory.PAGE_VIDEO: H2_COLUMNS,
    ReferenceCategory.PAGE_MODEL_TRAIT: ("trait",) + H2_COLUMNS,
    ReferenceCategory.PAGE_MODEL_NOTRAIT: H2_COLUMNS,
}

_CATEGORY_TEXT_COLUMNS = {
    ReferenceCategory.TITLES: ("focus_keyword", "seo_title", "source_longtail"),
    ReferenceCategory.PAGE_VIDEO: H2_COLUMNS,
    ReferenceCategory.PAGE_MODEL_TRAIT: ("trait",) + H2_COLUMNS,
    ReferenceCategory.PAGE_MODEL_NOTRAIT: H2_COLUMNS,
}

# Column widths applied when reference text is cleaned on upsert.
COLUMN_WIDTHS = {
    "keyword_slot": 16,
    "focus_keyword": 128,
    "trait": 128,
    "tone": 64,
    "category": 64,
}
DEFAULT_COLUMN_WIDTH = 255


class MappingMode(str, Enum):
    """How the resolver reads a record's mapping."""

    META = "meta"  # authoritative meta, then fuzzy auto-backfill
    SMART = "smart"  # authoritative meta with fuzzy assist before slug
    SLUG = "slug"  # slug-based


class ModelH2Source(str, Enum):
    """Which model heading table feeds the model lane."""

    TRAIT = "trait"
    NO_TRAIT = "no_trait"

    @property
    def category(self) -> ReferenceCategory:
        if self is ModelH2Source.TRAIT:
            return ReferenceCategory.PAGE_MODEL_TRAIT
        return ReferenceCategory.PAGE_MODEL_NOTRAIT


class BatchLane(str, Enum):
    """Unit of batch progress; one cursor per lane. Declared in tick order."""

    TITLES = "titles"
    VIDEO_H2 = "video_h2"
    MODEL = "model"

    @property
    def kind(self) -> IdKind:
        return IdKind.VIDEO if self is BatchLane.TITLES else IdKind.PAGE


class ResolutionMethod(str, Enum):
    """How a record's reference id was obtained."""

    AUTHORITATIVE = "authoritative"
    FUZZY = "fuzzy"
    SLUG = "slug"
    UNRESOLVED = "unresolved"


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


__all__ = [
    "IdKind",
    "ReferenceCategory",
    "H2_COLUMNS",
    "TITLE_SLOTS",
    "COLUMN_WIDTHS",
    "DEFAULT_COLUMN_WIDTH",
    "MappingMode",
    "ModelH2Source",
    "BatchLane",
    "ResolutionMethod",
    "SchedulerState",
]
