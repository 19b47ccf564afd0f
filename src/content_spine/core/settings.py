"""Typed settings for Content Spine.

Every operator-tunable value the resolver and scheduler read lives on
``ContentSpineSettings``. The settings object is validated once when it
is loaded and is then passed explicitly into the resolver, lanes and
scheduler; nothing reads ambient option storage at call time.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A batch size of ``5000`` or a confidence threshold of ``1.7`` is an
    operator mistake that should stop the process at load time rather
    than be silently clamped.

    - **Pydantic validation:** Type-checked at startup, not per tick
    - **Environment-driven:** ``CONTENT_SPINE_*`` env vars and ``.env``
    - **Sensible defaults:** Works out of the box for development

Features:
    - **ContentSpineSettings:** mapping, post types, safety, batch, scoring
    - **Comma-separated lists:** ``"video, video_page"`` -> ``["video", "video_page"]``
    - **load_settings():** wraps pydantic errors into ``ConfigurationError``

Examples:
    >>> settings = load_settings(batch_size=50, mapping_mode="smart")
    >>> settings.batch_size
    50
    >>> settings.post_types_for(BatchLane.TITLES)
    ['video']

Tags:
    settings, configuration, pydantic, environment, content-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from content_spine.core.enums import (
    BatchLane,
    IdKind,
    MappingMode,
    ModelH2Source,
    ReferenceCategory,
)
from content_spine.core.errors import ConfigurationError

DEFAULT_SOFT_REPLACE: dict[str, str] = {
    "cam girl": "live creator",
    "cam": "stream",
    "webcam": "live stream",
    "adult": "live",
    "private": "1-on-1",
    "after dark": "late night",
}

PostTypes = Annotated[list[str], NoDecode]


def csv_list(value: Any) -> list[str]:
    """Split a comma-separated value; trim, drop empties, de-duplicate in order."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else list(value)
    seen: list[str] = []
    for part in parts:
        item = str(part).strip()
        if item and item not in seen:
            seen.append(item)
    return seen


class ContentSpineSettings(BaseSettings):
    """Settings read by the resolver, lanes, scheduler and CLI.

    Fields
    ──────
    mapping_mode          : meta | smart | slug
    *_meta_key            : metadata field names holding mapped ids
    *_post_types          : content types walked by each lane
    model_h2_source       : trait | no_trait table for the model lane
    hard_block_pattern    : bare regex body; case-insensitivity is implied
    soft_replace          : ordered whole-word replacement map
    batch_size            : records per lane per tick (10-1000)
    confidence_threshold  : minimum fuzzy score to accept (0-1)
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Mapping ──────────────────────────────────────────────────
    mapping_mode: MappingMode = MappingMode.META
    video_id_meta_key: str = "_ref_video_id"
    page_id_meta_key: str = "_ref_page_id"

    # ── Post types ───────────────────────────────────────────────
    titles_post_types: PostTypes = Field(default_factory=lambda: ["video"])
    video_h2_post_types: PostTypes = Field(default_factory=lambda: ["video_page"])
    model_post_types: PostTypes = Field(default_factory=lambda: ["model"])
    model_h2_source: ModelH2Source = ModelH2Source.NO_TRAIT

    # ── Write-back ───────────────────────────────────────────────
    write_seo_meta: bool = True
    update_title: bool = False
    seo_title_meta_key: str = "_seo_title"
    seo_description_meta_key: str = "_seo_description"
    seo_focus_keyword_meta_key: str = "_seo_focus_keyword"

    # ── Safety ───────────────────────────────────────────────────
    hard_block_pattern: str = ""
    soft_replace: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SOFT_REPLACE))

    # ── Batch / scoring ──────────────────────────────────────────
    batch_size: int = Field(default=150, ge=10, le=1000)
    confidence_threshold: float = Field(default=0.35, ge=0.0, le=1.0)
    auto_backfill: bool = True
    candidate_limit: int = Field(default=10, ge=1, le=200)
    fallback_pool: int = Field(default=25, ge=25, le=1000)
    tick_interval_seconds: float = Field(default=120.0, gt=0)

    # ── Diagnostics / storage ────────────────────────────────────
    diagnostics_cap: int = Field(default=2500, ge=1)
    diagnostics_keep: int = Field(default=2000, ge=1)
    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".content-spine" / "content_spine.db",
    )
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("titles_post_types", "video_h2_post_types", "model_post_types", mode="before")
    @classmethod
    def _split_post_types(cls, value: Any) -> list[str]:
        return csv_list(value)

    @field_validator("hard_block_pattern", "video_id_meta_key", "page_id_meta_key", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("diagnostics_keep")
    @classmethod
    def _keep_within_cap(cls, value: int, info: ValidationInfo) -> int:
        cap = info.data.get("diagnostics_cap")
        if cap is not None and value > cap:
            raise ValueError("diagnostics_keep must not exceed diagnostics_cap")
        return value

    # -- derived views ---------------------------------------------------

    def meta_key_for(self, kind: IdKind) -> str:
        """Mapping meta key for an id kind; raises when unset."""
        key = self.video_id_meta_key if kind is IdKind.VIDEO else self.page_id_meta_key
        if not key:
            name = "video_id_meta_key" if kind is IdKind.VIDEO else "page_id_meta_key"
            raise ConfigurationError(f"Missing required setting: {name}", key=name)
        return key

    def post_types_for(self, lane: BatchLane) -> list[str]:
        """Post types walked by a lane; raises when the list is empty."""
        name = {
            BatchLane.TITLES: "titles_post_types",
            BatchLane.VIDEO_H2: "video_h2_post_types",
            BatchLane.MODEL: "model_post_types",
        }[lane]
        types = list(getattr(self, name))
        if not types:
            raise ConfigurationError(f"Missing required setting: {name}", key=name)
        return types

    def category_for(self, lane: BatchLane) -> ReferenceCategory:
        """Reference category a lane reads from."""
        if lane is BatchLane.TITLES:
            return ReferenceCategory.TITLES
        if lane is BatchLane.VIDEO_H2:
            return ReferenceCategory.PAGE_VIDEO
        return self.model_h2_source.category


def load_settings(**overrides: Any) -> ContentSpineSettings:
    """Load settings from env/.env plus explicit overrides.

    Raises:
        ConfigurationError: when any value fails validation.
    """
    try:
        return ContentSpineSettings(**overrides)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', exc)}",
            key=key,
            cause=exc,
        ) from exc


__all__ = [
    "DEFAULT_SOFT_REPLACE",
    "ContentSpineSettings",
    "csv_list",
    "load_settings",
]
