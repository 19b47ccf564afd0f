"""
Safety filter applied to any text before it is written back to content.

Two stages, in order:

1. **Soft replace.** Each ``(from, to)`` pair of the configured map, in
   insertion order, replaces whole-word, case-insensitive occurrences
   of ``from``. ``cam`` never matches inside ``camera`` or ``camgirl``.
   Whitespace is collapsed after all replacements.
2. **Hard block.** When a pattern is configured, a case-insensitive
   search against the softened text blocks it. Blocked text is returned
   as ``""``; callers treat empty output as "do not write this field".

The hard-block pattern is a bare Python ``re`` pattern body. It is never
wrapped in delimiters and flags come from the engine. A pattern that
does not compile disables the hard stage and is reported as a warning on
every call; it is never allowed to block legitimate content.

Examples:
    >>> f = SafetyFilter({"cam": "stream"}, r"\\bforbidden\\b")
    >>> f.apply("camgirl cam")
    'camgirl stream'
    >>> f.apply("a forbidden word")
    ''
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from content_spine.core.diagnostics import Diagnostics
from content_spine.core.errors import MalformedPatternError
from content_spine.core.logging import get_logger
from content_spine.matching.normalize import collapse_whitespace

logger = get_logger(__name__)


class SafetyFilter:
    """Compiled soft map and hard-block pattern.

    Compilation happens once per settings object; ``apply`` is otherwise
    pure.
    """

    def __init__(
        self,
        soft_map: Mapping[str, str] | None = None,
        hard_block_pattern: str = "",
        *,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self._diagnostics = diagnostics
        self._soft: list[tuple[re.Pattern[str], str]] = [
            (re.compile(rf"\b{re.escape(src)}\b", re.IGNORECASE), str(dst))
            for src, dst in (soft_map or {}).items()
            if isinstance(src, str) and src
        ]
        self.pattern = (hard_block_pattern or "").strip()
        self.pattern_error: MalformedPatternError | None = None
        self._hard: re.Pattern[str] | None = None
        if self.pattern:
            try:
                self._hard = re.compile(self.pattern, re.IGNORECASE)
            except re.error as exc:
                self.pattern_error = MalformedPatternError(self.pattern, exc)

    @classmethod
    def from_settings(cls, settings, *, diagnostics: Diagnostics | None = None) -> SafetyFilter:
        return cls(settings.soft_replace, settings.hard_block_pattern, diagnostics=diagnostics)

    def soften(self, text: str) -> str:
        for pattern, replacement in self._soft:
            text = pattern.sub(lambda _m, r=replacement: r, text)
        return collapse_whitespace(text)

    def is_blocked(self, text: str) -> bool:
        if self.pattern_error is not None:
            self._warn_malformed(self.pattern_error)
            return False
        return self._hard is not None and self._hard.search(text) is not None

    def apply(self, text: str | None) -> str:
        """Softened text, or ``""`` when the hard-block pattern matches."""
        softened = self.soften("" if text is None else str(text))
        if self.is_blocked(softened):
            return ""
        return softened

    def _warn_malformed(self, error: MalformedPatternError) -> None:
        if self._diagnostics is not None:
            self._diagnostics.record(
                "safety.pattern_invalid",
                f"WARNING: {error.message}",
                level="warning",
                pattern=error.pattern,
                cause=str(error.cause),
            )
        else:
            logger.warning("safety.pattern_invalid", pattern=error.pattern, cause=str(error.cause))


def apply_safety(text: str | None, soft_map: Mapping[str, str] | None, hard_block_pattern: str = "") -> str:
    """One-shot ``SafetyFilter(soft_map, hard_block_pattern).apply(text)``."""
    return SafetyFilter(soft_map, hard_block_pattern).apply(text)


__all__ = ["SafetyFilter", "apply_safety"]
