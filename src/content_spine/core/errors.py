"""
Structured error types for Content Spine.

Every failure inside the resolution and batch pipeline is scoped to the
smallest unit it affects: one record, one candidate source, or one lane
page. The error types below carry enough metadata for the scheduler to
decide that scope and for the diagnostics sink to explain it.

Manifesto:
    - **Typed hierarchy:** One type per failure scope, not generic Exception
    - **Nothing fatal:** The scheduler catches every type at its scope
    - **Rich context:** Lane, record, reference id, mapping key travel with
      the error into structured logs
    - **Error chaining:** The storage-layer exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                    ContentSpineError                         │
        │            (category, context, cause)                        │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigurationError      skip affected operation (CONFIG)    │
        │  MalformedPatternError   safety filter degrades (CONFIG)     │
        │  CandidateStoreFault     fall back / fail record (STORAGE)   │
        │  StorageFault            abort one lane page (STORAGE)       │
        │  WriteBackFault          log, next record (WRITE_BACK)       │
        │  ResolutionUnresolved    expected terminal state (RESOLUTION)│
        │  TickInFlightError       reject overlapping tick (SCHEDULER) │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = CandidateStoreFault("fts query failed")
    >>> err.with_context(lane="titles", record_id=42).context.record_id
    42
    >>> err.category
    <ErrorCategory.STORAGE: 'STORAGE'>

Tags:
    error-handling, exception-hierarchy, error-context, content-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for routing diagnostics lines."""

    CONFIG = "CONFIG"
    STORAGE = "STORAGE"
    WRITE_BACK = "WRITE_BACK"
    RESOLUTION = "RESOLUTION"
    SCHEDULER = "SCHEDULER"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        lane: Batch lane being processed (``titles``, ``video_h2``, ``model``)
        record_id: Content record identity
        category: Reference category value
        reference_id: Reference row identifier involved
        mapping_key: Assignment ledger scope
        metadata: Additional key-value pairs
    """

    lane: str | None = None
    record_id: int | None = None
    category: str | None = None
    reference_id: str | None = None
    mapping_key: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("lane", "record_id", "category", "reference_id", "mapping_key"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ContentSpineError(Exception):
    """
    Base exception for all Content Spine errors.

    Subclasses set ``default_category``; instances carry an
    :class:`ErrorContext` and an optional chained ``cause``.

    Examples:
        >>> error = ContentSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'ContentSpineError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ContentSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise WriteBackFault("update rejected").with_context(
                lane="titles", record_id=12
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(ContentSpineError):
    """
    A required setting is missing or a setting value is invalid.

    Raised by ``load_settings()`` for invalid values (fail fast) and at
    the point of use for empty post-type lists or meta-key names, where
    the affected lane or tool is skipped.
    """

    default_category = ErrorCategory.CONFIG

    def __init__(self, message: str, *, key: str | None = None, **kwargs: Any):
        self.key = key
        super().__init__(message, **kwargs)


class MalformedPatternError(ConfigurationError):
    """The operator-supplied hard-block pattern does not compile."""

    def __init__(self, pattern: str, cause: Exception | None = None):
        self.pattern = pattern
        super().__init__(
            f"Hard-block pattern is invalid and will not be enforced: {pattern!r}",
            key="hard_block_pattern",
            cause=cause,
        )


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageFault(ContentSpineError):
    """A content or reference store read failed; aborts one lane page."""

    default_category = ErrorCategory.STORAGE


class CandidateStoreFault(StorageFault):
    """
    Candidate retrieval failed.

    Raised for the accelerated (index) path, in which case the fallback
    path runs, and for the fallback path, in which case the resolution
    attempt fails for this record only.
    """


class WriteBackFault(ContentSpineError):
    """The content store rejected a metadata or body write."""

    default_category = ErrorCategory.WRITE_BACK


# =============================================================================
# RESOLUTION / SCHEDULER
# =============================================================================


class ResolutionUnresolved(ContentSpineError):
    """
    Expected terminal state: no reference row could be resolved.

    Not a failure. Raised only by callers that want exception semantics
    (``Resolution.require()``); lane passes record an unresolved record
    as a ``lane.unresolved`` diagnostic and move on.
    """

    default_category = ErrorCategory.RESOLUTION

    def __init__(self, record_id: int, trace: list[str] | tuple[str, ...]):
        self.record_id = record_id
        self.trace = tuple(trace)
        super().__init__(
            f"Record {record_id} could not be resolved ({' > '.join(self.trace) or 'no trace'})",
            context=ErrorContext(record_id=record_id),
        )


class TickInFlightError(ContentSpineError):
    """A tick was requested while another tick is still running."""

    default_category = ErrorCategory.SCHEDULER


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ContentSpineError",
    "ConfigurationError",
    "MalformedPatternError",
    "StorageFault",
    "CandidateStoreFault",
    "WriteBackFault",
    "ResolutionUnresolved",
    "TickInFlightError",
]
