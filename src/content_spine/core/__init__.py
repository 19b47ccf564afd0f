"""
Core primitives shared by matching, stores, batch and the CLI.

Errors, logging, settings, protocols, the SQLite adapter and schema,
enums, value objects, the diagnostics sink and batch progress.
"""

from content_spine.core.enums import (
    BatchLane,
    IdKind,
    MappingMode,
    ModelH2Source,
    ReferenceCategory,
    ResolutionMethod,
    SchedulerState,
)
from content_spine.core.errors import (
    CandidateStoreFault,
    ConfigurationError,
    ContentSpineError,
    MalformedPatternError,
    ResolutionUnresolved,
    StorageFault,
    TickInFlightError,
    WriteBackFault,
)
from content_spine.core.settings import ContentSpineSettings, load_settings

__all__ = [
    "BatchLane",
    "IdKind",
    "MappingMode",
    "ModelH2Source",
    "ReferenceCategory",
    "ResolutionMethod",
    "SchedulerState",
    "CandidateStoreFault",
    "ConfigurationError",
    "ContentSpineError",
    "MalformedPatternError",
    "ResolutionUnresolved",
    "StorageFault",
    "TickInFlightError",
    "WriteBackFault",
    "ContentSpineSettings",
    "load_settings",
]
