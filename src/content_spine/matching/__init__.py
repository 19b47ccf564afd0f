"""Resolution and fuzzy matching: normalizer, safety filter, candidates, scorer, ledger, resolver."""

from content_spine.matching.candidates import CandidateStore
from content_spine.matching.ledger import AssignmentLedger, mapping_key
from content_spine.matching.resolver import Resolver
from content_spine.matching.safety import SafetyFilter, apply_safety

__all__ = [
    "AssignmentLedger",
    "CandidateStore",
    "Resolver",
    "SafetyFilter",
    "apply_safety",
    "mapping_key",
]
