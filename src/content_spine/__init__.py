"""
Content Spine - reference-row resolution and batched content write-back.

Maps website content records to externally supplied reference rows
(short text snippets keyed by an opaque identifier) and applies the
resolved rows to record metadata and body content in resumable batches.

Packages:
- content_spine.core: errors, logging, settings, storage primitives
- content_spine.matching: normalizer, safety filter, candidate search,
  scorer, assignment ledger, resolver
- content_spine.stores: SQLite content and reference stores
- content_spine.batch: lanes, scheduler, trigger, backfill tools
- content_spine.cli: ``content-spine`` command line
"""

__version__ = "0.1.0"
