"""
UTC clock helpers.

Every persisted stamp (ledger rows, lane cursors, batch state) is an
ISO 8601 string in UTC; diagnostics lines use a shorter human format.
Tick ids sort by start time so ``logs tail`` and structlog output line
up without parsing.
"""

import secrets
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_now() -> str:
    """Current UTC time as stored in the ``updated_at``/``consumed_at`` columns."""
    return utc_now().isoformat()


def diagnostics_stamp(dt: datetime | None = None) -> str:
    """Format a timestamp the way diagnostics lines are prefixed."""
    dt = dt or utc_now()
    return dt.strftime("%Y-%m-%d %H:%M:%S") + " UTC"


def new_tick_id(dt: datetime | None = None) -> str:
    """``20260102T030405123-9f3a1c``: start time to the millisecond plus a random suffix."""
    dt = dt or utc_now()
    return f"{dt:%Y%m%dT%H%M%S}{dt.microsecond // 1000:03d}-{secrets.token_hex(3)}"
