"""
UTC helpers for row bookkeeping columns.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)
