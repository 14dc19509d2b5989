"""
Time sources. Services take ``now`` as an argument; these are the defaults.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utcnow() -> datetime:
    """Current UTC time without tzinfo, as stored in DateTime columns."""
    return now_utc().replace(tzinfo=None)
