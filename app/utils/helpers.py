"""
Helper utilities
"""

from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read back from the database to aware UTC

    SQLite drops tzinfo on the way in, so naive values are UTC wall time.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when an optional expiry lies in the past"""
    if expires_at is None:
        return False
    return as_utc(expires_at) <= (now or utcnow())
