"""
Time helpers.

All persisted timestamps are naive UTC so comparisons behave the same on
PostgreSQL and SQLite.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC datetime."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)
