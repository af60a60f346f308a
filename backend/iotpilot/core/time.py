"""Timestamp helpers.

Database columns hold naive UTC values so comparisons behave the same on
SQLite and PostgreSQL.
"""

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Naive UTC timestamp for persisted columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_nanoseconds(moment: datetime) -> int:
    """Epoch nanoseconds; naive values are treated as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000
