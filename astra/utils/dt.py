"""
UTC datetime helpers

SQLite drops tzinfo on read, PostgreSQL keeps it; everything inside the
services is normalized to aware UTC through these helpers.
"""

from datetime import date, datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_date(value: datetime) -> date:
    """Calendar date of an instant in UTC"""
    return as_utc(value).date()


def date_key(value: date) -> str:
    """YYYY-MM-DD string used in streak history"""
    return value.isoformat()
