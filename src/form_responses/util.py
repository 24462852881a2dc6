from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_timestamp(ts: str) -> datetime:
    """Parse an ISO-8601 string (trailing ``Z`` allowed) into an aware UTC datetime.

    Raises ``ValueError`` when the string is not a timestamp.
    """
    return ensure_utc(datetime.fromisoformat(ts.strip().replace("Z", "+00:00")))


def format_timestamp(dt: Optional[datetime], fmt: str) -> str:
    if dt is None:
        return ""
    return ensure_utc(dt).strftime(fmt)
