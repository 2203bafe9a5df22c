"""Timestamp helpers shared by the recorders and exporters."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Ensure datetime is in UTC timezone.

    Args:
        dt: Input datetime.

    Returns:
        Datetime converted to UTC.

    Raises:
        ValueError: If datetime is naive (no timezone info).
    """
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Like ``ensure_utc``, but a naive datetime is taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_timestamp(dt: Optional[datetime] = None) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Example: ``2024-03-01T12:30:05.123Z``.
    """
    dt = ensure_utc(dt) if dt is not None else utc_now()
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def file_timestamp(dt: Optional[datetime] = None) -> str:
    """ISO timestamp safe for use in filenames (``:`` and ``.`` become ``-``)."""
    return iso_timestamp(dt).replace(":", "-").replace(".", "-")
