"""
Codec for the lifecycle timestamp stored in resource tags.

Timestamps are written as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC with second
precision. Anything else is treated as unset.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_TIMESTAMP_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z$")


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime, truncated to seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(moment: datetime) -> str:
    """
    Render a point in time in the fixed tag format.

    Args:
        moment: Datetime to render. Naive values are taken to be UTC.

    Returns:
        Zero-padded UTC timestamp, e.g. ``2024-03-01T09:05:00Z``
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parse a tag value written by :func:`format_timestamp`.

    Args:
        text: Raw tag value

    Returns:
        Aware UTC datetime, or None if the value does not match the format
        exactly or names an impossible date.
    """
    if not isinstance(text, str) or not _TIMESTAMP_RE.match(text):
        return None

    try:
        parsed = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        return None

    return parsed.replace(tzinfo=timezone.utc)


def add_days(moment: datetime, days: int) -> datetime:
    """Shift a datetime by whole calendar days (negative values go back)."""
    return moment + timedelta(days=days)


def to_marker_precision(moment: datetime) -> datetime:
    """Aware UTC datetime truncated to whole seconds. Naive values are taken to be UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(microsecond=0)
