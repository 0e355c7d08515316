"""Timestamp helpers shared by persistence and the view-model layer.

Parsing is best-effort and will not raise; callers should expect `None`
when a stored value is missing or malformed.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from loguru import logger


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (a trailing "Z" is accepted)."""
    if not value:
        return None
    try:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except (ValueError, TypeError) as ex:
        logger.debug("Invalid timestamp {}: {}", value, ex)
        return None


def format_iso_datetime(dt: datetime | None) -> str | None:
    """Format a datetime as ISO-8601; None stays None."""
    try:
        return dt.isoformat() if dt else None
    except (ValueError, TypeError, AttributeError):
        return None


def new_identifier() -> str:
    """Random identifier for new projects and takes."""
    return uuid.uuid4().hex
