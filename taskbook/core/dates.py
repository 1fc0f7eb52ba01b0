"""Parsing and normalisation of wire date/time values."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union

from .errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _in_range_utc(value: datetime) -> datetime:
    try:
        return to_utc(value)
    except OverflowError:
        raise ValidationError(f"dueDate is out of range: {value.isoformat()}") from None


def parse_due_date(raw: Union[str, date, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time into a UTC instant.

    Accepted values:
    - None or empty string (no due date)
    - YYYY-MM-DD (midnight UTC)
    - YYYY-MM-DDTHH:MM[:SS[.ffffff]][Z|+HH:MM]
    - date / datetime objects

    Raises:
        ValidationError: If the value is not a recognisable date.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return _in_range_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if not isinstance(raw, str):
        raise ValidationError(f"dueDate must be an ISO-8601 string, got {type(raw).__name__}")

    value = raw.strip()
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"dueDate is not a valid ISO-8601 date: {raw!r}") from None
    return _in_range_utc(parsed)


def parse_stored(s: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp read back from the store, None for empty values."""
    if not s:
        return None
    try:
        return to_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except (ValueError, AttributeError):
        return None


def iso(dt: Optional[datetime]) -> Optional[str]:
    return to_utc(dt).isoformat() if dt else None
