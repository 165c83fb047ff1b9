from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc_naive(dt: datetime) -> datetime:
    # Naive values are already UTC by convention
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into a UTC-naive datetime.

    - None / "" -> None
    - naive input ("2024-05-01T10:00:00") is taken as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped

    Raises ValueError on anything else.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return _as_utc_naive(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Millisecond ISO-8601 with trailing 'Z' (e.g. 2024-05-01T10:00:00.123Z)."""
    if dt is None:
        return None
    stamp = _as_utc_naive(dt).isoformat(timespec="milliseconds")
    return f"{stamp}Z"


def coerce_datetime(value) -> Optional[datetime]:
    """Accept a datetime or an ISO-8601 string; return UTC-naive datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc_naive(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    raise ValueError(f"invalid datetime value: {value!r}")
