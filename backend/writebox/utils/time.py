"""Time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def iso_now() -> str:
    """Return the current UTC time as an ISO-8601 string with milliseconds."""
    return to_iso(utc_now())


def to_iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds")


def parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def next_after(previous: str | None) -> str:
    """Return an ISO timestamp strictly later than ``previous``."""
    current = utc_now()
    earlier = parse_iso(previous)
    if earlier is not None and current <= earlier:
        current = earlier + timedelta(milliseconds=1)
    return to_iso(current)


__all__ = ["now_ms", "utc_now", "iso_now", "to_iso", "parse_iso", "next_after"]
