"""UTC time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

# Anything above this is treated as a millisecond timestamp.
_MILLIS_THRESHOLD = 1_000_000_000_000


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def now_seconds() -> int:
    """Return the current Unix time truncated to whole seconds."""
    return int(utc_now().timestamp())


def to_epoch_seconds(issued_at: Optional[float] = None) -> int:
    """Normalize a seconds or milliseconds timestamp to whole epoch seconds."""
    if issued_at is None:
        return now_seconds()
    if issued_at > _MILLIS_THRESHOLD:
        return int(issued_at // 1000)
    return int(issued_at)


def from_epoch_seconds(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
