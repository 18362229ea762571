"""Utility helpers for short identifiers and time operations."""

from .ids import create_short_callback_id, create_short_id, is_short_callback_id, parse_short_callback_id
from .time import now_seconds, to_epoch_seconds, utc_now

__all__ = [
    "create_short_id",
    "create_short_callback_id",
    "parse_short_callback_id",
    "is_short_callback_id",
    "utc_now",
    "now_seconds",
    "to_epoch_seconds",
]
