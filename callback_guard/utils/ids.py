"""Short random identifiers for callback surrogate tokens."""

from __future__ import annotations

import secrets
from typing import Optional

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
DEFAULT_LENGTH = 8
DEFAULT_DELIMITER = ":"


def _alphabet_valid(alphabet: str) -> bool:
    return bool(alphabet) and len(set(alphabet)) == len(alphabet)


def create_short_id(length: int = DEFAULT_LENGTH, alphabet: str = BASE36_ALPHABET) -> str:
    """Return a random identifier drawn from ``alphabet``.

    Invalid alphabets (empty or with repeated symbols) fall back to base36.
    """
    if length <= 0:
        raise ValueError("Short ID length must be a positive integer")
    if not _alphabet_valid(alphabet):
        alphabet = BASE36_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))


def create_short_callback_id(
    prefix: str,
    *,
    length: int = DEFAULT_LENGTH,
    alphabet: str = BASE36_ALPHABET,
    delimiter: str = DEFAULT_DELIMITER,
) -> str:
    """Return ``<prefix><delimiter><random-id>``."""
    return f"{prefix}{delimiter}{create_short_id(length, alphabet)}"


def parse_short_callback_id(value: str, delimiter: str = DEFAULT_DELIMITER) -> Optional[tuple[str, str]]:
    """Split a short callback id into ``(prefix, id)`` or return None."""
    if delimiter not in value:
        return None
    parts = value.split(delimiter)
    if len(parts) != 2:
        return None
    prefix, short_id = parts
    if not prefix or not short_id:
        return None
    return prefix, short_id


def is_short_callback_id(value: str, prefix: str, delimiter: str = DEFAULT_DELIMITER) -> bool:
    parsed = parse_short_callback_id(value, delimiter)
    return parsed is not None and parsed[0] == prefix
