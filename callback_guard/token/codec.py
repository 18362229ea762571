"""Wire codec for wrapped callback data.

Layout::

    <raw>#<version>|u=<user>|n=<nonce>|e=<expiry>|s=<signature>

Only the last ``#`` is structural, so action strings may contain ``#``
themselves. This module knows nothing about signatures or policy.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

import structlog

from .types import Binding, DecodeResult, TokenVersion, WrappedToken

logger = structlog.get_logger()

SEP_MAIN = "#"
SEP_FIELDS = "|"
SEP_KV = "="

FIELD_USER = "u"
FIELD_NONCE = "n"
FIELD_EXPIRY = "e"
FIELD_SIGNATURE = "s"
FIELD_ORDER = (FIELD_USER, FIELD_NONCE, FIELD_EXPIRY, FIELD_SIGNATURE)

MAX_CALLBACK_BYTES = 64

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
# 13 base36 digits cover any epoch second a token can carry.
_BASE36_RE = re.compile(r"[0-9a-z]{1,13}")
_NON_DIGITS_RE = re.compile(r"\D+")
_VERSIONS = {version.value: version for version in TokenVersion}


def byte_length(value: str) -> int:
    """Length of ``value`` as the transport counts it (UTF-8 bytes)."""
    return len(value.encode("utf-8"))


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding expects a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def safe_base36(value: object) -> str:
    """Base36 of the digits found in ``value``; empty when there are none."""
    try:
        digits_only = _NON_DIGITS_RE.sub("", str(value))
        return to_base36(int(digits_only)) if digits_only else ""
    except ValueError:
        # past the interpreter's int/str digit limit
        return ""


def encode_expiry(epoch_seconds: float) -> str:
    return to_base36(max(0, int(epoch_seconds)))


def decode_expiry(value: Optional[str]) -> Optional[int]:
    """Decode a base36 expiry; malformed input yields None instead of raising."""
    if not value or not _BASE36_RE.fullmatch(value):
        return None
    return int(value, 36)


def encode(raw: str, version: TokenVersion, fields: Mapping[str, Optional[str]]) -> str:
    """Serialize ``raw`` and metadata fields; empty fields are omitted."""
    parts = [TokenVersion(version).value]
    for key in FIELD_ORDER:
        value = fields.get(key)
        if value:
            parts.append(f"{key}{SEP_KV}{value}")
    return f"{raw}{SEP_MAIN}{SEP_FIELDS.join(parts)}"


def try_decode(data: str) -> DecodeResult:
    """Parse wire data; returns a failed result for anything unrecognized."""
    separator_index = data.rfind(SEP_MAIN)
    if separator_index < 0:
        return DecodeResult.failed()

    raw = data[:separator_index]
    fields = data[separator_index + 1 :].split(SEP_FIELDS)
    version = _VERSIONS.get(fields[0])
    if version is None:
        return DecodeResult.failed()

    values: dict[str, str] = {}
    for field in fields[1:]:
        key, _, value = field.partition(SEP_KV)
        if key in FIELD_ORDER:
            values[key] = value

    signature = values.get(FIELD_SIGNATURE, "")
    if not signature:
        return DecodeResult.failed()

    user = values.get(FIELD_USER, "")
    nonce = values.get(FIELD_NONCE, "")
    binding: Optional[Binding] = None
    if user and nonce:
        binding = Binding(user=user, nonce=nonce)
    elif user or nonce:
        logger.debug("Discarding partial callback binding", has_user=bool(user), has_nonce=bool(nonce))

    expires_raw = values.get(FIELD_EXPIRY) or None
    return DecodeResult.success(
        WrappedToken(
            version=version,
            raw=raw,
            sig=signature,
            binding=binding,
            expires_raw=expires_raw,
            expires_at=decode_expiry(expires_raw) if version is TokenVersion.CURRENT else None,
        )
    )
