"""HMAC signing and verification for wrapped callback data."""

from __future__ import annotations

import base64
import hmac
import re
from hashlib import sha256
from typing import Optional

import structlog

from ..utils.time import now_seconds
from .codec import (
    FIELD_EXPIRY,
    FIELD_NONCE,
    FIELD_SIGNATURE,
    FIELD_USER,
    encode,
    encode_expiry,
)
from .types import Binding, TokenVersion, WrappedToken

logger = structlog.get_logger()

SIGNATURE_LENGTH = 10

_SIGNATURE_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def signature_base(
    raw: str,
    user: Optional[str],
    nonce: Optional[str],
    expires_raw: Optional[str],
    version: TokenVersion,
) -> str:
    """Canonical signing input; absent fields keep their position as ``""``."""
    base = [raw, user or "", nonce or ""]
    if version is TokenVersion.LEGACY:
        return "|".join(base)
    return "|".join([*base, expires_raw or ""])


def create_signature(payload: str, secret: str) -> str:
    """HMAC-SHA256 digest, base64url encoded and truncated."""
    digest = hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")[:SIGNATURE_LENGTH]


def sign(
    raw: str,
    *,
    secret: str,
    binding: Optional[Binding] = None,
    expires_at: Optional[int] = None,
    version: TokenVersion = TokenVersion.CURRENT,
) -> str:
    """Return the full wire string for ``raw``."""
    user = binding.user if binding else ""
    nonce = binding.nonce if binding else ""
    expires_raw = ""
    if version is TokenVersion.CURRENT:
        if expires_at is None:
            raise ValueError("CURRENT version tokens require an expiry")
        expires_raw = encode_expiry(expires_at)

    signature = create_signature(signature_base(raw, user, nonce, expires_raw, version), secret)
    return encode(
        raw,
        version,
        {
            FIELD_USER: user,
            FIELD_NONCE: nonce,
            FIELD_EXPIRY: expires_raw,
            FIELD_SIGNATURE: signature,
        },
    )


def _signature_matches(wrapped: WrappedToken, secret: str) -> bool:
    sig = wrapped.sig
    if len(sig) != SIGNATURE_LENGTH or not _SIGNATURE_RE.match(sig):
        return False
    expected = create_signature(
        signature_base(wrapped.raw, wrapped.user, wrapped.nonce, wrapped.expires_raw, wrapped.version),
        secret,
    )
    return hmac.compare_digest(expected.encode("ascii"), sig.encode("ascii"))


def verification_failure(wrapped: WrappedToken, secret: str, *, now: Optional[int] = None) -> Optional[str]:
    """Return why ``wrapped`` fails verification, or None when it is valid.

    The reason is for logs only; every failure must be handled the same way.
    """
    if not _signature_matches(wrapped, secret):
        return "bad_signature"

    if wrapped.version is TokenVersion.LEGACY:
        return None

    if wrapped.expires_at is None:
        return "missing_expiry"

    reference = now_seconds() if now is None else now
    if wrapped.expires_at < reference:
        return "expired"
    return None


def verify(wrapped: WrappedToken, secret: str, *, now: Optional[int] = None) -> bool:
    """Check signature and expiry of a decoded token."""
    reason = verification_failure(wrapped, secret, now=now)
    if reason is not None:
        logger.debug("Callback token rejected", reason=reason, version=wrapped.version.value)
        return False
    return True
