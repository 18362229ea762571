"""Per-user binding material for callback tokens.

A bound token carries the presser's encoded user id and a short keyboard
nonce. Rotating the stored nonce voids every bound button issued before the
rotation. Users without a stored nonce get a deterministic one derived from
their id; that fallback cannot be rotated and is not a secret, so it only
guards against buttons being pressed by a different user.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional, Union

import structlog

from .codec import SEP_FIELDS, SEP_KV, SEP_MAIN, safe_base36
from .signer import verify
from .types import Binding, WrappedToken

logger = structlog.get_logger()

NONCE_LENGTH = 10
FALLBACK_NONCE_LENGTH = 16
FALLBACK_NONCE_PREFIX = "callback-nonce:"

_RESERVED = (SEP_MAIN, SEP_FIELDS, SEP_KV)

UserId = Union[int, str]


@dataclass(frozen=True)
class Presser:
    """Identity of the user who pressed (or is shown) a button."""

    user_id: UserId
    keyboard_nonce: Optional[str] = None


def encode_user(user_id: UserId) -> str:
    return safe_base36(user_id)


def encode_nonce(keyboard_nonce: str) -> str:
    return str(keyboard_nonce).replace("-", "")[:NONCE_LENGTH]


def derive_fallback_nonce(user_id: UserId) -> str:
    digits = "".join(ch for ch in str(user_id) if ch.isdigit())
    digest = hashlib.sha256(f"{FALLBACK_NONCE_PREFIX}{digits}".encode("utf-8")).hexdigest()
    return digest[:FALLBACK_NONCE_LENGTH]


def generate_keyboard_nonce() -> str:
    """Fresh random nonce to store on a user record."""
    return secrets.token_urlsafe(12)


def resolve_binding(user_id: Optional[UserId], keyboard_nonce: Optional[str] = None) -> Optional[Binding]:
    """Binding material for ``user_id``, or None when the user cannot be bound."""
    if user_id is None:
        return None
    user = encode_user(user_id)
    if not user:
        return None

    nonce = encode_nonce(keyboard_nonce) if keyboard_nonce else ""
    if not nonce:
        nonce = derive_fallback_nonce(user_id)
    if any(sep in nonce for sep in _RESERVED):
        logger.warning("Keyboard nonce contains reserved characters; binding skipped")
        return None
    return Binding(user=user, nonce=nonce)


def verify_binding(wrapped: WrappedToken, presser: Optional[Presser]) -> bool:
    """True when an unbound token, or a bound one matching the presser."""
    if wrapped.binding is None:
        return True
    if presser is None:
        return False
    expected = resolve_binding(presser.user_id, presser.keyboard_nonce)
    return expected is not None and expected == wrapped.binding


def verify_bound(
    wrapped: WrappedToken,
    secret: str,
    presser: Optional[Presser],
    *,
    now: Optional[int] = None,
) -> bool:
    """Signature, expiry and binding check against the presser's own identity."""
    if not verify(wrapped, secret, now=now):
        return False
    if not verify_binding(wrapped, presser):
        logger.info("Callback binding mismatch", bound_user=wrapped.user)
        return False
    return True
