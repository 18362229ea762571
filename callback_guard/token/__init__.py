"""Callback token codec, signing and user binding."""

from .binding import Presser, generate_keyboard_nonce, resolve_binding, verify_binding, verify_bound
from .codec import MAX_CALLBACK_BYTES, byte_length, encode, try_decode
from .signer import sign, verification_failure, verify
from .types import Binding, DecodeResult, TokenVersion, WrapOptions, WrapOutcome, WrappedToken

__all__ = [
    "MAX_CALLBACK_BYTES",
    "Binding",
    "DecodeResult",
    "Presser",
    "TokenVersion",
    "WrapOptions",
    "WrapOutcome",
    "WrappedToken",
    "byte_length",
    "encode",
    "generate_keyboard_nonce",
    "resolve_binding",
    "sign",
    "try_decode",
    "verification_failure",
    "verify",
    "verify_binding",
    "verify_bound",
]
