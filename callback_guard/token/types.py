"""Callback token datatypes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union


class TokenVersion(str, Enum):
    """Wire format version tag."""

    LEGACY = "1"
    CURRENT = "2"


@dataclass(frozen=True)
class Binding:
    """Encoded user id and keyboard nonce a token is scoped to.

    A token is either bound (``Binding``) or unbound (``None``); there is no
    half-bound state.
    """

    user: str
    nonce: str


@dataclass(frozen=True)
class WrappedToken:
    """Decoded form of a signed callback payload."""

    version: TokenVersion
    raw: str
    sig: str
    binding: Optional[Binding] = None
    expires_raw: Optional[str] = None
    expires_at: Optional[int] = None

    @property
    def user(self) -> Optional[str]:
        return self.binding.user if self.binding else None

    @property
    def nonce(self) -> Optional[str]:
        return self.binding.nonce if self.binding else None

    @property
    def is_bound(self) -> bool:
        return self.binding is not None


@dataclass(frozen=True)
class DecodeResult:
    ok: bool
    wrapped: Optional[WrappedToken] = None

    @classmethod
    def failed(cls) -> "DecodeResult":
        return cls(ok=False)

    @classmethod
    def success(cls, wrapped: WrappedToken) -> "DecodeResult":
        return cls(ok=True, wrapped=wrapped)


@dataclass(frozen=True)
class WrapOutcome:
    """How a single wrap attempt resolved.

    ``status`` is ``"wrapped"`` when a signed form was emitted and
    ``"skipped"`` when the wire value carries no signature (raw passthrough or
    surrogate token). ``reason`` is ``"oversize"`` when a richer form was
    dropped for size and ``"raw-too-long"`` when a surrogate was minted.
    """

    status: str
    bound: bool
    length: int
    raw_length: int
    reason: Optional[str] = None
    surrogate: bool = False

    @property
    def degraded(self) -> bool:
        return self.reason is not None


WrapResultCallback = Callable[[WrapOutcome], None]


@dataclass
class WrapOptions:
    """Per-call options for wrapping an action string.

    ``None`` values fall back to the wrapper's :class:`CallbackConfig`.
    """

    secret: Optional[str] = None
    user_id: Optional[Union[int, str]] = None
    keyboard_nonce: Optional[str] = None
    bind_to_user: Optional[bool] = None
    ttl_seconds: Optional[int] = None
    issued_at: Optional[float] = None
    on_result: Optional[WrapResultCallback] = None
