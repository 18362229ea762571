"""Configuration for callback wrapping and verification."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .token.codec import MAX_CALLBACK_BYTES, SEP_MAIN

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class CallbackConfig:
    """Process-wide callback settings; read-only once the bot is running."""

    secret: str
    ttl_seconds: int = 3600
    max_bytes: int = MAX_CALLBACK_BYTES
    surrogate_prefix: str = "cbm"
    surrogate_id_length: int = 10
    bind_by_default: bool = True

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("A callback signing secret is required.")
        if self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {self.ttl_seconds}")
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        if not self.surrogate_prefix or SEP_MAIN in self.surrogate_prefix or ":" in self.surrogate_prefix:
            raise ValueError(f"Invalid surrogate prefix {self.surrogate_prefix!r}")

    @classmethod
    def from_env(cls, *, secret: Optional[str] = None) -> "CallbackConfig":
        """Build config from ``CALLBACK_*`` variables.

        The signing secret falls back to ``BOT_TOKEN`` when
        ``CALLBACK_SIGN_SECRET`` is unset.
        """
        resolved_secret = secret or os.getenv("CALLBACK_SIGN_SECRET") or os.getenv("BOT_TOKEN", "")
        bind = os.getenv("CALLBACK_BIND_TO_USER", "1").strip().lower() in _TRUE_VALUES
        return cls(
            secret=resolved_secret,
            ttl_seconds=int(os.getenv("CALLBACK_TTL_SECONDS", "3600")),
            surrogate_prefix=os.getenv("CALLBACK_SURROGATE_PREFIX", "cbm").strip(),
            bind_by_default=bind,
        )
