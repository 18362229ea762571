"""Press-time decoding and verification of callback data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from .config import CallbackConfig
from .surrogate.storage import SURROGATE_ACTION, SurrogatePayload, SurrogateStore
from .token.binding import Presser, verify_binding
from .token.codec import try_decode
from .token.signer import verification_failure
from .token.types import WrappedToken
from .utils.ids import is_short_callback_id

logger = structlog.get_logger()

PASSTHROUGH = "passthrough"
VERIFIED = "verified"
INVALID = "invalid"


@dataclass(frozen=True)
class ResolvedCallback:
    """Outcome of resolving one button press.

    ``passthrough`` means the data was never wrapped and is handed on
    unchanged. ``invalid`` covers bad signatures, expiry, binding mismatch and
    missing surrogates alike; callers show one "button expired" notice for
    all of them and ``reason`` is only for logs.
    """

    status: str
    action: str
    wrapped: Optional[WrappedToken] = None
    reason: Optional[str] = None
    surrogate: bool = False

    @property
    def is_valid(self) -> bool:
        return self.status != INVALID


class CallbackResolver:
    """Turns incoming callback data back into the action it stands for."""

    def __init__(self, config: CallbackConfig, store: Optional[SurrogateStore] = None) -> None:
        self.config = config
        self.store = store

    async def resolve(self, data: str, presser: Optional[Presser] = None) -> ResolvedCallback:
        if not is_short_callback_id(data, self.config.surrogate_prefix):
            return self.resolve_wire(data, presser)

        payload = await self._load_surrogate(data)
        if payload is None:
            return ResolvedCallback(INVALID, action=data, reason="surrogate_missing", surrogate=True)
        if not try_decode(payload.wrapped).ok:
            logger.error("Stored callback surrogate is not wrapped data", token=data)
            return ResolvedCallback(INVALID, action=payload.raw, reason="surrogate_corrupt", surrogate=True)
        return self.resolve_wire(payload.wrapped, presser, surrogate=True)

    def resolve_wire(
        self,
        data: str,
        presser: Optional[Presser] = None,
        *,
        surrogate: bool = False,
    ) -> ResolvedCallback:
        """Decode and verify inline wire data (no surrogate lookup)."""
        decoded = try_decode(data)
        if not decoded.ok:
            return ResolvedCallback(PASSTHROUGH, action=data, surrogate=surrogate)

        wrapped = decoded.wrapped
        assert wrapped is not None
        reason = verification_failure(wrapped, self.config.secret)
        if reason is None and not verify_binding(wrapped, presser):
            reason = "binding_mismatch"
        if reason is not None:
            logger.info(
                "Rejected callback data",
                reason=reason,
                version=wrapped.version.value,
                bound=wrapped.is_bound,
                surrogate=surrogate,
            )
            return ResolvedCallback(INVALID, action=wrapped.raw, wrapped=wrapped, reason=reason, surrogate=surrogate)

        return ResolvedCallback(VERIFIED, action=wrapped.raw, wrapped=wrapped, surrogate=surrogate)

    async def _load_surrogate(self, token: str) -> Optional[SurrogatePayload]:
        if self.store is None:
            logger.warning("Surrogate callback received without a store", token=token)
            return None
        try:
            record = await self.store.get(token)
        except Exception:
            logger.exception("Failed to load callback surrogate payload", token=token)
            return None

        if record is None or record.action != SURROGATE_ACTION:
            return None

        if record.is_expired():
            try:
                await self.store.delete(token)
            except Exception:
                logger.debug("Failed to delete expired callback surrogate", token=token, exc_info=True)
            return None

        return record.payload
