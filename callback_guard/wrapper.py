"""Size-bounded wrapping of callback actions.

Wrapping degrades from the richest form to the smallest until the result
fits the transport ceiling:

1. signed and bound to the user,
2. signed without binding,
3. the bare action, unsigned,
4. a surrogate token whose payload lives in a :class:`SurrogateStore`.
"""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import datetime
from typing import Any, Optional

import structlog

from .config import CallbackConfig
from .surrogate.storage import SurrogatePayload, SurrogateStore
from .token.binding import resolve_binding
from .token.codec import byte_length
from .token.signer import sign
from .token.types import WrapOptions, WrapOutcome
from .utils.ids import create_short_callback_id, is_short_callback_id
from .utils.time import from_epoch_seconds, to_epoch_seconds

logger = structlog.get_logger()


class CallbackWrapper:
    """Produces the shortest valid wire value for an action string.

    Surrogate entries are written by a task on the running event loop, so
    call ``wrap`` from async code when a store is configured. Called without
    a running loop, ``wrap`` still returns the surrogate token but logs an
    error and writes nothing, and that token will never resolve.
    """

    def __init__(self, config: CallbackConfig, store: Optional[SurrogateStore] = None) -> None:
        self.config = config
        self.store = store
        self._pending: set[asyncio.Task] = set()

    def is_surrogate(self, data: str) -> bool:
        return is_short_callback_id(data, self.config.surrogate_prefix)

    def wrap(self, action: str, options: Optional[WrapOptions] = None, **overrides: Any) -> str:
        """Return wire data for ``action``; see the module docstring for the cascade."""
        opts = options or WrapOptions()
        if overrides:
            opts = dataclasses.replace(opts, **overrides)

        secret = opts.secret or self.config.secret
        ttl = opts.ttl_seconds if opts.ttl_seconds is not None else self.config.ttl_seconds
        expires_at = to_epoch_seconds(opts.issued_at) + max(1, int(ttl))
        bind = self.config.bind_by_default if opts.bind_to_user is None else opts.bind_to_user
        binding = resolve_binding(opts.user_id, opts.keyboard_nonce) if bind else None

        limit = self.config.max_bytes
        raw_length = byte_length(action)

        bound_form: Optional[str] = None
        if binding is not None:
            bound_form = sign(action, secret=secret, binding=binding, expires_at=expires_at)
            if byte_length(bound_form) <= limit:
                return self._report(opts, bound_form, WrapOutcome("wrapped", True, byte_length(bound_form), raw_length))

        unbound_form = sign(action, secret=secret, expires_at=expires_at)
        if byte_length(unbound_form) <= limit:
            reason = "oversize" if binding is not None else None
            return self._report(
                opts,
                unbound_form,
                WrapOutcome("wrapped", False, byte_length(unbound_form), raw_length, reason),
            )

        if raw_length <= limit:
            return self._report(opts, action, WrapOutcome("skipped", False, raw_length, raw_length, "oversize"))

        token = create_short_callback_id(self.config.surrogate_prefix, length=self.config.surrogate_id_length)
        payload = SurrogatePayload(raw=action, wrapped=bound_form or unbound_form)
        self._persist(token, payload, from_epoch_seconds(expires_at))
        return self._report(
            opts,
            token,
            WrapOutcome("skipped", False, byte_length(token), raw_length, "raw-too-long", surrogate=True),
        )

    def _report(self, opts: WrapOptions, wire: str, outcome: WrapOutcome) -> str:
        if outcome.degraded:
            logger.warning(
                "Callback data degraded",
                status=outcome.status,
                reason=outcome.reason,
                bound=outcome.bound,
                length=outcome.length,
                raw_length=outcome.raw_length,
            )
        if opts.on_result is not None:
            opts.on_result(outcome)
        return wire

    def _persist(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        if self.store is None:
            logger.error("No surrogate store configured; callback token will not resolve", token=token)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("No running event loop; surrogate entry not persisted", token=token)
            return
        task = loop.create_task(self._write_surrogate(token, payload, expires_at))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_surrogate(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        assert self.store is not None
        try:
            await self.store.put(token, payload, expires_at)
        except Exception:
            logger.exception("Failed to persist callback surrogate", token=token)

    async def drain(self) -> None:
        """Wait for in-flight surrogate writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))


def wrap_callback_data(action: str, *, secret: str, **options: Any) -> str:
    """Stateless wrap with default settings and no surrogate store."""
    return CallbackWrapper(CallbackConfig(secret=secret)).wrap(action, **options)
