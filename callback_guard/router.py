"""Dispatch of resolved callbacks to action handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import structlog

from .resolver import ResolvedCallback

logger = structlog.get_logger()

ActionHandler = Callable[[ResolvedCallback, Any], Awaitable[Any]]


@dataclass
class ActionRouter:
    """Maps action prefixes to handlers.

    Build it once at startup and share it; ``register`` is meant for that
    construction phase only.
    """

    routes: Dict[str, ActionHandler] = field(default_factory=dict)
    invalid_handler: Optional[ActionHandler] = None

    @classmethod
    def from_mapping(
        cls,
        routes: Mapping[str, ActionHandler],
        *,
        invalid_handler: Optional[ActionHandler] = None,
    ) -> "ActionRouter":
        return cls(routes=dict(routes), invalid_handler=invalid_handler)

    def register(self, prefix: str, handler: ActionHandler) -> None:
        if not prefix:
            raise ValueError("Route prefix must be non-empty")
        self.routes[prefix] = handler

    def match(self, action: str) -> Optional[ActionHandler]:
        """Handler with the longest prefix matching ``action``."""
        best: Optional[str] = None
        for prefix in self.routes:
            if action.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix
        return self.routes[best] if best is not None else None

    async def dispatch(self, resolved: ResolvedCallback, context: Any = None) -> bool:
        """Run the handler for ``resolved``; False when nothing ran successfully."""
        if not resolved.is_valid:
            if self.invalid_handler is not None:
                try:
                    await self.invalid_handler(resolved, context)
                except Exception:
                    logger.exception("Invalid-callback handler failed", reason=resolved.reason)
            return False

        handler = self.match(resolved.action)
        if handler is None:
            logger.warning("No handler for callback action", action=resolved.action)
            return False

        try:
            await handler(resolved, context)
        except Exception:
            logger.exception("Callback handler failed", action=resolved.action)
            return False
        return True
