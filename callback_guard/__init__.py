"""callback_guard package.

Signed, size-bounded callback data for chat inline buttons: wrapping with
graceful degradation, press-time verification and optional user binding.
"""

from .config import CallbackConfig
from .keyboard import bind_keyboard
from .logging_setup import setup_logging
from .resolver import CallbackResolver, ResolvedCallback
from .router import ActionRouter
from .surrogate.storage import (
    InMemorySurrogateStore,
    PostgresSurrogateStore,
    RedisSurrogateStore,
    SurrogateStore,
    create_store_from_env,
)
from .token import (
    Presser,
    TokenVersion,
    WrapOptions,
    WrapOutcome,
    WrappedToken,
    try_decode,
    verify,
    verify_bound,
)
from .wrapper import CallbackWrapper, wrap_callback_data

__all__ = [
    "ActionRouter",
    "CallbackConfig",
    "CallbackResolver",
    "CallbackWrapper",
    "InMemorySurrogateStore",
    "PostgresSurrogateStore",
    "Presser",
    "RedisSurrogateStore",
    "ResolvedCallback",
    "SurrogateStore",
    "TokenVersion",
    "WrapOptions",
    "WrapOutcome",
    "WrappedToken",
    "bind_keyboard",
    "create_store_from_env",
    "setup_logging",
    "try_decode",
    "verify",
    "verify_bound",
    "wrap_callback_data",
]
