"""Indirection store adapters for oversized callback payloads."""

from .storage import (
    SURROGATE_ACTION,
    InMemorySurrogateStore,
    PostgresSurrogateStore,
    RedisSurrogateStore,
    SurrogatePayload,
    SurrogateRecord,
    SurrogateStore,
    create_store_from_env,
)

__all__ = [
    "SURROGATE_ACTION",
    "InMemorySurrogateStore",
    "PostgresSurrogateStore",
    "RedisSurrogateStore",
    "SurrogatePayload",
    "SurrogateRecord",
    "SurrogateStore",
    "create_store_from_env",
]
