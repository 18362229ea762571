"""Storage adapters mapping surrogate tokens to their callback payloads."""

from __future__ import annotations

import asyncio
import json
import math
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import asyncpg
from redis.asyncio import Redis

from ..utils.time import utc_now

SURROGATE_ACTION = "callback:surrogate"


@dataclass(frozen=True)
class SurrogatePayload:
    """Original action and the richest signed form it would have used."""

    raw: str
    wrapped: str

    def to_dict(self) -> dict[str, str]:
        return {"raw": self.raw, "wrapped": self.wrapped}

    @classmethod
    def from_dict(cls, value: Any) -> Optional["SurrogatePayload"]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        if not isinstance(value, dict):
            return None
        raw, wrapped = value.get("raw"), value.get("wrapped")
        if not isinstance(raw, str) or not isinstance(wrapped, str):
            return None
        return cls(raw=raw, wrapped=wrapped)


@dataclass(frozen=True)
class SurrogateRecord:
    token: str
    action: str
    payload: SurrogatePayload
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or utc_now())


class SurrogateStore(ABC):
    """Abstract key-value store with per-entry expiry."""

    @abstractmethod
    async def put(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        """Insert or replace the entry for ``token``."""

    @abstractmethod
    async def get(self, token: str) -> Optional[SurrogateRecord]:
        """Fetch the entry for ``token``, expired or not."""

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Remove the entry for ``token`` if present."""

    async def close(self) -> None:
        """Release backend resources if needed."""


class InMemorySurrogateStore(SurrogateStore):
    """Process-local store, for tests and single-process bots."""

    def __init__(self) -> None:
        self.records: dict[str, SurrogateRecord] = {}

    async def put(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        now = utc_now()
        expired = [key for key, record in self.records.items() if record.is_expired(now)]
        for key in expired:
            self.records.pop(key, None)
        self.records[token] = SurrogateRecord(
            token=token,
            action=SURROGATE_ACTION,
            payload=payload,
            expires_at=expires_at,
        )

    async def get(self, token: str) -> Optional[SurrogateRecord]:
        return self.records.get(token)

    async def delete(self, token: str) -> None:
        self.records.pop(token, None)


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS callback_map (
    token TEXT PRIMARY KEY,
    action TEXT NOT NULL,
    chat_id BIGINT,
    message_id BIGINT,
    payload JSONB NOT NULL,
    expires_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS callback_map_expires_at_idx ON callback_map (expires_at);
"""

UPSERT_SQL = """
INSERT INTO callback_map (token, action, payload, expires_at)
VALUES ($1, $2, $3::jsonb, $4)
ON CONFLICT (token) DO UPDATE
SET action = EXCLUDED.action,
    payload = EXCLUDED.payload,
    expires_at = EXCLUDED.expires_at
"""


class PostgresSurrogateStore(SurrogateStore):
    """Postgres-backed store using asyncpg and the ``callback_map`` table."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        pool: Optional[asyncpg.Pool] = None,
        min_size: int = 1,
        max_size: int = 4,
    ) -> None:
        self.dsn = dsn
        self.pool = pool
        self._min_size = min_size
        self._max_size = max_size
        self._connect_lock: Optional[asyncio.Lock] = None

    async def connect(self) -> None:
        if self.pool is not None:
            return
        if not self.dsn:
            raise ValueError("Either `dsn` or `pool` must be provided for PostgresSurrogateStore.")
        # created on first use so it binds to the running loop
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()
        async with self._connect_lock:
            if self.pool is None:
                self.pool = await asyncpg.create_pool(dsn=self.dsn, min_size=self._min_size, max_size=self._max_size)

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def ensure_schema(self) -> None:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            await conn.execute(CREATE_TABLE_SQL)

    async def put(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            await conn.execute(UPSERT_SQL, token, SURROGATE_ACTION, json.dumps(payload.to_dict()), expires_at)

    async def get(self, token: str) -> Optional[SurrogateRecord]:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT token, action, payload, expires_at FROM callback_map WHERE token=$1",
                token,
            )
        if row is None:
            return None
        payload = SurrogatePayload.from_dict(row["payload"])
        if payload is None:
            return None
        return SurrogateRecord(
            token=row["token"],
            action=row["action"],
            payload=payload,
            expires_at=row["expires_at"],
        )

    async def delete(self, token: str) -> None:
        await self.connect()
        assert self.pool is not None
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM callback_map WHERE token=$1", token)


class RedisSurrogateStore(SurrogateStore):
    """Redis-backed store; entries expire through ``SETEX``."""

    def __init__(self, redis: Redis, *, key_prefix: str = "callback_map:") -> None:
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisSurrogateStore":
        return cls(Redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    async def put(self, token: str, payload: SurrogatePayload, expires_at: datetime) -> None:
        ttl = max(1, math.ceil((expires_at - utc_now()).total_seconds()))
        document = {
            "action": SURROGATE_ACTION,
            "payload": payload.to_dict(),
            "expires_at": expires_at.isoformat(),
        }
        await self.redis.setex(self._key(token), ttl, json.dumps(document))

    async def get(self, token: str) -> Optional[SurrogateRecord]:
        raw = await self.redis.get(self._key(token))
        if raw is None:
            return None
        try:
            document = json.loads(raw)
            expires_at = datetime.fromisoformat(document["expires_at"])
        except (ValueError, KeyError, TypeError):
            return None
        payload = SurrogatePayload.from_dict(document.get("payload"))
        if payload is None:
            return None
        return SurrogateRecord(
            token=token,
            action=str(document.get("action", "")),
            payload=payload,
            expires_at=expires_at,
        )

    async def delete(self, token: str) -> None:
        await self.redis.delete(self._key(token))

    async def close(self) -> None:
        await self.redis.aclose()


def create_store_from_env() -> SurrogateStore:
    """Postgres if a DSN is configured, then Redis, otherwise in-memory."""
    dsn = os.getenv("CALLBACK_GUARD_PG_DSN") or os.getenv("DATABASE_URL")
    if dsn:
        return PostgresSurrogateStore(dsn=dsn)
    redis_url = os.getenv("CALLBACK_GUARD_REDIS_URL") or os.getenv("REDIS_URL")
    if redis_url:
        return RedisSurrogateStore.from_url(redis_url)
    return InMemorySurrogateStore()
