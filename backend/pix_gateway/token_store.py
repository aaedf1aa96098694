"""Token store abstraction for the Instapay bearer token.

The store is injected into the authenticator. ``MemoryTokenStore`` keeps the
token in the current process; ``RedisTokenStore`` shares it between every
instance pointed at the same Redis.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Protocol

from redis.asyncio import Redis

from .cache import Clock, TTLCache
from .redis_store import get_async_redis

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    backend: str

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, token: str, ttl_seconds: float) -> None: ...

    async def ping(self) -> bool: ...


class MemoryTokenStore:
    backend = "memory"

    def __init__(self, cache: TTLCache | None = None, *, clock: Clock = time.time) -> None:
        self.cache = cache or TTLCache("instapay_token", max_size=8, clock=clock)

    async def get(self, key: str) -> str | None:
        return self.cache.get(key)

    async def set(self, key: str, token: str, ttl_seconds: float) -> None:
        self.cache.set(key, token, ttl=ttl_seconds)

    async def ping(self) -> bool:
        return True


class RedisTokenStore:
    backend = "redis"

    def __init__(self, client: Redis) -> None:
        self.client = client

    async def get(self, key: str) -> str | None:
        value = await self.client.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def set(self, key: str, token: str, ttl_seconds: float) -> None:
        # PX keeps sub-second TTLs meaningful; Redis drops the key at expiry
        await self.client.set(key, token, px=max(1, int(ttl_seconds * 1000)))

    async def ping(self) -> bool:
        return bool(await self.client.ping())


@lru_cache(maxsize=1)
def get_token_store() -> TokenStore:
    client = get_async_redis()
    if client is not None:
        logger.info("Using Redis token store")
        return RedisTokenStore(client)
    return MemoryTokenStore()


__all__ = ["MemoryTokenStore", "RedisTokenStore", "TokenStore", "get_token_store"]
