from __future__ import annotations

from redis.asyncio import Redis

from .settings import settings

_async_client: Redis | None = None


def get_async_redis() -> Redis | None:
    global _async_client
    if not settings.redis_configured:
        return None
    if _async_client is None:
        _async_client = Redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
    return _async_client


async def close_async_redis() -> None:
    global _async_client
    if _async_client is not None:
        await _async_client.aclose()
        _async_client = None
