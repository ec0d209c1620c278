"""
Lost & Found API — Redis client (login rate limiting)
"""
import redis.asyncio as aioredis

from lostfound.core.config import Settings


def create_redis(settings: Settings) -> aioredis.Redis:
    return aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
    )


async def close_redis(client: aioredis.Redis | None) -> None:
    if client is not None:
        await client.aclose()
