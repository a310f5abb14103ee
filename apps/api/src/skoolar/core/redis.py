"""
Redis Configuration

Async Redis client shared by admission control.
"""

from redis.asyncio import Redis, from_url

from skoolar.core.config import settings

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis | None:
    """
    Initialize the Redis connection if REDIS_URL is configured.

    Call this on application startup.

    Returns:
        The connected client, or None when Redis is disabled
    """
    global redis_client
    if not settings.redis_url:
        return None

    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


def get_redis() -> Redis | None:
    """Return the Redis client, or None if Redis is unavailable."""
    return redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
