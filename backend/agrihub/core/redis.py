"""
Optional Redis client, used as a shared store when one is configured.
"""

from typing import Optional

from redis.asyncio import Redis, from_url

from agrihub.core.config import settings

redis_client: Optional[Redis] = None


async def get_redis() -> Optional[Redis]:
    """Get Redis client instance, or None when REDIS_URL is unset."""
    global redis_client
    if not settings.REDIS_URL:
        return None
    if redis_client is None:
        redis_client = from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return redis_client


async def close_redis():
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
