"""Redis client connection for the alert stream."""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from insider_signals.core.exceptions import RedisConnectionError
from insider_signals.core.logging import get_logger

logger = get_logger(__name__)

# Global Redis instance (initialized by the hosting worker)
_redis: Redis | None = None


def get_redis() -> Redis:
    """Get the global Redis instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized")
    return _redis


async def init_redis(redis_url: str) -> Redis:
    """Initialize the global Redis instance."""
    global _redis
    client = Redis.from_url(redis_url, decode_responses=False)
    try:
        await client.ping()
    except RedisError as e:
        await client.aclose()
        raise RedisConnectionError(f"Failed to connect to Redis: {e}") from e
    _redis = client
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    """Close the global Redis instance."""
    global _redis
    if _redis:
        await _redis.aclose()
        logger.info("Redis disconnected")
        _redis = None
