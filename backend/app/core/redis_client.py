import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from backend.app.core.config import settings


logger = logging.getLogger(__name__)

# Backs the commit guard; None until the app lifespan starts.
redis_client: redis.Redis | None = None


async def init_redis() -> None:
    global redis_client
    redis_client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.debug("Redis client created for %s", settings.REDIS_URL)


async def ping_redis() -> bool:
    """False when the client is missing or Redis does not answer."""
    if redis_client is None:
        return False
    try:
        await redis_client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
    return True


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
