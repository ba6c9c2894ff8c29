"""Redis client construction and health check."""
import logging

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from .settings import Settings

logger = logging.getLogger(__name__)


def build_redis_client(settings: Settings) -> Redis:
    """Create the process-wide Redis client.

    Connections are established lazily, so an unreachable cache never blocks startup.
    """
    pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        health_check_interval=30,
    )
    return Redis(connection_pool=pool)


async def cache_health_check(client: Redis) -> dict:
    try:
        await client.ping()
        return {"status": "healthy", "connection": True}
    except (RedisError, OSError) as e:
        logger.warning("Cache health check failed: %s", e)
        return {"status": "unhealthy", "connection": False, "error": str(e)}
