from redis.asyncio.client import Redis

from garage.config import get_config

__all__ = ["Redis", "redis"]

# connects lazily, on the first command
redis = Redis.from_url(get_config().REDIS_DSN)
