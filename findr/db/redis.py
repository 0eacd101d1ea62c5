import logging
from upstash_redis import Redis
from typing import Optional

from findr.config import settings


logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[Redis] = None


async def init_redis():
    """Initialize Upstash Redis connection."""
    global redis_client
    redis_client = Redis(
        url=settings.UPSTASH_REDIS_URL,
        token=settings.UPSTASH_REDIS_TOKEN,
    )
    logger.info("Redis (Upstash) initialized")


async def close_redis():
    """Close Redis connection."""
    global redis_client
    redis_client = None
    logger.info("Redis connection closed")


def get_redis() -> Redis:
    """Get Redis client instance."""
    if redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return redis_client


class RedisService:
    """
    Ephemeral state kept outside the database: presence and refresh cooldowns.
    Swipe and match state never lives here.
    """

    def __init__(self, client: Optional[Redis] = None):
        self.client = client or get_redis()

    # ==================== Online Status ====================

    async def set_online(self, user_id: str) -> None:
        """Mark user as online for ONLINE_TTL_SECONDS."""
        key = f"online:{user_id}"
        self.client.setex(key, settings.ONLINE_TTL_SECONDS, "1")

    async def is_online(self, user_id: str) -> bool:
        """Check if user is online."""
        key = f"online:{user_id}"
        return self.client.get(key) is not None

    # ==================== Cooldowns ====================

    async def acquire_cooldown(self, action: str, identifier: str, seconds: int) -> bool:
        """
        Claim a cooldown window for (action, identifier).
        Returns False if a window is already open.
        """
        key = f"cooldown:{action}:{identifier}"
        return bool(self.client.set(key, "1", ex=seconds, nx=True))

    async def release_cooldown(self, action: str, identifier: str) -> None:
        """Drop a cooldown window, e.g. after the guarded action failed."""
        key = f"cooldown:{action}:{identifier}"
        self.client.delete(key)
