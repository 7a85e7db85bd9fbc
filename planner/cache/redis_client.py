"""
Redis client with connection pooling and JSON serialization.

Only short-lived session state lives here (revoked session tokens). Event
visibility is always computed from the database on each request.
"""
import json
from typing import Optional, Any
import redis
from redis.connection import ConnectionPool
from planner.core.config import settings
from planner.core.logging import logger


class RedisCache:
    """Redis key-value client with connection pooling."""

    def __init__(self):
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client with connection pooling."""
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                max_connections=20
            )
            self._client = redis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Set value with expiration.

        Args:
            key: Cache key
            value: Value to store (will be JSON serialized)
            expire: Expiration time in seconds (default: 300)

        Returns:
            True if successful, False otherwise
        """
        try:
            client = self._get_client()
            serialized = json.dumps(value, default=str)
            client.setex(key, expire, serialized)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        """
        Check if key exists.

        Returns:
            True if key exists, False otherwise (including when Redis is unreachable)
        """
        try:
            client = self._get_client()
            return client.exists(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    def close(self):
        """Close Redis connection pool."""
        if self._client:
            self._client.close()
            logger.info("Redis connection pool closed")


# Create a single instance to be imported throughout the app
cache = RedisCache()
