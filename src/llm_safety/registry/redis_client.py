"""
Redis client with connection pooling for registry persistence.

Uses redis-py with a process-wide connection pool. The registry is
synchronous, so only the blocking client is provided.
"""

from typing import Optional

import structlog
from redis import ConnectionPool, Redis

from llm_safety.config import Settings

logger = structlog.get_logger(__name__)


class RedisClient:
    """Redis client wrapper with a shared connection pool."""

    _sync_pool: Optional[ConnectionPool] = None

    @classmethod
    def get_sync_client(cls, settings: Settings) -> Redis:
        """
        Get synchronous Redis client with connection pooling.

        Args:
            settings: Application settings (REDIS_URL, REDIS_MAX_CONNECTIONS)
        """
        if cls._sync_pool is None:
            cls._sync_pool = ConnectionPool.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=True,  # Auto-decode bytes to str
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            logger.info("Initialized Redis sync connection pool", url=settings.REDIS_URL)

        return Redis(connection_pool=cls._sync_pool)

    @classmethod
    def close_sync_pool(cls) -> None:
        """Close sync connection pool (cleanup on shutdown)."""
        if cls._sync_pool is not None:
            cls._sync_pool.disconnect()
            cls._sync_pool = None
            logger.info("Closed Redis sync connection pool")
