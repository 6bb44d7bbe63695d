"""Pooled Redis connection carrying the request bus."""

import asyncio
import logging

import redis.asyncio as redis
from redis.asyncio import ConnectionPool, Redis

from image_resizer.config import Settings

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Redis connection shared by every consumer of a worker process.

    The pool is created on ``connect``; a refused connection is retried a few
    times so workers may start before Redis does.
    """

    def __init__(self, settings: Settings, attempts: int = 5, retry_delay: float = 1.0) -> None:
        self._settings = settings
        self._attempts = max(1, attempts)
        self._retry_delay = retry_delay
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Create the pool and wait until Redis answers PING."""
        if self._client is not None:
            return

        pool = ConnectionPool.from_url(
            self._settings.redis_url,
            max_connections=self._settings.redis_max_connections,
            decode_responses=True,
            socket_timeout=self._settings.redis_socket_timeout,
            socket_connect_timeout=self._settings.redis_socket_timeout,
            retry_on_timeout=True,
        )
        client = Redis(connection_pool=pool)

        for attempt in range(1, self._attempts + 1):
            try:
                await client.ping()
                break
            except redis.ConnectionError as e:
                if attempt == self._attempts:
                    logger.error(f"Failed to connect to Redis at {self._settings.redis_url}: {e}")
                    await pool.disconnect()
                    raise
                logger.warning(f"Redis not reachable (attempt {attempt}/{self._attempts}): {e}")
                await asyncio.sleep(self._retry_delay * attempt)

        self._pool = pool
        self._client = client
        logger.info("Redis connection established")

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool is not None:
            await self._pool.disconnect()
            logger.info("Redis connection closed")
        self._pool = None
        self._client = None

    @property
    def client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

