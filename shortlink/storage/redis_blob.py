"""Redis blob backend."""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..common.logging_config import get_logger
from ..errors import PersistenceError
from .base import BlobBackend


class RedisBlobBackend(BlobBackend):
    """Stores each blob as a plain Redis string key."""

    name = "redis"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis backend.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            client: Optional pre-built client; takes precedence over redis_url
            logger: Optional logger instance
        """
        if client is None and not redis_url:
            raise ValueError("RedisBlobBackend needs a redis_url or a client")
        self.redis_url = redis_url
        self.logger = logger or get_logger("storage")
        self.client = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def connect(self) -> None:
        """Verify the connection; raises PersistenceError if Redis is unreachable."""
        try:
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except RedisError as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            raise PersistenceError(f"Failed to connect to Redis: {e}") from e

    async def read(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except (RedisError, UnicodeDecodeError) as e:
            self.logger.error(f"Redis get error: {e}")
            raise PersistenceError(f"Failed to read blob '{key}': {e}") from e
        return value

    async def write(self, key: str, data: str) -> None:
        try:
            await self.client.set(key, data)
        except RedisError as e:
            self.logger.error(f"Redis set error: {e}")
            raise PersistenceError(f"Failed to write blob '{key}': {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            result = await self.client.delete(key)
        except RedisError as e:
            self.logger.error(f"Redis delete error: {e}")
            raise PersistenceError(f"Failed to delete blob '{key}': {e}") from e
        return result > 0

    async def health_check(self) -> bool:
        try:
            await self.client.ping()
            return True
        except RedisError:
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        await self.client.aclose()
        self.logger.info("Redis connection closed")
