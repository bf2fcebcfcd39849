"""
Redis client.

Namespaced JSON records (project snapshots) and pub/sub channels (project
events) on top of redis.asyncio.
"""

import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import redis.asyncio as aioredis

from shared.config import settings
from shared.errors import ConfigError, RetryableError

T = TypeVar("T")


class RedisClient:
    """Async Redis client for project records and event channels."""

    def __init__(self, url: Optional[str] = None, namespace: str = "storyreel"):
        """
        Initialize Redis client.

        The connection is opened lazily on first use.

        Args:
            url: Redis URL (defaults to settings.redis_url)
            namespace: Prefix for every key and channel
        """
        try:
            self.client: aioredis.Redis = aioredis.from_url(
                url or settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        except Exception as e:
            raise ConfigError(f"Failed to initialize Redis client: {str(e)}") from e
        self.prefix = f"{namespace}:"

    def _prefix_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def _run(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        except Exception as e:
            raise RetryableError(f"Redis {action} failed: {str(e)}") from e

    async def set_json(self, key: str, data: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a JSON-serializable record.

        Args:
            key: Record key (prefix added)
            data: Record; datetimes and other non-JSON values are stringified
            ttl: Expiry in seconds, or None to keep the record

        Returns:
            True once written

        Raises:
            RetryableError: If the record cannot be encoded or written
        """
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError) as e:
            raise RetryableError(f"Record for {key} is not JSON-serializable: {str(e)}") from e

        await self._run("write", lambda: self.client.set(self._prefix_key(key), payload, ex=ttl))
        return True

    async def get_json(self, key: str) -> Optional[Any]:
        """
        Load a JSON record.

        Returns:
            The decoded record, or None if the key does not exist

        Raises:
            RetryableError: If Redis is unreachable or the record is corrupt
        """
        raw = await self._run("read", lambda: self.client.get(self._prefix_key(key)))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise RetryableError(f"Corrupt record at {key}: {str(e)}") from e

    async def delete(self, key: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        removed = await self._run("delete", lambda: self.client.delete(self._prefix_key(key)))
        return removed > 0

    async def publish(self, channel: str, message: str) -> int:
        """
        Publish a message on a namespaced channel.

        Returns:
            Number of subscribers that received the message
        """
        return await self._run(
            "publish", lambda: self.client.publish(self._prefix_key(channel), message)
        )

    async def health_check(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            await self.client.ping()
            return True
        except Exception:
            return False

    async def close(self):
        """Close Redis connection."""
        await self.client.aclose()
