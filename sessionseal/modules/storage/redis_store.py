"""Redis-backed session store."""

import json
import logging
import math
from datetime import UTC, datetime
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis import ConnectionError as RedisConnectionError
from redis import RedisError

from ...errors import StoreUnavailable

logger = logging.getLogger(__name__)


class RedisStore:
    """Session store keeping one JSON string per session, expired by Redis."""

    def __init__(self, redis_client, key_prefix: str = "session:"):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            key_prefix: Prefix for session keys
        """
        self.redis = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "session:") -> "RedisStore":
        """Create a store with its own client. The connection is opened lazily."""
        return cls(redis.from_url(url, encoding="utf-8", decode_responses=True), key_prefix=key_prefix)

    async def close(self) -> None:
        """Release the Redis connection pool."""
        if self.redis:
            await self.redis.aclose()

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def _handle_redis_error(self, operation: str, error: Exception) -> StoreUnavailable:
        """Centralized error mapping for Redis operations."""
        if isinstance(error, RedisConnectionError):
            logger.error(f"Redis connection failed during {operation}: {error}")
            return StoreUnavailable(f"Session store connection error during {operation}")
        logger.error(f"Redis error during {operation}: {error}")
        return StoreUnavailable(f"Session store error during {operation}")

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.redis.get(self._key(session_id))
        except RedisError as e:
            raise self._handle_redis_error("session read", e) from e

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            # Same outcome as a record of the wrong shape: the caller starts fresh
            logger.warning(f"Undecodable session record in Redis, ignoring it: {e}")
            return None

    async def set(self, session_id: str, record: Dict[str, Any], expiry: datetime) -> None:
        # Redis rejects non-positive TTLs
        ttl = max(1, math.ceil((expiry - datetime.now(UTC)).total_seconds()))
        try:
            await self.redis.setex(self._key(session_id), ttl, json.dumps(record))
        except RedisError as e:
            raise self._handle_redis_error("session write", e) from e
        logger.debug(f"Session record written with ttl={ttl}s")

    async def destroy(self, session_id: str) -> None:
        try:
            deleted_count = await self.redis.delete(self._key(session_id))
        except RedisError as e:
            raise self._handle_redis_error("session deletion", e) from e

        if deleted_count == 0:
            logger.debug("Session record was already gone at deletion")
