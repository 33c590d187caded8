"""
encache — Redis Cache Backend

Asynchronous Redis cache implementation with:
- JSON serialization of result tuples (see ResultCodec)
- Per-key TTL handled natively by Redis (millisecond precision)
- Namespace prefixing for safe multi-tenant usage

A nil reply from Redis is a normal miss. Every other Redis failure is raised
as CacheStoreError so callers can fall back to recomputation.

Requires: redis>=5.0 with asyncio support

Example:
    cache = RedisCacheBackend(redis_url="redis://localhost:6379", namespace="encache")
    await cache.set("Add12", (3,), ttl=60)
    await cache.get("Add12", signature=(int,))   # (3,)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ...errors import CacheStoreError
from ..codec import Results
from ..interface import CacheInterface, check_ttl

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4.2+)
    from redis.asyncio import Redis
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend delegating expiry to the server.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Values are stored as UTF-8 JSON arrays.
    - A TTL <= 0 deletes the key; Redis rejects non-positive expiry on SET.
    - An injected client belongs to the caller and is not closed by close().
    """

    def __init__(
        self,
        client: Redis | None = None,
        redis_url: str | None = None,
        namespace: str = "encache",
        default_ttl: float = 3600,
        max_connections: int = 10,
        socket_timeout: float = 5,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            client: Existing redis.asyncio client to use
            redis_url: Connection URL used when no client is given,
                e.g. redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            default_ttl: TTL in seconds used when set() gets none
            max_connections: Connection pool size (redis_url only)
            socket_timeout: Socket timeout in seconds (redis_url only)
        """
        if client is None and not redis_url:
            raise ValueError("Either client or redis_url is required")

        self.namespace = namespace.strip() or "encache"
        self.default_ttl = default_ttl
        self._hits = 0
        self._misses = 0
        self._sets = 0

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            # Lazy connection; connects on first command
            self._client = Redis.from_url(  # type: ignore[call-overload]
                url=redis_url,
                decode_responses=True,
                max_connections=max_connections,
                socket_timeout=socket_timeout,
            )
            self._owns_client = True

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    @staticmethod
    def _ttl_millis(ttl: float) -> int:
        """Positive TTL in seconds -> milliseconds, never rounded down to 0."""
        return max(1, int(ttl * 1000))

    def _store_error(self, operation: str, key: str, error: RedisError) -> CacheStoreError:
        logger.error(
            f"Redis {operation} failed for key '{key}': {error}",
            extra={"key": key, "namespace": self.namespace, "operation": operation, "error": str(error)},
            exc_info=True,
        )
        return CacheStoreError(operation, key, details={"namespace": self.namespace, "error": str(error)})

    # ------------ Core Interface ------------

    async def get(self, key: str, signature: Sequence[Any] | None = None) -> Results | None:
        """Retrieve and decode results by key."""
        ns_key = self._make_key(key)
        try:
            data = await self._client.get(ns_key)
        except RedisError as e:
            raise self._store_error("get", key, e) from e

        if data is None:
            self._misses += 1
            return None

        results = self.deserialize(data, signature)
        self._hits += 1
        return results

    async def set(self, key: str, values: Sequence[Any], ttl: float | None = None) -> None:
        """Serialize results and store them with the given TTL."""
        if ttl is None:
            ttl = self.default_ttl
        check_ttl(ttl)

        payload = self.serialize(values)
        if ttl <= 0:
            await self.expire(key, ttl)
            return

        ns_key = self._make_key(key)
        try:
            await self._client.set(ns_key, payload, px=self._ttl_millis(ttl))
        except RedisError as e:
            raise self._store_error("set", key, e) from e
        self._sets += 1

    async def expire(self, key: str, ttl: float) -> None:
        """Update the key TTL via PEXPIRE (a TTL <= 0 deletes the key)."""
        check_ttl(ttl)
        ns_key = self._make_key(key)
        millis = self._ttl_millis(ttl) if ttl > 0 else 0
        try:
            await self._client.pexpire(ns_key, millis)
        except RedisError as e:
            raise self._store_error("expire", key, e) from e

    def periodic_expire(self, interval: float) -> None:
        """No-op: Redis expires keys on its own."""
        return None

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and server connectivity."""
        total_requests = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": "redis",
            "namespace": self.namespace,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
            "connected": False,
        }

        try:
            stats["connected"] = bool(await self._client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client if this backend created it."""
        if not self._owns_client:
            return

        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        except RedisError as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
