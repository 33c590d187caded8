"""
encache — Memory Cache Backend

In-process cache keyed by string with a per-entry expiry instant.

- Reads never prune: a stale entry stays in the table until the sweep task
  or an explicit expire(key, 0) removes it.
- One asyncio.Lock owned by the instance serializes every table access
  (get, set, expire and the sweep scan).
- periodic_expire() starts a background sweep task; stop_periodic_expire()
  or close() cancels it.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..codec import Results
from ..interface import CacheInterface, check_ttl

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheEntry:
    """One cached result tuple with its absolute expiry (monotonic clock)."""

    value: Results
    expiry_time: float


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend with self-managed expiry.

    Features:
    - Per-key TTL support
    - Optional background sweep of expired entries
    - Coroutine-safe operations within one event loop
    """

    def __init__(self, default_ttl: float = 3600, namespace: str = "encache"):
        """
        Initialize memory cache backend.

        Args:
            default_ttl: TTL in seconds used when set() gets none
            namespace: Cache key namespace/prefix
        """
        self.default_ttl = default_ttl
        self.namespace = namespace

        # Cache storage: key -> CacheEntry
        self._cache: dict[str, CacheEntry] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._expirations = 0

        self._lock = asyncio.Lock()
        self._sweep_tasks: set[asyncio.Task[None]] = set()

    def _make_key(self, key: str) -> str:
        """Create namespaced cache key."""
        return f"{self.namespace}:{key}"

    def _store(self, cache_key: str, value: Results, ttl: float) -> None:
        self._cache[cache_key] = CacheEntry(value=value, expiry_time=time.monotonic() + ttl)
        self._sets += 1

    def _expire_locked(self, cache_key: str, ttl: float) -> None:
        """Expire or refresh one entry. Caller must hold the lock."""
        entry = self._cache.get(cache_key)
        if entry is None:
            return

        if ttl <= 0:
            del self._cache[cache_key]
            self._expirations += 1
            return

        self._store(cache_key, entry.value, ttl)

    async def get(self, key: str, signature: Sequence[Any] | None = None) -> Results | None:
        """Retrieve results if present and not expired. Stale entries are left in place."""
        async with self._lock:
            entry = self._cache.get(self._make_key(key))

            if entry is not None and entry.expiry_time > time.monotonic():
                self._hits += 1
                return entry.value

            self._misses += 1
            return None

    async def set(self, key: str, values: Sequence[Any], ttl: float | None = None) -> None:
        """Store results with expiry = now + ttl."""
        if ttl is None:
            ttl = self.default_ttl
        check_ttl(ttl)

        async with self._lock:
            self._store(self._make_key(key), tuple(values), ttl)

    async def expire(self, key: str, ttl: float) -> None:
        """Delete the entry (ttl <= 0) or push its expiry to now + ttl."""
        check_ttl(ttl)
        async with self._lock:
            self._expire_locked(self._make_key(key), ttl)

    def periodic_expire(self, interval: float) -> None:
        """
        Start a background task removing expired entries every `interval` seconds.

        Must be called from a running event loop. Each call starts its own
        task; all of them stop on stop_periodic_expire() or close().

        Args:
            interval: Seconds between sweeps (must be positive)

        Raises:
            ValueError: If interval is not positive
            RuntimeError: If no event loop is running
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        task = asyncio.get_running_loop().create_task(
            self._sweep_loop(interval),
            name=f"encache-sweep:{self.namespace}",
        )
        self._sweep_tasks.add(task)
        task.add_done_callback(self._sweep_tasks.discard)
        logger.debug(
            f"Started periodic expiry for namespace '{self.namespace}' every {interval}s",
            extra={"namespace": self.namespace, "interval": interval},
        )

    async def _sweep_loop(self, interval: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                removed = await self._sweep_expired()
                if removed:
                    logger.debug(
                        f"Removed {removed} expired entries from namespace '{self.namespace}'",
                        extra={"namespace": self.namespace, "removed": removed},
                    )
        except asyncio.CancelledError:
            logger.debug(f"Periodic expiry stopped for namespace '{self.namespace}'")
            raise

    async def _sweep_expired(self) -> int:
        """Remove every entry whose expiry has passed. Returns the number removed."""
        async with self._lock:
            now = time.monotonic()
            expired = [cache_key for cache_key, entry in self._cache.items() if entry.expiry_time < now]

            removed = 0
            for cache_key in expired:
                try:
                    self._expire_locked(cache_key, 0)
                    removed += 1
                except Exception as e:
                    logger.error(
                        f"Error in periodic expire for key '{cache_key}': {e}",
                        extra={"key": cache_key, "namespace": self.namespace, "error": str(e)},
                        exc_info=True,
                    )
            return removed

    @property
    def sweep_running(self) -> bool:
        """True while at least one sweep task is alive."""
        return any(not task.done() for task in self._sweep_tasks)

    async def stop_periodic_expire(self) -> None:
        """Cancel all sweep tasks started on this backend and wait for them to finish."""
        tasks = list(self._sweep_tasks)
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._sweep_tasks.clear()

    def has_entry(self, key: str) -> bool:
        """Report whether the table holds `key`, expired or not."""
        return self._make_key(key) in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "expirations": self._expirations,
                "sweep_running": self.sweep_running,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Stop background sweeps. Cached data stays in-process."""
        await self.stop_periodic_expire()
        logger.debug(f"Memory cache backend closed for namespace '{self.namespace}'")
