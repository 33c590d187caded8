"""
encache — Memory Cache Backend Tests

Covers TTL handling, expire semantics, the background sweep and its
cancellation, and concurrent access to the shared table.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest

from encache.cache.backends.memory import MemoryCacheBackend
from encache.cache.interface import CacheInterface


class TestMemoryCacheBackend:
    """Test suite for MemoryCacheBackend."""

    @pytest.fixture
    async def cache(self) -> AsyncGenerator[MemoryCacheBackend, None]:
        """Create a fresh memory cache instance for each test."""
        cache = MemoryCacheBackend(default_ttl=3600, namespace="test")
        yield cache
        await cache.close()

    async def test_initialization(self) -> None:
        """Test cache initialization with custom parameters."""
        cache = MemoryCacheBackend(default_ttl=1800, namespace="custom")
        assert isinstance(cache, CacheInterface)
        assert cache.default_ttl == 1800
        assert cache.namespace == "custom"
        assert len(cache) == 0

        stats = await cache.get_stats()
        assert stats["hits"] == 0
        assert stats["misses"] == 0
        assert stats["size"] == 0

    async def test_get_never_written_key(self, cache: MemoryCacheBackend) -> None:
        """Test getting a key that doesn't exist."""
        assert await cache.get("nonexistent") is None

        stats = await cache.get_stats()
        assert stats["misses"] == 1
        assert stats["hits"] == 0

    async def test_set_and_get(self, cache: MemoryCacheBackend) -> None:
        """Test basic set and get operations."""
        await cache.set("Add12", (3,), ttl=60)

        assert await cache.get("Add12") == (3,)

        stats = await cache.get_stats()
        assert stats["hits"] == 1
        assert stats["sets"] == 1

    async def test_set_stores_tuple(self, cache: MemoryCacheBackend) -> None:
        """Lists are stored as tuples so hits are always tuples."""
        await cache.set("key", [1, "a"], ttl=60)
        assert await cache.get("key") == (1, "a")

    async def test_empty_results_are_a_hit(self, cache: MemoryCacheBackend) -> None:
        await cache.set("noop", (), ttl=60)
        assert await cache.get("noop") == ()

    async def test_signature_is_ignored(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", ("3",), ttl=60)
        assert await cache.get("key", signature=(int,)) == ("3",)

    async def test_set_overwrites(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", (1,), ttl=60)
        await cache.set("key", (2,), ttl=60)
        assert await cache.get("key") == (2,)

    async def test_ttl_none_uses_default(self) -> None:
        """Test that TTL=None uses the default TTL."""
        cache = MemoryCacheBackend(default_ttl=0.05, namespace="test")

        await cache.set("key", ("value",))
        assert await cache.get("key") == ("value",)

        await asyncio.sleep(0.1)
        assert await cache.get("key") is None

    async def test_time_boundary(self, cache: MemoryCacheBackend) -> None:
        """Entry is served before its TTL and missed after it."""
        await cache.set("k", ("v",), ttl=0.1)
        assert await cache.get("k") == ("v",)

        await asyncio.sleep(0.15)
        assert await cache.get("k") is None

    async def test_get_does_not_prune_stale_entries(self, cache: MemoryCacheBackend) -> None:
        await cache.set("k", ("v",), ttl=0.01)
        await asyncio.sleep(0.03)

        assert await cache.get("k") is None
        assert cache.has_entry("k") is True

    async def test_non_positive_ttl_is_never_forever(self, cache: MemoryCacheBackend) -> None:
        await cache.set("zero", ("v",), ttl=0)
        await cache.set("negative", ("v",), ttl=-5)

        assert await cache.get("zero") is None
        assert await cache.get("negative") is None

    async def test_expire_zero_deletes(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", ("v",), ttl=60)
        await cache.expire("key", 0)

        assert await cache.get("key") is None
        assert cache.has_entry("key") is False

        stats = await cache.get_stats()
        assert stats["expirations"] == 1

    async def test_expire_negative_deletes(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", ("v",), ttl=60)
        await cache.expire("key", -1)
        assert cache.has_entry("key") is False

    async def test_expire_missing_key_is_noop(self, cache: MemoryCacheBackend) -> None:
        await cache.expire("missing", 10)
        await cache.expire("missing", 0)

        assert cache.has_entry("missing") is False
        assert len(cache) == 0

    async def test_expire_extends_ttl(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", ("v",), ttl=0.05)
        await cache.expire("key", 60)

        await asyncio.sleep(0.1)
        assert await cache.get("key") == ("v",)

    async def test_expire_shortens_ttl(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key", ("v",), ttl=60)
        await cache.expire("key", 0.02)

        await asyncio.sleep(0.05)
        assert await cache.get("key") is None

    async def test_expire_revives_stale_entry(self, cache: MemoryCacheBackend) -> None:
        """A stale entry still in the table is re-stored with the new TTL."""
        await cache.set("key", ("v",), ttl=0.01)
        await asyncio.sleep(0.03)
        assert await cache.get("key") is None

        await cache.expire("key", 60)
        assert await cache.get("key") == ("v",)

    async def test_namespace_isolation(self) -> None:
        cache_a = MemoryCacheBackend(namespace="a")
        cache_b = MemoryCacheBackend(namespace="b")

        await cache_a.set("key", ("a",), ttl=60)
        assert await cache_b.get("key") is None
        assert cache_a.has_entry("key") is True


class TestPeriodicExpire:
    """Test suite for the background sweep."""

    @pytest.fixture
    async def cache(self) -> AsyncGenerator[MemoryCacheBackend, None]:
        cache = MemoryCacheBackend(namespace="sweep")
        yield cache
        await cache.close()

    async def test_sweep_removes_expired_entries(self, cache: MemoryCacheBackend) -> None:
        await cache.set("k", ("v",), ttl=0.05)
        cache.periodic_expire(0.02)

        await asyncio.sleep(0.1)
        assert cache.has_entry("k") is False

    async def test_sweep_keeps_live_entries(self, cache: MemoryCacheBackend) -> None:
        await cache.set("short", ("v",), ttl=0.02)
        await cache.set("long", ("v",), ttl=60)
        cache.periodic_expire(0.02)

        await asyncio.sleep(0.1)
        assert cache.has_entry("short") is False
        assert cache.has_entry("long") is True
        assert await cache.get("long") == ("v",)

    async def test_sweep_runs_repeatedly(self, cache: MemoryCacheBackend) -> None:
        cache.periodic_expire(0.02)

        await cache.set("first", ("v",), ttl=0.01)
        await asyncio.sleep(0.06)
        assert cache.has_entry("first") is False

        await cache.set("second", ("v",), ttl=0.01)
        await asyncio.sleep(0.06)
        assert cache.has_entry("second") is False

    async def test_stop_periodic_expire(self, cache: MemoryCacheBackend) -> None:
        cache.periodic_expire(0.02)
        assert cache.sweep_running is True

        await cache.stop_periodic_expire()
        assert cache.sweep_running is False

        await cache.set("k", ("v",), ttl=0.01)
        await asyncio.sleep(0.06)
        assert cache.has_entry("k") is True

    async def test_close_cancels_all_sweeps(self, cache: MemoryCacheBackend) -> None:
        cache.periodic_expire(0.02)
        cache.periodic_expire(0.05)
        assert cache.sweep_running is True

        await cache.close()
        assert cache.sweep_running is False

        stats = await cache.get_stats()
        assert stats["sweep_running"] is False

    async def test_stop_without_sweep(self, cache: MemoryCacheBackend) -> None:
        await cache.stop_periodic_expire()
        assert cache.sweep_running is False

    async def test_invalid_interval(self, cache: MemoryCacheBackend) -> None:
        with pytest.raises(ValueError):
            cache.periodic_expire(0)

    def test_requires_running_loop(self) -> None:
        cache = MemoryCacheBackend()
        with pytest.raises(RuntimeError):
            cache.periodic_expire(1)

    async def test_sweep_logs_and_continues_on_error(
        self, cache: MemoryCacheBackend, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        await cache.set("bad", ("v",), ttl=0.01)
        await cache.set("good", ("v",), ttl=0.01)

        original = cache._expire_locked

        def failing_expire(cache_key: str, ttl: float) -> None:
            if cache_key.endswith(":bad"):
                raise RuntimeError("boom")
            original(cache_key, ttl)

        monkeypatch.setattr(cache, "_expire_locked", failing_expire)
        cache.periodic_expire(0.02)

        await asyncio.sleep(0.08)
        assert cache.has_entry("good") is False
        assert cache.has_entry("bad") is True
        assert cache.sweep_running is True
        assert "Error in periodic expire" in caplog.text


class TestNonFiniteTTL:
    """NaN and infinite TTLs are rejected instead of meaning "never expire"."""

    @pytest.mark.parametrize("ttl", [float("nan"), float("inf"), float("-inf")])
    async def test_set_rejects_non_finite_ttl(self, ttl: float) -> None:
        cache = MemoryCacheBackend(namespace="ttl")

        with pytest.raises(ValueError):
            await cache.set("k", ("v",), ttl=ttl)

        assert cache.has_entry("k") is False

    @pytest.mark.parametrize("ttl", [float("nan"), float("inf")])
    async def test_expire_rejects_non_finite_ttl(self, ttl: float) -> None:
        cache = MemoryCacheBackend(namespace="ttl")
        await cache.set("k", ("v",), ttl=60)

        with pytest.raises(ValueError):
            await cache.expire("k", ttl)

        assert await cache.get("k") == ("v",)


class TestConcurrency:
    """Concurrent access to one shared table."""

    async def test_concurrent_sets_on_distinct_keys(self) -> None:
        cache = MemoryCacheBackend(namespace="concurrent")

        await asyncio.gather(*(cache.set(f"key{i}", (i,), ttl=60) for i in range(500)))

        assert len(cache) == 500
        results = await asyncio.gather(*(cache.get(f"key{i}") for i in range(500)))
        assert results == [(i,) for i in range(500)]

    async def test_concurrent_expire_and_set_with_sweep(self) -> None:
        cache = MemoryCacheBackend(namespace="concurrent")
        cache.periodic_expire(0.005)

        async def churn(i: int) -> None:
            for _ in range(20):
                await cache.set(f"key{i}", (i,), ttl=0.001)
                await asyncio.sleep(0)
                await cache.expire(f"key{i}", 0)
            await cache.set(f"key{i}", (i,), ttl=60)

        await asyncio.gather(*(churn(i) for i in range(50)))
        await cache.close()

        for i in range(50):
            assert await cache.get(f"key{i}") == (i,)
