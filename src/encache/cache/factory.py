"""
encache — Cache Factory

Creates cache backends from configuration.

Key points:
- Backend selected with CACHE_BACKEND=memory|redis (memory by default,
  redis when REDIS_URL is set)
- The Redis backend is imported lazily so the memory backend works without
  a Redis client installed
- A memory backend configured with sweep_interval_seconds starts its sweep
  when created inside a running event loop

Examples:
    from encache.cache import create_cache

    cache = create_cache()

    from encache.config import CacheBackend, CacheConfig
    cfg = CacheConfig(backend=CacheBackend.MEMORY, ttl_seconds=600)
    mem_cache = create_cache(cfg)
"""

from __future__ import annotations

import asyncio
import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.memory import MemoryCacheBackend
from .interface import CacheInterface

logger = logging.getLogger(__name__)


def _create_memory_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a memory cache backend."""
    cache = MemoryCacheBackend(
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
    )

    if config.sweep_interval_seconds is not None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop, periodic expiry not started; call periodic_expire() from async code",
                extra={"namespace": config.namespace},
            )
        else:
            cache.periodic_expire(config.sweep_interval_seconds)

    return cache


def _create_redis_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a redis cache backend with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.0' or add to dependencies.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisCacheBackend(
        redis_url=config.redis_url,
        namespace=config.namespace,
        default_ttl=config.ttl_seconds,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_cache(config: CacheConfig | None = None) -> CacheInterface:
    """
    Create a cache backend instance based on configuration.

    Each call builds a new backend; the caller owns it and closes it.

    Args:
        config: Cache configuration (uses global config if not provided)

    Returns:
        Configured cache backend instance

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache with backend: %s",
        config.backend,
        extra={"namespace": config.namespace, "backend": str(config.backend)},
    )

    if config.backend == CacheBackend.MEMORY:
        return _create_memory_cache(config)
    if config.backend == CacheBackend.REDIS:
        return _create_redis_cache(config)

    raise ConfigurationError(
        f"Unknown cache backend: {config.backend}",
        details={
            "backend": str(config.backend),
            "supported": ["memory", "redis"],
        },
    )
