"""
encache — Cache Interface

Defines the abstract interface that all cache backends must implement.

Cached values are the ordered results of one function call (a tuple). TTLs
are in seconds; a TTL <= 0 means "delete now", never "keep forever".
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from .codec import ResultCodec, Results


def check_ttl(ttl: float) -> float:
    """Return `ttl` unchanged, raising ValueError if it is NaN or infinite."""
    if not math.isfinite(ttl):
        raise ValueError(f"ttl must be a finite number of seconds, got {ttl!r}")
    return ttl


class CacheInterface(ABC):
    """
    Abstract base class for cache backends.

    All cache implementations must implement this interface so callers can
    switch between backends (memory, Redis) without code changes.
    """

    codec: ResultCodec = ResultCodec()

    @abstractmethod
    async def get(self, key: str, signature: Sequence[Any] | None = None) -> Results | None:
        """
        Retrieve cached results.

        Args:
            key: Cache key
            signature: Expected type per result position, used by backends
                that store results in serialized form

        Returns:
            Results tuple if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: str, values: Sequence[Any], ttl: float | None = None) -> None:
        """
        Store results, overwriting any existing entry.

        Args:
            key: Cache key
            values: Ordered results of one call
            ttl: Time-to-live in seconds (None = backend default)

        Raises:
            ValueError: If ttl is NaN or infinite
        """
        pass

    @abstractmethod
    async def expire(self, key: str, ttl: float) -> None:
        """
        Reset the time-to-live of an existing entry.

        Args:
            key: Cache key (missing keys are ignored)
            ttl: New time-to-live in seconds (<= 0 deletes the entry)

        Raises:
            ValueError: If ttl is NaN or infinite
        """
        pass

    @abstractmethod
    def periodic_expire(self, interval: float) -> None:
        """
        Start background removal of expired entries.

        Backends whose store expires keys on its own implement this as a no-op.

        Args:
            interval: Seconds between sweeps
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the cache backend and release resources.

        Should be called during graceful shutdown.
        """
        pass

    def serialize(self, values: Sequence[Any]) -> str:
        """Encode results with the backend codec (see ResultCodec.serialize)."""
        return self.codec.serialize(values)

    def deserialize(self, text: str | bytes, signature: Sequence[Any] | None = None) -> Results:
        """Decode results with the backend codec (see ResultCodec.deserialize)."""
        return self.codec.deserialize(text, signature)
