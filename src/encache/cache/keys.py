"""
encache — Cache Key Derivation

Turns a call (function name + ordered arguments) into a cache key.

The default deriver concatenates the function name with ``str()`` of each
argument, in order, with no separators. Keys are deterministic but NOT
collision-free: ``make_key("f", ["1", "2"])`` equals
``make_key("f", ["12", ""])``. Callers that need stronger keys can plug in
their own CacheKeyInterface implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


def make_key(func_name: str, args: Sequence[Any]) -> str:
    """Build a cache key from a function name and its positional arguments."""
    return func_name + "".join(f"{arg}" for arg in args)


class CacheKeyInterface(ABC):
    """Strategy for deriving cache keys from function calls."""

    @abstractmethod
    def key(self, func_name: str, args: Sequence[Any]) -> str:
        """
        Derive the cache key for one call.

        Args:
            func_name: Identifier of the cached function
            args: Ordered argument values of the call

        Returns:
            Cache key string
        """
        pass


class DefaultCacheKey(CacheKeyInterface):
    """Key deriver using plain string concatenation (see make_key)."""

    def key(self, func_name: str, args: Sequence[Any]) -> str:
        return make_key(func_name, args)
