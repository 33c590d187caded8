"""
encache — Cache Module

Function-result caching with pluggable backends.

- keys.py: cache key derivation from function name + arguments
- codec.py: JSON codec for result tuples with typed decoding
- interface.py: abstract interface all backends implement
- backends/: memory and Redis backends
- factory.py: backend creation from configuration

Usage:
    from encache.cache import create_cache, make_key

    cache = create_cache()
    key = make_key("add", [1, 2])
    if (results := await cache.get(key)) is None:
        results = (add(1, 2),)
        await cache.set(key, results, ttl=60)
"""

from .codec import ResultCodec, Results, ResultSignature, signature_from_values, signature_of
from .factory import create_cache
from .interface import CacheInterface
from .keys import CacheKeyInterface, DefaultCacheKey, make_key

__all__ = [
    # Factory
    "create_cache",
    # Interface
    "CacheInterface",
    # Keys
    "make_key",
    "CacheKeyInterface",
    "DefaultCacheKey",
    # Codec
    "ResultCodec",
    "Results",
    "ResultSignature",
    "signature_of",
    "signature_from_values",
]
