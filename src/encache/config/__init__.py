"""
encache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import CacheBackend, CacheConfig, EncacheConfig, LogLevel

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "EncacheConfig",
    # Enums
    "CacheBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
]
