"""
encache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration comes from environment variables (see loader.py).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Cache backend to use")
    ttl_seconds: float = Field(
        default=3600,
        gt=0,
        allow_inf_nan=False,
        description="Default TTL in seconds for cached results",
    )
    namespace: str = Field(default="encache", description="Cache key namespace/prefix")

    # Memory-specific settings
    sweep_interval_seconds: float | None = Field(
        default=None,
        gt=0,
        allow_inf_nan=False,
        description="Seconds between sweeps of expired entries (memory backend, None = no sweep)",
    )

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: float = Field(default=5, gt=0, description="Redis socket timeout in seconds")

    @model_validator(mode="after")
    def validate_redis_url(self) -> "CacheConfig":
        """Ensure redis_url is provided when backend is redis."""
        if self.backend == CacheBackend.REDIS and not self.redis_url:
            raise ValueError("redis_url is required when cache backend is 'redis'")
        return self


class EncacheConfig(BaseModel):
    """Root configuration for encache."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
