"""
encache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import EncacheConfig

logger = logging.getLogger(__name__)

_config_instance: EncacheConfig | None = None


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> EncacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated EncacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect cache backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL") or None
    cache_backend = "redis" if redis_url else "memory"

    # Raw strings are coerced (and rejected) by the pydantic models
    config_dict = {
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "cache": {
            "backend": os.getenv("CACHE_BACKEND", cache_backend).lower(),
            "ttl_seconds": os.getenv("CACHE_TTL_SECONDS", "3600"),
            "namespace": os.getenv("CACHE_NAMESPACE", "encache"),
            "sweep_interval_seconds": os.getenv("CACHE_SWEEP_INTERVAL_SECONDS") or None,
            "redis_url": redis_url,
            "redis_max_connections": os.getenv("REDIS_MAX_CONNECTIONS", "10"),
            "redis_socket_timeout": os.getenv("REDIS_SOCKET_TIMEOUT", "5"),
        },
    }

    try:
        _config_instance = EncacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (cache backend: {_config_instance.cache.backend})",
            extra={"cache_backend": str(_config_instance.cache.backend)},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(include_url=False)},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors(include_url=False)},
        ) from e


def get_config() -> EncacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current EncacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> EncacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded EncacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)
