"""
Configuration module for storehouse.

Usage:
    from storehouse.config import get_config

    config = get_config()
    logger.info("Routing configuration", actor_pattern=config.routing.actor_pattern)
"""

import sys
import threading
from functools import lru_cache
from os import getenv

from .models import AppConfig, InventoryConfig, LoggingConfig, RoutingConfig

__all__ = ["AppConfig", "InventoryConfig", "LoggingConfig", "RoutingConfig", "get_config", "reset_config"]

_config_lock = threading.Lock()


def _is_test_mode() -> bool:
    """Detect if running under pytest."""
    if "pytest" in sys.modules:
        return True
    return bool(getenv("PYTEST_CURRENT_TEST"))


@lru_cache(maxsize=1)
def _get_config_cached() -> AppConfig:
    with _config_lock:
        return AppConfig()


def get_config() -> AppConfig:
    """
    Get application configuration (singleton in production, fresh in tests).

    Configuration is loaded from environment variables and .env file.

    Raises:
        pydantic.ValidationError: If configuration values are invalid
    """
    if _is_test_mode():
        return AppConfig()
    return _get_config_cached()


def reset_config() -> None:
    """Clear the configuration cache so the next get_config() reloads it."""
    with _config_lock:
        _get_config_cached.cache_clear()
