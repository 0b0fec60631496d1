"""
Pydantic-based configuration models for storehouse.

Every section is a BaseSettings model reading its own environment prefix,
aggregated by AppConfig, which also reads a local .env file.
"""

import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_SORT_MODES = ("amount", "lexical")


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a string from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list | tuple | set | frozenset):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    enabled: bool = Field(default=True, description="Write the storehouse log file")
    file: str = Field(default="storehouse.log", description="Path of the log file")
    level: str = Field(default="INFO", description="Log level")
    reset_on_start: bool = Field(default=True, description="Delete the log file at start-up")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of {list(VALID_LOG_LEVELS)}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "STOREHOUSE_LOG_", "case_sensitive": False, "extra": "ignore"}


class RoutingConfig(BaseSettings):
    """Transfer channel selection between the actor and its backends."""

    actor_pattern: str = Field(
        default=r"^turtle_",
        description="Regular expression matching the transfer channel names of actors",
    )
    excluded_channels: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Channel names never used for transfers (other actors on the network)",
    )

    @field_validator("actor_pattern")
    @classmethod
    def validate_actor_pattern(cls, v: str) -> str:
        """Validate that the actor pattern is a usable regular expression."""
        if not v:
            raise ValueError("actor_pattern cannot be empty")
        try:
            re.compile(v)
        except re.error as exc:
            logger.error("Invalid actor pattern", actor_pattern=v, error=str(exc))
            raise ValueError(f"actor_pattern is not a valid regular expression: {exc}") from exc
        return v

    @field_validator("excluded_channels", mode="before")
    @classmethod
    def parse_excluded_channels(cls, v: Any) -> list[str]:
        """Accept JSON lists or comma separated values."""
        return _parse_env_list(v)

    model_config = {"env_prefix": "STOREHOUSE_ROUTING_", "case_sensitive": False, "extra": "ignore"}


class InventoryConfig(BaseSettings):
    """Local inventory and display settings."""

    local_slot_count: int | None = Field(
        default=None,
        description="Local slots visited by a deposit pass; the inventory size when unset",
    )
    default_sort_mode: str = Field(default="amount", description="Initial display sort mode")
    page_size: int = Field(default=16, description="Rows shown per display page")

    @field_validator("local_slot_count", "page_size")
    @classmethod
    def validate_positive(cls, v: int | None) -> int | None:
        """Validate counts are at least one."""
        if v is not None and v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator("default_sort_mode")
    @classmethod
    def validate_sort_mode(cls, v: str) -> str:
        """Validate the sort mode name."""
        v_lower = v.lower()
        if v_lower not in VALID_SORT_MODES:
            raise ValueError(f"Sort mode must be one of {list(VALID_SORT_MODES)}, got '{v}'")
        return v_lower

    model_config = {"env_prefix": "STOREHOUSE_INVENTORY_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    This is the main configuration class that aggregates all other configs.
    Access via get_config() singleton function.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    inventory: InventoryConfig = Field(default_factory=InventoryConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}
