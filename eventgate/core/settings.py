"""eventgate configuration management.

Configuration is loaded from multiple sources with the following priority
(highest to lowest):
1. Explicit overrides passed to ``get_settings``
2. Environment variables (with EVENTGATE_ prefix)
3. Configuration files (eventgate.config.yaml)
4. Default values

Example usage:
    from eventgate.core.settings import get_settings

    settings = get_settings()
    print(settings.buffer.identity_comparison)

Environment variable support:
    EVENTGATE_LOGGING__LEVEL=DEBUG
    EVENTGATE_BUFFER__SYNCHRONIZED=true
    EVENTGATE_BUFFER__IDENTITY_COMPARISON=casefold
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventgate.protocol import IdentityComparison

logger = logging.getLogger(__name__)

# Default config file names to search for
CONFIG_FILE_NAMES = ["eventgate.config.yaml", "eventgate.config.yml"]

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Sections merged field by field between the config file and overrides
NESTED_SECTIONS = ["buffer", "logging"]


def _find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file by searching current directory and parents.

    Args:
        start_dir: Directory to start search from.
            Defaults to current working directory.

    Returns:
        Path to config file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()

    # Limit search depth to prevent infinite loops
    for _ in range(10):
        for filename in CONFIG_FILE_NAMES:
            config_path = search_dir / filename
            if config_path.exists():
                return config_path

        parent = search_dir.parent
        if parent == search_dir:
            break
        search_dir = parent

    return None


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary of configuration values.
    """
    try:
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
            return config if isinstance(config, dict) else {}
    except yaml.YAMLError as e:
        logger.warning("Failed to parse config file %s: %s", config_path, e)
        return {}
    except OSError as e:
        logger.warning("Failed to read config file %s: %s", config_path, e)
        return {}


def _validate_level(v: str) -> str:
    upper_v = v.upper()
    if upper_v not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
    return upper_v


class BufferSettings(BaseModel):
    """Admission buffer settings."""

    identity_comparison: IdentityComparison = Field(
        default=IdentityComparison.ORDINAL,
        description="How identities are matched (ordinal, casefold)",
    )
    synchronized: bool = Field(
        default=False,
        description="Serialize admit calls behind a lock for shared buffers",
    )


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_output: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    file: str | None = Field(
        default=None,
        description="Log file path (optional)",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        return _validate_level(v)


class EventGateSettings(BaseSettings):
    """Main eventgate configuration settings.

    Example:
        settings = EventGateSettings()
        print(settings.logging.level)

        settings = EventGateSettings(buffer={"synchronized": True})
        print(settings.buffer.synchronized)
    """

    model_config = SettingsConfigDict(
        env_prefix="EVENTGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    buffer: BufferSettings = Field(default_factory=BufferSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def load_from_config_file(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Load configuration from YAML file and merge with provided data.

        This validator runs before field validation and merges config file
        values with any explicitly provided values.
        """
        if data.get("_skip_file_loading"):
            data.pop("_skip_file_loading", None)
            return data

        config_path = _find_config_file()
        if config_path:
            file_config = _load_yaml_config(config_path)
            if file_config:
                logger.debug("Loaded configuration from %s", config_path)
                return _merge_config(file_config, data)

        return data

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary."""
        return self.model_dump(mode="json")


def _merge_config(
    file_config: dict[str, Any], data: dict[str, Any]
) -> dict[str, Any]:
    """Merge file values under explicit values, section by section."""
    merged = {**file_config, **data}
    for section in NESTED_SECTIONS:
        file_section = file_config.get(section)
        if not isinstance(file_section, dict):
            continue
        data_section = data.get(section)
        merged[section] = {
            **file_section,
            **(data_section if isinstance(data_section, dict) else {}),
        }
    return merged


def get_settings(
    config_file: Path | None = None,
    **overrides: Any,
) -> EventGateSettings:
    """Get eventgate settings instance.

    Args:
        config_file: Optional explicit path to configuration file.
        **overrides: Explicit configuration overrides.

    Returns:
        Configured EventGateSettings instance.

    Example:
        settings = get_settings(logging={"level": "DEBUG"})
        settings = get_settings(config_file=Path("custom.yaml"))
    """
    if config_file and config_file.exists():
        file_config = _load_yaml_config(config_file)
        merged = _merge_config(file_config, overrides)
        return EventGateSettings(_skip_file_loading=True, **merged)

    return EventGateSettings(**overrides)


@lru_cache
def get_cached_settings() -> EventGateSettings:
    """Get cached settings instance.

    Note:
        The cache can be cleared with get_cached_settings.cache_clear().
    """
    return get_settings()
