"""Logging configuration for the school portal.

Settings are derived from the runtime environment (development, testing,
production) and can be overridden with ``LOG_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

_TRUTHY = ("true", "1", "yes")


class Environment(Enum):
    """Runtime environment the portal is running in."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogOutput(Enum):
    """Where log records are written."""

    CONSOLE = "console"
    FILE = "file"
    BOTH = "both"


@dataclass
class LogConfig:
    """Logging configuration container."""

    level: str = "INFO"
    output: LogOutput = LogOutput.CONSOLE
    json_format: bool = False
    use_rich: bool = True
    mask_sensitive: bool = True
    log_file: Path | None = None
    # 10MB
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5
    module_levels: dict[str, str] = field(default_factory=dict)
    extra_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a configuration from the environment.

        Environment variables:
            LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
            LOG_OUTPUT: console, file or both
            LOG_JSON: emit JSON records (true/false)
            LOG_RICH: use the Rich console handler (true/false)
            LOG_MASK_SENSITIVE: mask credentials and tokens (true/false)
            LOG_FILE: log file path, required for file output
            LOG_MAX_SIZE: rotation size in bytes
            LOG_BACKUP_COUNT: rotated files to keep

        Returns:
            LogConfig for the detected environment with overrides applied
        """
        config = cls.defaults_for(detect_environment())

        if level := os.getenv("LOG_LEVEL"):
            config.level = level.upper()

        if output := os.getenv("LOG_OUTPUT"):
            try:
                config.output = LogOutput(output.lower())
            except ValueError:
                pass

        if json_format := os.getenv("LOG_JSON"):
            config.json_format = json_format.lower() in _TRUTHY

        if use_rich := os.getenv("LOG_RICH"):
            config.use_rich = use_rich.lower() in _TRUTHY

        if mask_sensitive := os.getenv("LOG_MASK_SENSITIVE"):
            config.mask_sensitive = mask_sensitive.lower() in _TRUTHY

        if log_file := os.getenv("LOG_FILE"):
            config.log_file = Path(log_file)

        if max_size := os.getenv("LOG_MAX_SIZE"):
            try:
                config.max_file_size = int(max_size)
            except ValueError:
                pass

        if backup_count := os.getenv("LOG_BACKUP_COUNT"):
            try:
                config.backup_count = int(backup_count)
            except ValueError:
                pass

        return config

    @classmethod
    def defaults_for(cls, env: Environment) -> LogConfig:
        """Default configuration for an environment."""
        if env == Environment.PRODUCTION:
            return cls(level="INFO", output=LogOutput.BOTH, json_format=True, use_rich=False)

        if env == Environment.TESTING:
            return cls(level="DEBUG", output=LogOutput.CONSOLE, use_rich=False)

        return cls(level="DEBUG", output=LogOutput.CONSOLE, use_rich=True)


def detect_environment() -> Environment:
    """Detect the runtime environment from ``ENVIRONMENT``/``ENV`` or pytest."""
    env_name = os.getenv("ENVIRONMENT", os.getenv("ENV", "")).lower()
    if env_name in ("prod", "production"):
        return Environment.PRODUCTION
    if env_name in ("test", "testing") or os.getenv("PYTEST_CURRENT_TEST"):
        return Environment.TESTING
    return Environment.DEVELOPMENT


_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Return the active logging configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = LogConfig.from_env()
    return _config


def set_config(config: LogConfig) -> None:
    """Replace the active logging configuration."""
    global _config
    _config = config


def reset_config() -> None:
    """Forget the active configuration so the next call re-reads the environment."""
    global _config
    _config = None
