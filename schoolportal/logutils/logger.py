"""Logger factory for the school portal."""

from __future__ import annotations

import logging

from .config import LogConfig, LogOutput, get_config
from .formatters import CompactFormatter, JSONFormatter, StandardFormatter
from .handlers import RichConsoleHandler, SafeRotatingFileHandler, StreamHandlerWithFlush

_configured_loggers: set[str] = set()
_root_configured: bool = False


def get_logger(name: str | None = None, config: LogConfig | None = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (usually ``__name__``)
        config: Configuration to apply instead of the active one

    Returns:
        Logger with the portal's handlers attached
    """
    logger = logging.getLogger(name)
    key = name or "root"
    if key not in _configured_loggers:
        _configure_logger(logger, config or get_config())
        _configured_loggers.add(key)
    return logger


def _configure_logger(logger: logging.Logger, config: LogConfig) -> None:
    level = config.module_levels.get(logger.name, config.level)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    # Named loggers carry their own handlers; propagating would duplicate output.
    if logger.name and logger.name != "root":
        logger.propagate = False

    for handler in _create_handlers(config):
        logger.addHandler(handler)


def _create_handlers(config: LogConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if config.output in (LogOutput.CONSOLE, LogOutput.BOTH):
        handler: logging.Handler
        if config.json_format:
            handler = StreamHandlerWithFlush()
            handler.setFormatter(
                JSONFormatter(mask_sensitive=config.mask_sensitive, extra_fields=config.extra_fields)
            )
        elif config.use_rich:
            handler = RichConsoleHandler()
            handler.setFormatter(CompactFormatter(mask_sensitive=config.mask_sensitive))
        else:
            handler = StreamHandlerWithFlush()
            handler.setFormatter(StandardFormatter(mask_sensitive=config.mask_sensitive))
        handlers.append(handler)

    if config.output in (LogOutput.FILE, LogOutput.BOTH) and config.log_file:
        file_handler = SafeRotatingFileHandler(
            filename=config.log_file,
            max_bytes=config.max_file_size,
            backup_count=config.backup_count,
        )
        # Files are always JSON so they can be shipped to an aggregator.
        file_handler.setFormatter(
            JSONFormatter(mask_sensitive=config.mask_sensitive, extra_fields=config.extra_fields)
        )
        handlers.append(file_handler)

    return handlers


def configure_root_logger(config: LogConfig | None = None) -> None:
    """Configure the root logger once at process start."""
    global _root_configured
    if _root_configured:
        return
    _configure_logger(logging.getLogger(), config or get_config())
    _root_configured = True


def reset_logging() -> None:
    """Drop handlers from every logger configured here."""
    global _root_configured
    for name in _configured_loggers:
        logging.getLogger(None if name == "root" else name).handlers.clear()
    _configured_loggers.clear()
    _root_configured = False
