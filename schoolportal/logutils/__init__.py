"""School portal logging infrastructure.

- Structured JSON logging for production
- Rich console output for development
- Correlation id and acting user per HTTP request
- Masking of passwords, session tokens and emails

Usage:
    from schoolportal.logutils import get_logger, with_context

    logger = get_logger(__name__)

    with with_context(operation="create_grade", user_id=2, role="professor"):
        logger.info("Grade recorded", extra={"extra_data": {"grade_id": 17}})
"""

from .config import Environment, LogConfig, LogOutput, get_config, reset_config, set_config
from .context import (
    LogContext,
    clear_context,
    get_context,
    get_correlation_id,
    update_context,
    with_context,
)
from .formatters import CompactFormatter, JSONFormatter, StandardFormatter
from .handlers import RichConsoleHandler, SafeRotatingFileHandler, StreamHandlerWithFlush
from .logger import configure_root_logger, get_logger, reset_logging
from .masking import MASK, is_sensitive_key, mask_dict, mask_sensitive_string

__all__ = [
    "get_logger",
    "configure_root_logger",
    "reset_logging",
    "with_context",
    "get_context",
    "clear_context",
    "get_correlation_id",
    "update_context",
    "LogContext",
    "LogConfig",
    "LogOutput",
    "Environment",
    "get_config",
    "set_config",
    "reset_config",
    "JSONFormatter",
    "StandardFormatter",
    "CompactFormatter",
    "RichConsoleHandler",
    "SafeRotatingFileHandler",
    "StreamHandlerWithFlush",
    "mask_sensitive_string",
    "mask_dict",
    "is_sensitive_key",
    "MASK",
]
