"""Log formatters: JSON for production, plain text for terminals."""

from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from .context import get_context
from .masking import mask_dict, mask_sensitive_string


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    The record carries the request context (correlation id, acting user)
    and any structured data passed as ``extra={"extra_data": {...}}``.
    """

    def __init__(
        self,
        mask_sensitive: bool = True,
        extra_fields: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.mask_sensitive = mask_sensitive
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if self.mask_sensitive:
            message = mask_sensitive_string(message)

        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "context": get_context().to_dict(),
        }

        if record.exc_info and record.exc_info[0]:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        extra = getattr(record, "extra_data", None)
        if extra:
            if self.mask_sensitive and isinstance(extra, dict):
                extra = mask_dict(extra)
            log_data["extra"] = extra

        log_data.update(self.extra_fields)
        return json.dumps(log_data, default=str)


def _actor_label() -> str:
    """``role#user_id`` of the acting user, or ``-`` before the session is known."""
    ctx = get_context()
    if ctx.user_id is None:
        return "-"
    return f"{ctx.role or '?'}#{ctx.user_id}"


class StandardFormatter(logging.Formatter):
    """TIMESTAMP - LEVEL - LOGGER - [CORRELATION_ID ACTOR] - MESSAGE"""

    DEFAULT_FORMAT = (
        "%(asctime)s - %(levelname)s - %(name)s - [%(correlation_id)s %(actor)s] - %(message)s"
    )
    DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self, mask_sensitive: bool = True) -> None:
        super().__init__(fmt=self.DEFAULT_FORMAT, datefmt=self.DEFAULT_DATE_FORMAT)
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = get_context().correlation_id[:8]
        record.actor = _actor_label()
        result = super().format(record)
        if self.mask_sensitive:
            result = mask_sensitive_string(result)
        return result


class CompactFormatter(logging.Formatter):
    """``LEVEL actor message`` for the Rich console handler."""

    LEVEL_LABELS = {
        "DEBUG": "DBG",
        "INFO": "INF",
        "WARNING": "WRN",
        "ERROR": "ERR",
        "CRITICAL": "CRT",
    }

    def __init__(self, mask_sensitive: bool = True) -> None:
        super().__init__()
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        level = self.LEVEL_LABELS.get(record.levelname, record.levelname)
        message = record.getMessage()
        if self.mask_sensitive:
            message = mask_sensitive_string(message)
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict) and extra:
            if self.mask_sensitive:
                extra = mask_dict(extra)
            message += " " + " ".join(f"{k}={v}" for k, v in extra.items())
        return f"{level} {_actor_label():<14} {message}"
