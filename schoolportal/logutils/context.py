"""Per-request logging context.

Each HTTP request gets a correlation id and, once the session is resolved,
the acting user's id and role. The context lives in a ``ContextVar`` so it
follows the request through threadpool and async boundaries.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LogContext:
    """Contextual fields attached to every log record."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str | None = None
    user_id: int | None = None
    role: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"correlation_id": self.correlation_id}
        if self.operation:
            result["operation"] = self.operation
        if self.user_id is not None:
            result["user_id"] = self.user_id
        if self.role:
            result["role"] = self.role
        result.update(self.extra)
        return result


_log_context: ContextVar[LogContext | None] = ContextVar("log_context", default=None)


def get_context() -> LogContext:
    """Get the current context, creating an empty one if none is bound."""
    ctx = _log_context.get()
    if ctx is None:
        ctx = LogContext()
        _log_context.set(ctx)
    return ctx


def clear_context() -> None:
    _log_context.set(None)


def get_correlation_id() -> str:
    return get_context().correlation_id


class ContextManager:
    """Bind a fresh ``LogContext`` for the duration of a ``with`` block."""

    def __init__(
        self,
        correlation_id: str | None = None,
        operation: str | None = None,
        user_id: int | None = None,
        role: str | None = None,
        **extra: Any,
    ) -> None:
        self.new_context = LogContext(
            correlation_id=correlation_id or str(uuid.uuid4()),
            operation=operation,
            user_id=user_id,
            role=role,
            extra=extra,
        )
        self._token: Any = None

    def __enter__(self) -> LogContext:
        self._token = _log_context.set(self.new_context)
        return self.new_context

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _log_context.reset(self._token)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def with_context(
    correlation_id: str | None = None,
    operation: str | None = None,
    user_id: int | None = None,
    role: str | None = None,
    **extra: Any,
) -> ContextManager:
    """Create a scoped logging context.

    Usage:
        with with_context(operation="delete_user", user_id=1, role="admin"):
            logger.info("Deleting user")
    """
    return ContextManager(
        correlation_id=correlation_id,
        operation=operation,
        user_id=user_id,
        role=role,
        **extra,
    )


def update_context(**kwargs: Any) -> None:
    """Set fields on the current context; unknown names go to ``extra``."""
    ctx = get_context()
    for key, value in kwargs.items():
        if key != "extra" and hasattr(ctx, key):
            setattr(ctx, key, value)
        else:
            ctx.extra[key] = value
