"""Context management for structured logging.

Provides automatic context injection into log records using contextvars, so
the tenant and request a directory call belongs to appear in every record
without being passed to each logging call. Each asyncio task works on its own
copy of the context.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(tenant_id="acme", request_id="abc-123")
        logger.info("Listing users")  # Includes tenant_id and request_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current task."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the contextvars context onto each LogRecord.

    Applied to the root logger, so every logger benefits. Attributes already
    present on the record (for example from ``extra=``) win over context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


__all__ = [
    "ContextInjectingFilter",
    "clear_log_context",
    "get_log_context",
    "set_log_context",
]
