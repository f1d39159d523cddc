"""Logging infrastructure.

Provides structured logging with:
- JSONL format for log aggregation
- Automatic context injection (tenant_id, request_id)
- QueueHandler + QueueListener for non-blocking I/O
- OpenTelemetry trace correlation

Basic usage:
    from identity_directory.infra.logging import set_log_context
    import logging

    logger = logging.getLogger(__name__)

    set_log_context(tenant_id="acme")
    logger.info("Listing users")  # Automatically includes tenant_id
"""

from identity_directory.infra.logging.config import (
    configure_logging,
    setup_logging,
    shutdown,
)
from identity_directory.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from identity_directory.infra.logging.formatters import JSONFormatter
from identity_directory.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger, lazy

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "lazy",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
