"""Application lifespan management.

Startup Order:
1. Logging
2. Identity client registry (built lazily, per tenant, on first request)

Shutdown Order: Reverse of startup
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from identity_directory.core.settings import (
    get_app_settings,
    get_identity_settings,
    get_logging_settings,
)
from identity_directory.infra.identity.registry import get_identity_registry
from identity_directory.infra.logging.config import setup_logging, shutdown

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_core() -> None:
    """Configure logging."""
    app = get_app_settings()
    setup_logging(log_settings=get_logging_settings(), force=True)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment},
    )


async def _startup_identity() -> None:
    """Log how identity clients will be built."""
    identity = get_identity_settings()
    registry = get_identity_registry()
    logger.info(
        "Identity client registry ready",
        extra={
            "project_id": identity.project_id,
            "emulator_enabled": identity.emulator_enabled,
            "tenant_header": identity.tenant_header,
            "max_tenants": registry.max_entries,
        },
    )


async def _shutdown_identity() -> None:
    """Close every cached tenant client bundle."""
    registry = get_identity_registry()
    cached = len(registry)
    await registry.aclose()
    logger.info("Identity clients closed", extra={"closed_tenants": cached})


def _shutdown_core() -> None:
    """Flush and stop the logging queue listener."""
    logger.info("Application shutdown complete")
    shutdown()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    _ = app

    await _startup_core()
    await _startup_identity()

    app_settings = get_app_settings()
    logger.info(
        "Application is LIVE and ready to serve requests on http://%s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "version": app_settings.version,
        },
    )

    try:
        yield
    finally:
        logger.info("Application shutting down")
        await _shutdown_identity()
        _shutdown_core()


__all__ = ["lifespan"]
