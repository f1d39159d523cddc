"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from identity_directory.app.exception_handlers import configure_exception_handlers
from identity_directory.app.lifespan import lifespan
from identity_directory.app.middleware import configure_middleware
from identity_directory.app.router import setup_routers
from identity_directory.core.settings import get_settings


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        description=app_settings.description,
        version=app_settings.version,
        openapi_url=app_settings.get_openapi_url(),
        root_path=app_settings.root_path,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    configure_middleware(app)
    configure_exception_handlers(app)
    setup_routers(app, settings.graphql)

    return app
