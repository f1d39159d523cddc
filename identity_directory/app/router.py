"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from identity_directory.core.settings import get_graphql_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

    from identity_directory.core.settings.graphql import GraphQLSettings

logger = logging.getLogger(__name__)


def setup_routers(
    app: FastAPI,
    graphql_settings: GraphQLSettings | None = None,
) -> None:
    """Register feature routers with the application.

    Args:
        app: FastAPI application instance.
        graphql_settings: Optional override controlling GraphQL availability.
    """
    graphql_settings = graphql_settings or get_graphql_settings()

    if graphql_settings.enabled:
        from identity_directory.features.graphql.router import create_graphql_router

        app.include_router(
            create_graphql_router(), prefix=graphql_settings.path, tags=["graphql"],
        )
        logger.info(
            "GraphQL endpoint enabled at %s (ide: %s)",
            graphql_settings.path,
            graphql_settings.get_graphql_ide() or "disabled",
        )

    logger.info(
        "Router setup complete",
        extra={"graphql_enabled": graphql_settings.enabled},
    )


__all__ = ["setup_routers"]
