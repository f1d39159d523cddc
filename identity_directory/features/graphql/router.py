"""GraphQL router for FastAPI integration.

Provides:
- GraphQL endpoint (mounted with prefix by app/router.py)
- GraphQL IDE options (GraphiQL, Apollo Sandbox, Pathfinder)
- Request context bound to the tenant named by the request header
"""

from __future__ import annotations

from collections.abc import AsyncIterator
import logging
from typing import Annotated, Any, Literal, cast

from fastapi import BackgroundTasks, Depends, Request, Response
from strawberry.fastapi import GraphQLRouter

from identity_directory.core.settings import get_graphql_settings, get_identity_settings
from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.schema import schema
from identity_directory.features.tokens.service import TokenService
from identity_directory.features.users.service import UserDirectory
from identity_directory.infra.identity.registry import IdentityClients, get_identity_registry
from identity_directory.infra.logging import set_log_context

logger = logging.getLogger(__name__)


def get_tenant_id(request: Request) -> str | None:
    """Read the tenant key from the configured header, falling back to the default tenant."""
    settings = get_identity_settings()
    tenant_id = request.headers.get(settings.tenant_header, "").strip()
    return tenant_id or settings.default_tenant_id


async def get_identity_clients(
    tenant_id: Annotated[str | None, Depends(get_tenant_id)],
) -> AsyncIterator[IdentityClients]:
    """Hold the tenant's clients for the whole request."""
    async with get_identity_registry().lease(tenant_id) as clients:
        yield clients


async def get_graphql_context(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    clients: Annotated[IdentityClients, Depends(get_identity_clients)],
) -> GraphQLContext:
    """Create GraphQL context from FastAPI dependencies.

    Args:
        request: FastAPI request
        response: FastAPI response (for setting headers/cookies)
        background_tasks: FastAPI background tasks
        clients: Identity clients of the request's tenant

    Returns:
        GraphQLContext for use in resolvers
    """
    set_log_context(tenant_id=clients.tenant_id)

    return GraphQLContext(
        request=request,
        response=response,
        background_tasks=background_tasks,
        directory=UserDirectory(clients.backend),
        tokens=TokenService(clients.backend, clients.rest),
        tenant_id=clients.tenant_id,
    )


def create_graphql_router() -> GraphQLRouter:
    """Create GraphQL router with settings-based configuration.

    The router serves its own root, so the prefix it is included under is the
    endpoint path.
    """
    settings = get_graphql_settings()

    graphql_ide_setting = settings.get_graphql_ide()
    selected_ide: Literal["graphiql", "apollo-sandbox", "pathfinder"] | None = None
    if graphql_ide_setting in ("graphiql", "apollo-sandbox", "pathfinder"):
        selected_ide = cast(
            "Literal['graphiql', 'apollo-sandbox', 'pathfinder']", graphql_ide_setting
        )

    return GraphQLRouter(
        schema,
        context_getter=cast("Any", get_graphql_context),
        graphql_ide=selected_ide,
    )


__all__ = [
    "create_graphql_router",
    "get_graphql_context",
    "get_identity_clients",
    "get_tenant_id",
]
