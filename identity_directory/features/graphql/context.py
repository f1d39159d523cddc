"""GraphQL context for request-scoped dependencies.

The context is created fresh for each GraphQL request and provides:
- The user directory bound to the request's tenant
- The token service bound to the same tenant
- The tenant id (also bound into the logging context)

Following Strawberry's FastAPI integration pattern:
https://strawberry.rocks/docs/integrations/fastapi#context_getter
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from strawberry.fastapi import BaseContext

if TYPE_CHECKING:
    from starlette.background import BackgroundTasks
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.websockets import WebSocket

    from identity_directory.features.tokens.service import TokenService
    from identity_directory.features.users.service import UserDirectory


@dataclass
class GraphQLContext(BaseContext):
    """Request context for GraphQL operations.

    Standard fields (per Strawberry docs):
    - request: The HTTP request (or None outside HTTP, e.g. in tests)
    - response: The HTTP response
    - background_tasks: FastAPI BackgroundTasks

    Custom fields:
    - directory: UserDirectory for the tenant
    - tokens: TokenService for the tenant
    - tenant_id: Tenant key from the request header, None for the default tenant

    Example usage in resolver:
        @strawberry.field
        async def user(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> UserType | None:
            record = await info.context.directory.find(str(id))
            return UserType.from_record(record) if record else None
    """

    request: Request | WebSocket | None = None
    response: Response | None = None
    background_tasks: BackgroundTasks | None = None

    directory: UserDirectory = field(default=None)  # type: ignore[assignment]
    tokens: TokenService = field(default=None)  # type: ignore[assignment]
    tenant_id: str | None = None


__all__ = ["GraphQLContext"]
