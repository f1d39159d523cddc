"""Query resolvers for the GraphQL API.

Provides read operations for users:
- users(filter, order, first, last, before, after): Relay connection
- user(id): Get a single user by ID
- token: Namespace of identity token operations
"""

from __future__ import annotations

import logging
from typing import Annotated

import strawberry
from strawberry.types import Info

from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.resolvers.tokens import TokenNamespace
from identity_directory.features.graphql.types.users import (
    UserConnection,
    UserFilterInput,
    UserOrderInput,
    UserType,
)
from identity_directory.features.users.schemas import UserListRequest

logger = logging.getLogger(__name__)

# Type aliases for annotated arguments with descriptions
FilterArg = Annotated[
    list[UserFilterInput] | None,
    strawberry.argument(description="Equality filters, applied in order (logical AND)"),
]
OrderArg = Annotated[
    list[UserOrderInput] | None,
    strawberry.argument(description="Sort keys (not supported)"),
]
FirstArg = Annotated[
    int | None, strawberry.argument(description="Number of items to return (forward pagination)"),
]
LastArg = Annotated[
    int | None, strawberry.argument(description="Must not exceed first"),
]
BeforeArg = Annotated[
    str | None, strawberry.argument(description="Backward cursor (not supported)"),
]
AfterArg = Annotated[
    str | None, strawberry.argument(description="Cursor to start after (forward pagination)"),
]


@strawberry.type(description="Root query type")
class Query:
    """GraphQL Query resolvers."""

    @strawberry.field(description="List users with Relay-style cursor pagination")
    async def users(
        self,
        info: Info[GraphQLContext, None],
        filter: FilterArg = None,
        order: OrderArg = None,
        first: FirstArg = None,
        last: LastArg = None,
        before: BeforeArg = None,
        after: AfterArg = None,
    ) -> UserConnection:
        request = UserListRequest(
            filters=[item.to_pydantic() for item in filter or []],
            order=[item.to_pydantic() for item in order or []],
            first=first,
            last=last,
            before=before,
            after=after,
        )
        connection = await info.context.directory.list_users(request)
        return UserConnection.from_connection(connection)

    @strawberry.field(description="Get a single user by ID")
    async def user(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
    ) -> UserType | None:
        record = await info.context.directory.find(str(id))
        if record is None:
            return None
        return UserType.from_record(record)

    @strawberry.field(description="Identity token operations")
    def token(self) -> TokenNamespace:
        return TokenNamespace()


__all__ = ["Query"]
