"""Mutation resolvers for the GraphQL API.

Provides write operations for users:
- createUser(id, input): create, returning the id
- updateUser(id, input): update, returning the id
- upsertUser(id, input): update if present, create otherwise (not atomic)
- deleteUser(id): delete
"""

from __future__ import annotations

import logging

import strawberry
from strawberry.types import Info

from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.types.users import UserInput

logger = logging.getLogger(__name__)


@strawberry.type(description="Root mutation type")
class Mutation:
    """GraphQL Mutation resolvers."""

    @strawberry.mutation(description="Create a user; the provider assigns an id when none is given")
    async def create_user(
        self,
        info: Info[GraphQLContext, None],
        input: UserInput,
        id: strawberry.ID | None = None,
    ) -> strawberry.ID:
        uid = await info.context.directory.create(str(id) if id else None, input.to_create())
        return strawberry.ID(uid)

    @strawberry.mutation(description="Update an existing user")
    async def update_user(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        input: UserInput,
    ) -> strawberry.ID:
        uid = await info.context.directory.update(str(id), input.to_update())
        return strawberry.ID(uid)

    @strawberry.mutation(description="Update the user if it exists, create it otherwise")
    async def upsert_user(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        input: UserInput,
    ) -> strawberry.ID:
        uid = await info.context.directory.upsert(str(id), input.to_update())
        return strawberry.ID(uid)

    @strawberry.mutation(description="Delete a user")
    async def delete_user(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
    ) -> bool:
        await info.context.directory.delete(str(id))
        return True


__all__ = ["Mutation"]
