"""GraphQL type definitions.

This package contains Strawberry types for:
- Base types (PageInfo)
- User types, connection and inputs
- Token results
"""

from __future__ import annotations

from identity_directory.features.graphql.types.base import PageInfoType
from identity_directory.features.graphql.types.tokens import IdTokenType, RefreshTokenType
from identity_directory.features.graphql.types.users import (
    UserConnection,
    UserEdge,
    UserFilterInput,
    UserInput,
    UserLinkType,
    UserOrderInput,
    UserType,
)

__all__ = [
    # Base types
    "PageInfoType",
    # Users
    "UserConnection",
    "UserEdge",
    "UserFilterInput",
    "UserInput",
    "UserLinkType",
    "UserOrderInput",
    "UserType",
    # Tokens
    "IdTokenType",
    "RefreshTokenType",
]
