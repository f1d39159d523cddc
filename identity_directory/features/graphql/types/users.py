"""GraphQL types for the users feature.

Provides:
- UserType with lazily resolved email action links
- UserEdge / UserConnection (Relay connection over the directory)
- Filter, order and write inputs
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError
import strawberry
from strawberry.types import Info

from identity_directory.core.exceptions import InvalidArgumentException
from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.types.base import PageInfoType
from identity_directory.features.users.schemas import (
    FilterOperator,
    OrderDirection,
    UserCreate,
    UserFilter,
    UserOrder,
    UserUpdate,
)

if TYPE_CHECKING:
    from identity_directory.core.pagination import Connection
    from identity_directory.infra.identity.models import UserRecord

strawberry.enum(
    FilterOperator,
    name="FilterOperator",
    description="Comparison operator; only EQ is supported when evaluated",
)
strawberry.enum(OrderDirection, name="OrderDirection")


# ============================================================================
# User Type (Output)
# ============================================================================


@strawberry.type(name="UserLink", description="Email action links for a user")
class UserLinkType:
    """Links are generated by the provider only when a field is selected."""

    email: strawberry.Private[str | None]

    @strawberry.field(description="Email verification link")
    async def verification(self, info: Info[GraphQLContext, None]) -> str | None:
        if not self.email:
            return None
        return await info.context.directory.backend.generate_email_verification_link(self.email)

    @strawberry.field(description="Email sign-in link")
    async def sign_in(self, info: Info[GraphQLContext, None]) -> str | None:
        if not self.email:
            return None
        return await info.context.directory.backend.generate_sign_in_with_email_link(self.email)

    @strawberry.field(description="Password reset link")
    async def password_reset(self, info: Info[GraphQLContext, None]) -> str | None:
        if not self.email:
            return None
        return await info.context.directory.backend.generate_password_reset_link(self.email)


@strawberry.type(name="User", description="A user held by the identity provider")
class UserType:
    id: strawberry.ID
    email: str | None = None
    email_verified: bool | None = None
    phone_number: str | None = None
    disabled: bool = False

    @strawberry.field(description="Email action links")
    def link(self) -> UserLinkType:
        return UserLinkType(email=self.email)

    @classmethod
    def from_record(cls, record: UserRecord) -> UserType:
        return cls(
            id=strawberry.ID(record.id),
            email=record.email,
            email_verified=record.email_verified,
            phone_number=record.phone_number,
            disabled=record.disabled,
        )


# ============================================================================
# Edge and Connection Types for Pagination
# ============================================================================


@strawberry.type(description="Edge containing a user node and cursor")
class UserEdge:
    node: UserType
    cursor: str


@strawberry.type(description="Paginated list of users")
class UserConnection:
    """Relay-style connection for user pagination."""

    edges: list[UserEdge]
    page_info: PageInfoType

    @classmethod
    def from_connection(cls, connection: Connection[UserRecord]) -> UserConnection:
        return cls(
            edges=[
                UserEdge(node=UserType.from_record(edge.node), cursor=edge.cursor)
                for edge in connection.edges
            ],
            page_info=PageInfoType.from_pydantic(connection.page_info),
        )


# ============================================================================
# Input Types
# ============================================================================


@strawberry.input(name="UserFilterInput", description="Equality filter on a user field")
class UserFilterInput:
    field: str = strawberry.field(description="id, email or phoneNumber")
    value: str
    op: FilterOperator = FilterOperator.EQ

    def to_pydantic(self) -> UserFilter:
        return UserFilter(field=self.field, op=self.op, value=self.value)


@strawberry.input(name="UserOrderInput", description="Sort key (not supported by the provider)")
class UserOrderInput:
    field: str
    direction: OrderDirection = OrderDirection.ASC

    def to_pydantic(self) -> UserOrder:
        return UserOrder(field=self.field, direction=self.direction)


@strawberry.input(name="UserInput", description="User attributes; omitted fields are left unchanged")
class UserInput:
    email: str | None = strawberry.UNSET
    password: str | None = strawberry.UNSET
    email_verified: bool | None = strawberry.UNSET
    phone_number: str | None = strawberry.UNSET
    disabled: bool | None = strawberry.UNSET
    display_name: str | None = strawberry.UNSET
    photo_url: str | None = strawberry.UNSET

    def _values(self) -> dict[str, object]:
        names = (
            "email",
            "password",
            "email_verified",
            "phone_number",
            "disabled",
            "display_name",
            "photo_url",
        )
        return {name: getattr(self, name) for name in names if getattr(self, name) is not strawberry.UNSET}

    def to_create(self) -> UserCreate | UserUpdate:
        return _build(UserCreate, self._values())

    def to_update(self) -> UserCreate | UserUpdate:
        return _build(UserUpdate, self._values())


def _build(
    model: type[UserCreate] | type[UserUpdate], values: dict[str, object]
) -> UserCreate | UserUpdate:
    try:
        return model(**values)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        msg = f"Invalid user input: {', '.join(fields)}"
        raise InvalidArgumentException(msg, extra={"fields": fields}) from e


__all__ = [
    "UserConnection",
    "UserEdge",
    "UserFilterInput",
    "UserInput",
    "UserLinkType",
    "UserOrderInput",
    "UserType",
]
