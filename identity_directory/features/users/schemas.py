"""Pydantic schemas for the users feature."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class FilterOperator(str, Enum):
    """Comparison operators a client may send. Only EQ can be evaluated."""

    EQ = "EQ"
    NE = "NE"
    LT = "LT"
    LTE = "LTE"
    GT = "GT"
    GTE = "GTE"


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class UserFilter(BaseModel):
    """A single ``field op value`` predicate.

    ``field`` is free text on purpose: an unsupported field or operator is
    only rejected when the filter chain reaches it.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Record field (id, email or phoneNumber)")
    op: FilterOperator = Field(default=FilterOperator.EQ, description="Comparison operator")
    value: str = Field(..., description="Value to compare against")


class UserOrder(BaseModel):
    """Requested sort key. Listing cannot be ordered, so any entry is rejected."""

    model_config = ConfigDict(frozen=True)

    field: str
    direction: OrderDirection = OrderDirection.ASC


class UserListRequest(BaseModel):
    """Relay-style list arguments.

    Attributes:
        filters: Equality filters, applied as a chain (``filter`` on the wire)
        order: Sort keys; must be empty
        first: Page size counted from the start
        last: Page size counted from the end; only accepted alongside a larger ``first``
        before: Backward cursor; never supported
        after: Forward cursor from a previous page
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    filters: list[UserFilter] = Field(default_factory=list, alias="filter")
    order: list[UserOrder] = Field(default_factory=list)
    first: int | None = None
    last: int | None = None
    before: str | None = None
    after: str | None = None


class _UserWrite(BaseModel):
    """Shared attributes for user writes.

    Only fields explicitly set are forwarded; an explicit ``None`` clears the
    attribute on update.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = Field(default=None, description="Email address")
    password: SecretStr | None = Field(default=None, min_length=6, description="Password")
    email_verified: bool | None = Field(default=None, alias="emailVerified")
    phone_number: str | None = Field(
        default=None,
        alias="phoneNumber",
        pattern=r"^\+[1-9]\d{1,14}$",
        description="E.164 phone number",
    )
    disabled: bool | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    photo_url: str | None = Field(default=None, alias="photoUrl")

    def to_provider(self) -> dict[str, Any]:
        """Provider-shaped payload (camelCase) with the fields that were set."""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        if self.password is not None:
            data["password"] = self.password.get_secret_value()
        return data


class UserCreate(_UserWrite):
    """Payload used when creating a user."""


class UserUpdate(_UserWrite):
    """Payload for updating a user."""


__all__ = [
    "FilterOperator",
    "OrderDirection",
    "UserCreate",
    "UserFilter",
    "UserListRequest",
    "UserOrder",
    "UserUpdate",
]
