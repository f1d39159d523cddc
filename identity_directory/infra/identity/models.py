"""Identity provider data models.

These models represent what the provider returns. Records are owned by the
provider; they are built per call from its JSON payloads and never cached.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """A user as stored by the identity provider.

    Attributes:
        id: Immutable user identifier (``localId`` on the wire)
        email: Primary email, unique across the project
        email_verified: Whether the email has been verified
        phone_number: E.164 phone number, unique across the project
        disabled: Whether sign-in is blocked for this user
        tokens_valid_after: Epoch seconds before which issued tokens are revoked
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="User identifier")
    email: str | None = Field(default=None, description="Email address")
    email_verified: bool | None = Field(default=None, description="Email verified flag")
    phone_number: str | None = Field(default=None, description="Phone number")
    disabled: bool = Field(default=False, description="Account disabled flag")
    tokens_valid_after: int | None = Field(
        default=None,
        description="Epoch seconds of the last refresh-token revocation",
    )

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> UserRecord:
        """Build a record from a provider ``users[]`` entry."""
        valid_since = payload.get("validSince")
        return cls(
            id=payload["localId"],
            email=payload.get("email"),
            email_verified=payload.get("emailVerified"),
            phone_number=payload.get("phoneNumber"),
            disabled=bool(payload.get("disabled", False)),
            tokens_valid_after=int(valid_since) if valid_since is not None else None,
        )


class ListUsersPage(BaseModel):
    """One batch of a sequential user listing.

    Attributes:
        users: Records in provider enumeration order
        next_page_token: Continuation token, or None when the listing is exhausted
    """

    users: list[UserRecord] = Field(default_factory=list)
    next_page_token: str | None = None


class IdTokenResult(BaseModel):
    """Tokens returned by a password or custom-token sign-in."""

    model_config = ConfigDict(populate_by_name=True)

    id_token: str = Field(alias="idToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")
    email: str | None = None
    local_id: str = Field(alias="localId")
    registered: bool = False


class RefreshTokenResult(BaseModel):
    """Tokens returned by a refresh-token exchange.

    The secure token endpoint answers in snake_case; fields keep those names.
    """

    id_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    user_id: str
    project_id: str


__all__ = [
    "IdTokenResult",
    "ListUsersPage",
    "RefreshTokenResult",
    "UserRecord",
]
