"""GraphQL types for the token namespace."""

from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry

if TYPE_CHECKING:
    from identity_directory.infra.identity.models import IdTokenResult, RefreshTokenResult


@strawberry.type(name="IdToken", description="Tokens issued by a sign-in")
class IdTokenType:
    id_token: str
    refresh_token: str
    expires_in: int
    email: str | None
    local_id: str
    registered: bool

    @classmethod
    def from_result(cls, result: IdTokenResult) -> IdTokenType:
        return cls(
            id_token=result.id_token,
            refresh_token=result.refresh_token,
            expires_in=result.expires_in,
            email=result.email,
            local_id=result.local_id,
            registered=result.registered,
        )


@strawberry.type(name="RefreshToken", description="Tokens issued by a refresh-token exchange")
class RefreshTokenType:
    id_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    user_id: str
    project_id: str

    @classmethod
    def from_result(cls, result: RefreshTokenResult) -> RefreshTokenType:
        return cls(**result.model_dump())


__all__ = ["IdTokenType", "RefreshTokenType"]
