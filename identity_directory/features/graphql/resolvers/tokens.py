"""Token namespace resolvers.

Every field maps to one TokenService call:
- id(email, password, customToken): sign in
- refresh(refreshToken): exchange a refresh token
- verify(idToken, sessionToken, checkRevoked): decode and verify
- session(idToken, expiresIn): mint a session cookie
- custom(uid, claims): mint a custom token
- revoke(uid): revoke refresh tokens
"""

from __future__ import annotations

import strawberry
from strawberry.scalars import JSON
from strawberry.types import Info

from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.types.tokens import IdTokenType, RefreshTokenType


@strawberry.type(name="Token", description="Identity token operations")
class TokenNamespace:
    @strawberry.field(description="Sign in with email and password, or with a custom token")
    async def id(
        self,
        info: Info[GraphQLContext, None],
        email: str | None = None,
        password: str | None = None,
        custom_token: str | None = None,
    ) -> IdTokenType:
        result = await info.context.tokens.id_token(
            email=email,
            password=password,
            custom_token=custom_token,
        )
        return IdTokenType.from_result(result)

    @strawberry.field(description="Exchange a refresh token for a new ID token")
    async def refresh(
        self,
        info: Info[GraphQLContext, None],
        refresh_token: str,
    ) -> RefreshTokenType:
        result = await info.context.tokens.refresh(refresh_token)
        return RefreshTokenType.from_result(result)

    @strawberry.field(description="Verify an ID token or session cookie and return its claims")
    async def verify(
        self,
        info: Info[GraphQLContext, None],
        id_token: str | None = None,
        session_token: str | None = None,
        check_revoked: bool = False,
    ) -> JSON:
        return await info.context.tokens.verify(
            id_token=id_token,
            session_token=session_token,
            check_revoked=check_revoked,
        )

    @strawberry.field(description="Create a session cookie from an ID token")
    async def session(
        self,
        info: Info[GraphQLContext, None],
        id_token: str,
        expires_in: int | None = None,
    ) -> str:
        return await info.context.tokens.session(id_token, expires_in)

    @strawberry.field(description="Create a custom token; claims is a JSON object string")
    async def custom(
        self,
        info: Info[GraphQLContext, None],
        uid: strawberry.ID,
        claims: str | None = None,
    ) -> str:
        return await info.context.tokens.custom(str(uid), claims)

    @strawberry.field(description="Revoke all refresh tokens of a user")
    async def revoke(
        self,
        info: Info[GraphQLContext, None],
        uid: strawberry.ID,
    ) -> bool:
        return await info.context.tokens.revoke(str(uid))


__all__ = ["TokenNamespace"]
