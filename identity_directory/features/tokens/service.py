"""Identity token operations.

Each method validates its arguments and then makes exactly one provider call.
Nothing is cached.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from identity_directory.core.exceptions import InvalidArgumentException
from identity_directory.core.settings import get_identity_settings
from identity_directory.core.settings.identity import (
    SESSION_COOKIE_MAX_SECONDS,
    SESSION_COOKIE_MIN_SECONDS,
)

if TYPE_CHECKING:
    from identity_directory.core.settings.identity import IdentitySettings
    from identity_directory.infra.identity.models import IdTokenResult, RefreshTokenResult
    from identity_directory.infra.identity.protocols import IdentityBackend
    from identity_directory.infra.identity.rest_client import IdentityRestClient

logger = logging.getLogger(__name__)


class TokenService:
    """Sign-in, verification and minting of identity tokens.

    Example:
        tokens = TokenService(clients.backend, clients.rest)
        result = await tokens.id_token(email="a@example.com", password="secret")
        claims = await tokens.verify(id_token=result.id_token)
    """

    def __init__(
        self,
        backend: IdentityBackend,
        rest: IdentityRestClient,
        settings: IdentitySettings | None = None,
    ) -> None:
        self._backend = backend
        self._rest = rest
        self._settings = settings or get_identity_settings()

    async def id_token(
        self,
        email: str | None = None,
        password: str | None = None,
        custom_token: str | None = None,
    ) -> IdTokenResult:
        """Sign in with email and password, or with a custom token.

        Raises:
            InvalidArgumentException: Neither a complete email/password pair
                nor a custom token was supplied
        """
        if email and password:
            return await self._rest.verify_password(email, password)
        if custom_token:
            return await self._rest.verify_custom_token(custom_token)
        msg = 'Either email and password must be supplied or "customToken"'
        raise InvalidArgumentException(
            msg,
            extra={"email": email is not None, "password": password is not None},
        )

    async def refresh(self, refresh_token: str) -> RefreshTokenResult:
        return await self._rest.refresh_id_token(refresh_token)

    async def verify(
        self,
        id_token: str | None = None,
        session_token: str | None = None,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        """Verify an ID token, or a session cookie when no ID token is given.

        Returns:
            Decoded claims
        """
        if id_token:
            return await self._backend.verify_id_token(id_token, check_revoked)
        if session_token:
            return await self._backend.verify_session_cookie(session_token, check_revoked)
        msg = "MUST supply either idToken or session token"
        raise InvalidArgumentException(msg)

    async def session(self, id_token: str, expires_in: int | None = None) -> str:
        """Exchange an ID token for a session cookie.

        Args:
            id_token: Recently issued ID token
            expires_in: Cookie lifetime in seconds, between 5 minutes and
                14 days; settings provide the default

        Raises:
            InvalidArgumentException: ``expires_in`` is out of range
        """
        lifetime = self._settings.session_cookie_expires_in if expires_in is None else expires_in
        if not SESSION_COOKIE_MIN_SECONDS <= lifetime <= SESSION_COOKIE_MAX_SECONDS:
            msg = (
                f"expiresIn must be between {SESSION_COOKIE_MIN_SECONDS} and "
                f"{SESSION_COOKIE_MAX_SECONDS} seconds. Received {lifetime}"
            )
            raise InvalidArgumentException(msg, extra={"expires_in": lifetime})
        return await self._backend.create_session_cookie(id_token, lifetime)

    async def custom(self, uid: str, claims: str | None = None) -> str:
        """Mint a custom token for ``uid`` with optional JSON-encoded claims.

        Raises:
            InvalidArgumentException: ``claims`` is not a JSON object
        """
        return await self._backend.create_custom_token(uid, parse_claims(claims))

    async def revoke(self, uid: str) -> bool:
        await self._backend.revoke_refresh_tokens(uid)
        logger.info("Refresh tokens revoked", extra={"uid": uid})
        return True


def parse_claims(claims: str | None) -> dict[str, Any] | None:
    """Decode developer claims sent as a JSON string.

    Blank input means no claims.
    """
    if claims is None or not claims.strip():
        return None
    try:
        parsed = json.loads(claims)
    except ValueError as e:
        msg = f"claims must be a JSON object: {e}"
        raise InvalidArgumentException(msg, extra={"claims": claims}) from e
    if not isinstance(parsed, dict):
        msg = "claims must be a JSON object"
        raise InvalidArgumentException(msg, extra={"claims": claims})
    return parsed


__all__ = ["TokenService", "parse_claims"]
