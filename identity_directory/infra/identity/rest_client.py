"""Client for the provider's public sign-in endpoints.

These endpoints authenticate with the web API key rather than service-account
credentials:
- ``accounts:signInWithPassword`` exchanges email and password for tokens
- ``accounts:signInWithCustomToken`` exchanges a custom token for tokens
- the secure token ``/v1/token`` endpoint trades a refresh token for a new ID token
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from identity_directory.core.exceptions import ConfigurationError
from identity_directory.infra.identity.http import IdentityHttpClient
from identity_directory.infra.identity.models import IdTokenResult, RefreshTokenResult

if TYPE_CHECKING:
    from identity_directory.core.settings.identity import IdentitySettings

logger = logging.getLogger(__name__)


class IdentityRestClient(IdentityHttpClient):
    """Public REST client keyed by the web API key.

    Example:
        client = IdentityRestClient.from_settings(get_identity_settings())
        tokens = await client.verify_password("a@example.com", "secret")
        refreshed = await client.refresh_id_token(tokens.refresh_token)
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://identitytoolkit.googleapis.com",
        secure_token_url: str = "https://securetoken.googleapis.com",
        tenant_id: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        close_client: bool | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, client=client, close_client=close_client)
        self.api_key = api_key
        self.secure_token_url = secure_token_url.rstrip("/")
        self.tenant_id = tenant_id

    @classmethod
    def from_settings(
        cls,
        settings: IdentitySettings,
        tenant_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> IdentityRestClient:
        return cls(
            settings.api_key.get_secret_value() if settings.api_key else None,
            base_url=settings.toolkit_base_url,
            secure_token_url=settings.secure_token_base_url,
            tenant_id=tenant_id,
            timeout=settings.timeout,
            client=client,
        )

    def _key(self) -> str:
        if not self.api_key:
            msg = "No API key available. Unable to generate an ID token"
            raise ConfigurationError(msg, extra={"setting": "IDENTITY_API_KEY"})
        return self.api_key

    async def verify_password(self, email: str, password: str) -> IdTokenResult:
        """Sign in with email and password.

        Raises:
            ConfigurationError: No API key configured
            IdentityProviderError: The provider rejected the credentials
        """
        body = {"email": email, "password": password, "returnSecureToken": True}
        if self.tenant_id:
            body["tenantId"] = self.tenant_id
        data = await self.post(
            "/v1/accounts:signInWithPassword",
            params={"key": self._key()},
            json=body,
        )
        logger.info("Password sign-in succeeded", extra={"uid": data.get("localId")})
        return IdTokenResult.model_validate(data)

    async def verify_custom_token(self, custom_token: str) -> IdTokenResult:
        """Sign in with a custom token minted by the admin backend.

        Raises:
            ConfigurationError: No API key configured
            IdentityProviderError: The provider rejected the token
        """
        body = {"token": custom_token, "returnSecureToken": True}
        if self.tenant_id:
            body["tenantId"] = self.tenant_id
        data = await self.post(
            "/v1/accounts:signInWithCustomToken",
            params={"key": self._key()},
            json=body,
        )
        # The custom-token response omits localId; it lives in the ID token
        data.setdefault("localId", "")
        return IdTokenResult.model_validate(data)

    async def refresh_id_token(self, refresh_token: str) -> RefreshTokenResult:
        """Exchange a refresh token for a fresh ID token.

        Raises:
            ConfigurationError: No API key configured
            IdentityProviderError: The refresh token is invalid or revoked
        """
        data = await self.post(
            f"{self.secure_token_url}/v1/token",
            params={"key": self._key()},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return RefreshTokenResult(
            id_token=data["id_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data["expires_in"]),
            token_type=data["token_type"],
            user_id=data["user_id"],
            project_id=data["project_id"],
        )


__all__ = ["IdentityRestClient"]
