"""Service-account credentials and OAuth2 access tokens.

Admin calls to the identity provider are authorized with a short-lived OAuth2
access token. The token is obtained with the JWT bearer grant: a JWT signed
with the service account's RSA key is exchanged at the token endpoint. Tokens
are cached until shortly before they expire.

Against a local emulator no credentials are involved; every admin call uses
the fixed ``owner`` bearer.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import jwt
from pydantic import BaseModel, ConfigDict, SecretStr

from identity_directory.core.exceptions import ConfigurationError
from identity_directory.infra.identity.errors import IdentityProviderError

if TYPE_CHECKING:
    from identity_directory.core.settings.identity import IdentitySettings

logger = logging.getLogger(__name__)

ADMIN_SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/identitytoolkit",
    "https://www.googleapis.com/auth/userinfo.email",
)
EMULATOR_BEARER = "owner"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Refresh this many seconds before the provider-reported expiry
_EXPIRY_MARGIN = 60
_ASSERTION_LIFETIME = 3600


def _normalize_private_key(raw: str) -> str:
    key = raw.strip()
    if (key.startswith('"') and key.endswith('"')) or (key.startswith("'") and key.endswith("'")):
        key = key[1:-1].strip()
    # Environment variables usually carry the PEM with literal "\n" sequences
    key = key.replace("\\r", "\r").replace("\\n", "\n")
    return key.replace("\r\n", "\n").replace("\r", "\n")


class ServiceAccountCredentials(BaseModel):
    """A service account able to sign JWTs.

    Attributes:
        client_email: Service-account email, used as JWT issuer and subject
        private_key: PEM encoded RSA private key
        private_key_id: Key id placed in the JWT header when known
        project_id: Project the key file belongs to
    """

    model_config = ConfigDict(frozen=True)

    client_email: str
    private_key: SecretStr
    private_key_id: str | None = None
    project_id: str | None = None

    @classmethod
    def from_file(cls, path: Path) -> ServiceAccountCredentials:
        """Load a JSON key file as downloaded from the provider console."""
        try:
            info = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            msg = f"Unable to read service-account key file {path}: {e}"
            raise ConfigurationError(msg, extra={"credentials_file": str(path)}) from e

        missing = [key for key in ("client_email", "private_key") if not info.get(key)]
        if missing:
            msg = f"Service-account key file {path} is missing {', '.join(missing)}"
            raise ConfigurationError(msg, extra={"credentials_file": str(path)})

        return cls(
            client_email=info["client_email"],
            private_key=SecretStr(_normalize_private_key(info["private_key"])),
            private_key_id=info.get("private_key_id"),
            project_id=info.get("project_id"),
        )

    @classmethod
    def from_settings(cls, settings: IdentitySettings) -> ServiceAccountCredentials | None:
        """Resolve credentials from settings, or None when none are configured.

        A key file takes precedence over an inline email/key pair.
        """
        if settings.credentials_file is not None:
            return cls.from_file(settings.credentials_file)
        if settings.client_email and settings.private_key is not None:
            return cls(
                client_email=settings.client_email,
                private_key=SecretStr(
                    _normalize_private_key(settings.private_key.get_secret_value())
                ),
                project_id=settings.project_id,
            )
        return None

    def sign(self, payload: dict[str, Any]) -> str:
        """Sign ``payload`` as an RS256 JWT with this account's key."""
        headers = {"kid": self.private_key_id} if self.private_key_id else None
        return jwt.encode(
            payload,
            self.private_key.get_secret_value(),
            algorithm="RS256",
            headers=headers,
        )


class AccessTokenProvider:
    """Mint and cache OAuth2 access tokens for admin API calls.

    Example:
        provider = AccessTokenProvider(credentials, http_client, token_url)
        headers = {"Authorization": f"Bearer {await provider.get_token()}"}
    """

    def __init__(
        self,
        credentials: ServiceAccountCredentials | None,
        client: httpx.AsyncClient,
        token_url: str,
        *,
        emulator: bool = False,
        scopes: tuple[str, ...] = ADMIN_SCOPES,
    ) -> None:
        self._credentials = credentials
        self._client = client
        self._token_url = token_url
        self._emulator = emulator
        self._scopes = scopes
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Return a valid access token, fetching a new one when needed.

        Raises:
            ConfigurationError: No credentials configured outside emulator mode
            IdentityProviderError: The token endpoint refused the grant
        """
        if self._emulator:
            return EMULATOR_BEARER

        if self._token is not None and time.time() < self._expires_at:
            return self._token

        async with self._lock:
            if self._token is not None and time.time() < self._expires_at:
                return self._token
            self._token, lifetime = await self._fetch_token()
            self._expires_at = time.time() + max(lifetime - _EXPIRY_MARGIN, 0)
            return self._token

    async def _fetch_token(self) -> tuple[str, int]:
        if self._credentials is None:
            msg = (
                "No service-account credentials configured. Set IDENTITY_CREDENTIALS_FILE "
                "or IDENTITY_CLIENT_EMAIL and IDENTITY_PRIVATE_KEY"
            )
            raise ConfigurationError(msg)

        now = int(time.time())
        assertion = self._credentials.sign(
            {
                "iss": self._credentials.client_email,
                "scope": " ".join(self._scopes),
                "aud": self._token_url,
                "iat": now,
                "exp": now + _ASSERTION_LIFETIME,
            }
        )
        response = await self._client.post(
            self._token_url,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
        )
        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            raise IdentityProviderError.from_response_body(body, response.status_code)

        data = response.json()
        logger.debug(
            "Obtained admin access token",
            extra={"client_email": self._credentials.client_email, "expires_in": data.get("expires_in")},
        )
        return data["access_token"], int(data.get("expires_in", _ASSERTION_LIFETIME))

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a new one."""
        self._token = None
        self._expires_at = 0.0


__all__ = [
    "ADMIN_SCOPES",
    "EMULATOR_BEARER",
    "AccessTokenProvider",
    "ServiceAccountCredentials",
]
