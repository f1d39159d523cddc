"""HTTP identity backend over the Identity Toolkit admin REST API.

This module provides HttpIdentityBackend, which implements the IdentityBackend
protocol against the provider's v1 admin API (``/v1/projects/{project}/...``).

Key Features:
    - Protocol-compliant (implements IdentityBackend)
    - OAuth2 access tokens minted from service-account credentials
    - Tenant-aware resource paths (``/v1/projects/{p}/tenants/{t}/...``)
    - Emulator mode with the fixed ``owner`` bearer and unsigned tokens
    - Provider error bodies translated to IdentityProviderError

Example:
    backend = HttpIdentityBackend.from_settings(get_identity_settings(), tenant_id="acme")
    page = await backend.list_users(200)
    await backend.aclose()

Pattern: Adapter wrapping an external REST API
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Final

import httpx
import jwt

from identity_directory.core.exceptions import ConfigurationError, InvalidArgumentException
from identity_directory.infra.identity.credentials import (
    AccessTokenProvider,
    ServiceAccountCredentials,
)
from identity_directory.infra.identity.errors import (
    ID_TOKEN_REVOKED,
    SESSION_COOKIE_REVOKED,
    USER_DISABLED,
    IdentityProviderError,
)
from identity_directory.infra.identity.http import IdentityHttpClient
from identity_directory.infra.identity.models import ListUsersPage, UserRecord
from identity_directory.infra.identity.verifier import TokenVerifier

if TYPE_CHECKING:
    from identity_directory.core.settings.identity import IdentitySettings

logger = logging.getLogger(__name__)

CUSTOM_TOKEN_AUDIENCE: Final[str] = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)
EMULATOR_SERVICE_ACCOUNT: Final[str] = "firebase-auth-emulator@example.com"
MAX_LIST_RESULTS: Final[int] = 1000

RESERVED_CLAIMS: Final[frozenset[str]] = frozenset(
    {
        "acr",
        "amr",
        "at_hash",
        "aud",
        "auth_time",
        "azp",
        "cnf",
        "c_hash",
        "exp",
        "firebase",
        "iat",
        "iss",
        "jti",
        "nbf",
        "nonce",
        "sub",
    }
)

# Attributes the update endpoint clears through deleteAttribute
_DELETABLE_ATTRIBUTES: Final[dict[str, str]] = {
    "displayName": "DISPLAY_NAME",
    "photoUrl": "PHOTO_URL",
}


class HttpIdentityBackend(IdentityHttpClient):
    """Identity backend talking to the admin REST API.

    Attributes:
        project_id: Provider project
        tenant_id: Tenant scoping every call, or None for the project itself
    """

    def __init__(
        self,
        project_id: str,
        *,
        base_url: str,
        token_provider: AccessTokenProvider,
        id_token_verifier: TokenVerifier,
        session_cookie_verifier: TokenVerifier,
        credentials: ServiceAccountCredentials | None = None,
        tenant_id: str | None = None,
        emulator: bool = False,
        continue_url: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        close_client: bool | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, client=client, close_client=close_client)
        self.project_id = project_id
        self.tenant_id = tenant_id
        self.emulator = emulator
        self.continue_url = continue_url
        self._credentials = credentials
        self._token_provider = token_provider
        self._id_token_verifier = id_token_verifier
        self._session_cookie_verifier = session_cookie_verifier

        logger.info(
            "HttpIdentityBackend initialized",
            extra={
                "project_id": project_id,
                "tenant_id": tenant_id,
                "emulator": emulator,
            },
        )

    @classmethod
    def from_settings(
        cls,
        settings: IdentitySettings,
        tenant_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> HttpIdentityBackend:
        """Build a backend for ``tenant_id`` from identity settings.

        Raises:
            ConfigurationError: No project id can be determined
        """
        credentials = None if settings.emulator_enabled else ServiceAccountCredentials.from_settings(settings)
        project_id = settings.project_id or (credentials.project_id if credentials else None)
        if not project_id:
            msg = "No project id configured. Set IDENTITY_PROJECT_ID"
            raise ConfigurationError(msg, extra={"setting": "IDENTITY_PROJECT_ID"})

        http_client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.timeout))
        return cls(
            project_id,
            base_url=settings.toolkit_base_url,
            token_provider=AccessTokenProvider(
                credentials,
                http_client,
                settings.oauth_token_url,
                emulator=settings.emulator_enabled,
            ),
            id_token_verifier=TokenVerifier.for_id_tokens(
                http_client,
                settings.id_token_certs_url,
                project_id,
                emulator=settings.emulator_enabled,
            ),
            session_cookie_verifier=TokenVerifier.for_session_cookies(
                http_client,
                settings.session_cookie_certs_url,
                project_id,
                emulator=settings.emulator_enabled,
            ),
            credentials=credentials,
            tenant_id=tenant_id,
            emulator=settings.emulator_enabled,
            continue_url=settings.action_code_continue_url,
            timeout=settings.timeout,
            client=http_client,
            close_client=client is None,
        )

    # ========================================================================
    # Plumbing
    # ========================================================================

    @property
    def resource_path(self) -> str:
        path = f"/v1/projects/{self.project_id}"
        if self.tenant_id:
            path = f"{path}/tenants/{self.tenant_id}"
        return path

    async def _call(self, method: str, suffix: str, **kwargs: Any) -> dict[str, Any]:
        token = await self._token_provider.get_token()
        headers = {"Authorization": f"Bearer {token}"}
        return await self.request(method, f"{self.resource_path}{suffix}", headers=headers, **kwargs)

    # ========================================================================
    # Point lookups
    # ========================================================================

    async def _lookup(self, key: str, value: str, **lookup: str) -> UserRecord:
        data = await self._call("POST", "/accounts:lookup", json={key: [value]})
        users = data.get("users") or []
        if not users:
            raise IdentityProviderError.user_not_found(**lookup)
        return UserRecord.from_provider(users[0])

    async def get_user(self, uid: str) -> UserRecord:
        return await self._lookup("localId", uid, uid=uid)

    async def get_user_by_email(self, email: str) -> UserRecord:
        return await self._lookup("email", email, email=email)

    async def get_user_by_phone_number(self, phone_number: str) -> UserRecord:
        return await self._lookup("phoneNumber", phone_number, phone_number=phone_number)

    # ========================================================================
    # Sequential listing
    # ========================================================================

    async def list_users(
        self,
        max_results: int,
        page_token: str | None = None,
    ) -> ListUsersPage:
        if not 0 < max_results <= MAX_LIST_RESULTS:
            msg = f"max_results must be between 1 and {MAX_LIST_RESULTS}. Received {max_results}"
            raise InvalidArgumentException(msg, extra={"max_results": max_results})

        params: dict[str, Any] = {"maxResults": max_results}
        if page_token:
            params["nextPageToken"] = page_token
        data = await self._call("GET", "/accounts:batchGet", params=params)
        return ListUsersPage(
            users=[UserRecord.from_provider(user) for user in data.get("users", [])],
            next_page_token=data.get("nextPageToken") or None,
        )

    # ========================================================================
    # Writes
    # ========================================================================

    async def create_user(self, uid: str | None, data: dict[str, Any]) -> UserRecord:
        body = {key: value for key, value in data.items() if value is not None}
        if uid:
            body["localId"] = uid
        created = await self._call("POST", "/accounts", json=body)
        logger.info("Created user", extra={"uid": created.get("localId")})
        return await self.get_user(created["localId"])

    async def update_user(self, uid: str, data: dict[str, Any]) -> UserRecord:
        body: dict[str, Any] = {"localId": uid}
        delete_attributes: list[str] = []
        for key, value in data.items():
            if key == "disabled":
                body["disableUser"] = value
            elif key == "phoneNumber" and value is None:
                body["deleteProvider"] = ["phone"]
            elif key in _DELETABLE_ATTRIBUTES and value is None:
                delete_attributes.append(_DELETABLE_ATTRIBUTES[key])
            elif value is not None:
                body[key] = value
        if delete_attributes:
            body["deleteAttribute"] = delete_attributes

        await self._call("POST", "/accounts:update", json=body)
        logger.info("Updated user", extra={"uid": uid, "fields": sorted(data)})
        return await self.get_user(uid)

    async def delete_user(self, uid: str) -> None:
        await self._call("POST", "/accounts:delete", json={"localId": uid})
        logger.info("Deleted user", extra={"uid": uid})

    # ========================================================================
    # Tokens
    # ========================================================================

    async def verify_id_token(
        self,
        id_token: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        claims = await self._id_token_verifier.verify(id_token)
        self._check_tenant(claims)
        if check_revoked:
            await self._check_revoked(claims, ID_TOKEN_REVOKED, "ID token")
        return claims

    async def verify_session_cookie(
        self,
        session_cookie: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        claims = await self._session_cookie_verifier.verify(session_cookie)
        self._check_tenant(claims)
        if check_revoked:
            await self._check_revoked(claims, SESSION_COOKIE_REVOKED, "session cookie")
        return claims

    def _check_tenant(self, claims: dict[str, Any]) -> None:
        token_tenant = (claims.get("firebase") or {}).get("tenant")
        if token_tenant != self.tenant_id:
            raise IdentityProviderError(
                "The token's tenant does not match the tenant being served",
                provider_code="auth/mismatching-tenant-id",
                status_code=401,
                extra={"token_tenant": token_tenant, "tenant_id": self.tenant_id},
            )

    async def _check_revoked(self, claims: dict[str, Any], code: str, token_name: str) -> None:
        user = await self.get_user(claims["uid"])
        if user.disabled:
            raise IdentityProviderError(
                "The user record is disabled.",
                provider_code=USER_DISABLED,
                status_code=401,
            )
        if user.tokens_valid_after is not None and claims.get("auth_time", 0) < user.tokens_valid_after:
            raise IdentityProviderError(
                f"The Firebase {token_name} has been revoked.",
                provider_code=code,
                status_code=401,
            )

    async def create_custom_token(
        self,
        uid: str,
        developer_claims: dict[str, Any] | None = None,
    ) -> str:
        if not uid or len(uid) > 128:
            msg = "uid must be a non-empty string with at most 128 characters"
            raise InvalidArgumentException(msg, extra={"uid": uid})
        reserved = sorted(RESERVED_CLAIMS.intersection(developer_claims or {}))
        if reserved:
            msg = f"Developer claims {', '.join(reserved)} are reserved and cannot be specified"
            raise InvalidArgumentException(msg, extra={"reserved": reserved})

        now = int(time.time())
        issuer = EMULATOR_SERVICE_ACCOUNT if self.emulator else self._require_credentials().client_email
        payload: dict[str, Any] = {
            "iss": issuer,
            "sub": issuer,
            "aud": CUSTOM_TOKEN_AUDIENCE,
            "iat": now,
            "exp": now + 3600,
            "uid": uid,
        }
        if developer_claims:
            payload["claims"] = developer_claims
        if self.tenant_id:
            payload["tenant_id"] = self.tenant_id

        if self.emulator:
            return jwt.encode(payload, "", algorithm="none")
        return self._require_credentials().sign(payload)

    def _require_credentials(self) -> ServiceAccountCredentials:
        if self._credentials is None:
            msg = "Signing custom tokens requires service-account credentials"
            raise ConfigurationError(msg, extra={"setting": "IDENTITY_CREDENTIALS_FILE"})
        return self._credentials

    async def create_session_cookie(self, id_token: str, expires_in: int) -> str:
        data = await self._call(
            "POST",
            ":createSessionCookie",
            json={"idToken": id_token, "validDuration": expires_in},
        )
        return data["sessionCookie"]

    async def revoke_refresh_tokens(self, uid: str) -> None:
        await self._call(
            "POST",
            "/accounts:update",
            json={"localId": uid, "validSince": int(time.time())},
        )
        logger.info("Revoked refresh tokens", extra={"uid": uid})

    # ========================================================================
    # Email action links
    # ========================================================================

    async def _action_link(self, request_type: str, email: str, *, continue_url_required: bool = False) -> str:
        body: dict[str, Any] = {
            "requestType": request_type,
            "email": email,
            "returnOobLink": True,
        }
        if self.continue_url:
            body["continueUrl"] = self.continue_url
        elif continue_url_required:
            msg = "Email sign-in links require IDENTITY_ACTION_CODE_CONTINUE_URL"
            raise ConfigurationError(msg, extra={"setting": "IDENTITY_ACTION_CODE_CONTINUE_URL"})
        if self.tenant_id:
            body["tenantId"] = self.tenant_id
        data = await self._call("POST", "/accounts:sendOobCode", json=body)
        return data["oobLink"]

    async def generate_email_verification_link(self, email: str) -> str:
        return await self._action_link("VERIFY_EMAIL", email)

    async def generate_sign_in_with_email_link(self, email: str) -> str:
        return await self._action_link("EMAIL_SIGNIN", email, continue_url_required=True)

    async def generate_password_reset_link(self, email: str) -> str:
        return await self._action_link("PASSWORD_RESET", email)


__all__ = ["CUSTOM_TOKEN_AUDIENCE", "HttpIdentityBackend"]
