"""ID token and session cookie verification.

Both token kinds are RS256 JWTs signed with rotating provider keys published
as X.509 certificates. Certificates are fetched over httpx and cached for the
``max-age`` the endpoint advertises.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any

from cryptography.x509 import load_pem_x509_certificate
import httpx
import jwt

from identity_directory.infra.identity.errors import (
    INVALID_ID_TOKEN,
    INVALID_SESSION_COOKIE,
    IdentityProviderError,
)

logger = logging.getLogger(__name__)

_MAX_AGE = re.compile(r"max-age=(\d+)")
_DEFAULT_CERT_TTL = 3600
_CLOCK_SKEW_SECONDS = 5


class PublicKeyCache:
    """Certificates keyed by ``kid``, refreshed when their max-age runs out."""

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url = url
        self._keys: dict[str, Any] = {}
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get(self, kid: str) -> Any | None:
        if time.time() >= self._expires_at:
            async with self._lock:
                if time.time() >= self._expires_at:
                    await self._refresh()
        return self._keys.get(kid)

    async def _refresh(self) -> None:
        response = await self._client.get(self._url)
        if response.is_error:
            raise IdentityProviderError(
                f"Failed to fetch public key certificates from {self._url}",
                status_code=502,
                extra={"upstream_status": response.status_code},
            )
        certificates: dict[str, str] = response.json()
        self._keys = {
            kid: load_pem_x509_certificate(pem.encode("utf-8")).public_key()
            for kid, pem in certificates.items()
        }
        match = _MAX_AGE.search(response.headers.get("cache-control", ""))
        ttl = int(match.group(1)) if match else _DEFAULT_CERT_TTL
        self._expires_at = time.time() + ttl
        logger.debug(
            "Refreshed token signing certificates",
            extra={"url": self._url, "keys": len(self._keys), "ttl": ttl},
        )


class TokenVerifier:
    """Verify JWTs issued by the provider for one project.

    Attributes:
        project_id: Expected audience
        issuer_prefix: Issuer URL without the trailing project id
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        certs_url: str,
        project_id: str,
        *,
        issuer_prefix: str,
        error_code: str,
        token_name: str,
        emulator: bool = False,
    ) -> None:
        self.project_id = project_id
        self.issuer_prefix = issuer_prefix
        self.error_code = error_code
        self.token_name = token_name
        self.emulator = emulator
        self._keys = PublicKeyCache(client, certs_url)

    @classmethod
    def for_id_tokens(
        cls,
        client: httpx.AsyncClient,
        certs_url: str,
        project_id: str,
        *,
        emulator: bool = False,
    ) -> TokenVerifier:
        return cls(
            client,
            certs_url,
            project_id,
            issuer_prefix="https://securetoken.google.com/",
            error_code=INVALID_ID_TOKEN,
            token_name="ID token",
            emulator=emulator,
        )

    @classmethod
    def for_session_cookies(
        cls,
        client: httpx.AsyncClient,
        certs_url: str,
        project_id: str,
        *,
        emulator: bool = False,
    ) -> TokenVerifier:
        return cls(
            client,
            certs_url,
            project_id,
            issuer_prefix="https://session.firebase.google.com/",
            error_code=INVALID_SESSION_COOKIE,
            token_name="session cookie",
            emulator=emulator,
        )

    @property
    def issuer(self) -> str:
        return f"{self.issuer_prefix}{self.project_id}"

    async def verify(self, token: str) -> dict[str, Any]:
        """Verify signature, audience, issuer and lifetime; return the claims.

        The returned claims carry ``uid`` (copied from ``sub``).

        Raises:
            IdentityProviderError: The token is malformed, expired, signed by an
                unknown key, or issued for another project
        """
        try:
            if self.emulator:
                # Emulator tokens are unsigned
                claims = jwt.decode(
                    token,
                    options={"verify_signature": False, "verify_aud": False},
                )
            else:
                claims = await self._decode_signed(token)
        except jwt.ExpiredSignatureError as e:
            raise self._error(f"The {self.token_name} has expired", e) from e
        except jwt.PyJWTError as e:
            raise self._error(f"Decoding {self.token_name} failed: {e}", e) from e

        if claims.get("aud") != self.project_id or claims.get("iss") != self.issuer:
            raise self._error(f"The {self.token_name} was issued for another project")
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject or len(subject) > 128:
            raise self._error(f"The {self.token_name} has an invalid subject")

        claims["uid"] = subject
        return claims

    async def _decode_signed(self, token: str) -> dict[str, Any]:
        header = jwt.get_unverified_header(token)
        if header.get("alg") != "RS256":
            msg = f"unexpected algorithm {header.get('alg')!r}"
            raise jwt.InvalidAlgorithmError(msg)
        kid = header.get("kid")
        key = await self._keys.get(kid) if kid else None
        if key is None:
            msg = f"no certificate for key id {kid!r}"
            raise jwt.InvalidKeyError(msg)
        return jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=self.project_id,
            issuer=self.issuer,
            leeway=_CLOCK_SKEW_SECONDS,
        )

    def _error(self, message: str, cause: Exception | None = None) -> IdentityProviderError:
        extra = {"cause": type(cause).__name__} if cause is not None else None
        return IdentityProviderError(
            message,
            provider_code=self.error_code,
            status_code=401,
            extra=extra,
        )


__all__ = ["PublicKeyCache", "TokenVerifier"]
