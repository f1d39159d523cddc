"""Tests for service-account credentials and access tokens."""
from __future__ import annotations

import json
from pathlib import Path

import httpx
import jwt
import pytest

from identity_directory.core.exceptions import ConfigurationError
from identity_directory.core.settings.identity import IdentitySettings
from identity_directory.infra.identity.credentials import (
    EMULATOR_BEARER,
    JWT_BEARER_GRANT,
    AccessTokenProvider,
    ServiceAccountCredentials,
)
from identity_directory.infra.identity.errors import IdentityProviderError

TOKEN_URL = "https://oauth2.test/token"


@pytest.fixture
def credentials(private_key_pem: str) -> ServiceAccountCredentials:
    return ServiceAccountCredentials(
        client_email="svc@demo.iam.gserviceaccount.com",
        private_key=private_key_pem,
        private_key_id="key-1",
        project_id="demo",
    )


@pytest.mark.unit
class TestServiceAccountCredentials:
    def test_sign_is_rs256_with_kid(self, credentials, rsa_private_key):
        token = credentials.sign({"sub": "svc", "aud": "demo"})

        assert jwt.get_unverified_header(token)["kid"] == "key-1"
        claims = jwt.decode(
            token, rsa_private_key.public_key(), algorithms=["RS256"], audience="demo"
        )
        assert claims["sub"] == "svc"

    def test_from_file(self, tmp_path: Path, private_key_pem: str):
        path = tmp_path / "key.json"
        path.write_text(
            json.dumps(
                {
                    "type": "service_account",
                    "project_id": "demo",
                    "private_key_id": "abc",
                    "private_key": private_key_pem,
                    "client_email": "svc@demo.iam.gserviceaccount.com",
                }
            )
        )

        credentials = ServiceAccountCredentials.from_file(path)

        assert credentials.project_id == "demo"
        assert credentials.private_key_id == "abc"

    def test_from_file_missing_fields(self, tmp_path: Path):
        path = tmp_path / "key.json"
        path.write_text(json.dumps({"project_id": "demo"}))

        with pytest.raises(ConfigurationError, match="client_email, private_key"):
            ServiceAccountCredentials.from_file(path)

    def test_from_file_unreadable(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="Unable to read"):
            ServiceAccountCredentials.from_file(tmp_path / "absent.json")

    def test_from_settings_normalizes_escaped_newlines(self, private_key_pem: str):
        escaped = private_key_pem.replace("\n", "\\n")
        settings = IdentitySettings(
            client_email="svc@demo.iam.gserviceaccount.com",
            private_key=f'"{escaped}"',
            emulator_host=None,
        )

        credentials = ServiceAccountCredentials.from_settings(settings)

        assert credentials is not None
        assert credentials.private_key.get_secret_value() == private_key_pem

    def test_from_settings_without_credentials(self):
        assert ServiceAccountCredentials.from_settings(IdentitySettings()) is None


@pytest.mark.unit
class TestAccessTokenProvider:
    @pytest.mark.asyncio
    async def test_emulator_uses_owner_bearer(self):
        async with httpx.AsyncClient() as client:
            provider = AccessTokenProvider(None, client, TOKEN_URL, emulator=True)

            assert await provider.get_token() == EMULATOR_BEARER

    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, credentials, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                200, json={"access_token": "ya29.token", "expires_in": 3600}
            )
        )
        async with httpx.AsyncClient(transport=transport) as client:
            provider = AccessTokenProvider(credentials, client, TOKEN_URL)

            assert await provider.get_token() == "ya29.token"
            assert await provider.get_token() == "ya29.token"

        assert len(transport.requests) == 1
        form = dict(httpx.QueryParams(transport.requests[0].content.decode()))
        assert form["grant_type"] == JWT_BEARER_GRANT
        assert jwt.decode(form["assertion"], options={"verify_signature": False})["aud"] == TOKEN_URL

    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self, credentials, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
        )
        async with httpx.AsyncClient(transport=transport) as client:
            provider = AccessTokenProvider(credentials, client, TOKEN_URL)
            await provider.get_token()
            provider.invalidate()
            await provider.get_token()

        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        async with httpx.AsyncClient() as client:
            provider = AccessTokenProvider(None, client, TOKEN_URL)

            with pytest.raises(ConfigurationError, match="No service-account credentials"):
                await provider.get_token()

    @pytest.mark.asyncio
    async def test_rejected_grant(self, credentials, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Invalid JWT Signature."}
            )
        )
        async with httpx.AsyncClient(transport=transport) as client:
            provider = AccessTokenProvider(credentials, client, TOKEN_URL)

            with pytest.raises(IdentityProviderError, match="Invalid JWT Signature"):
                await provider.get_token()
