"""Tests for the public sign-in REST client."""
from __future__ import annotations

import httpx
import pytest

from identity_directory.core.exceptions import ConfigurationError
from identity_directory.infra.identity.errors import IdentityProviderError
from identity_directory.infra.identity.rest_client import IdentityRestClient


def _client(transport, **kwargs) -> IdentityRestClient:
    kwargs.setdefault("api_key", "web-key")
    return IdentityRestClient(
        base_url="https://toolkit.test",
        secure_token_url="https://securetoken.test",
        client=httpx.AsyncClient(transport=transport),
        **kwargs,
    )


@pytest.mark.unit
class TestSignIn:
    @pytest.mark.asyncio
    async def test_verify_password(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                200,
                json={
                    "idToken": "id-1",
                    "refreshToken": "r-1",
                    "expiresIn": "3600",
                    "localId": "u1",
                    "email": "ada@example.com",
                    "registered": True,
                },
            )
        )
        client = _client(transport)

        result = await client.verify_password("ada@example.com", "secret")

        assert result.id_token == "id-1"
        assert result.expires_in == 3600
        assert result.registered is True
        request = transport.requests[0]
        assert request.url.path == "/v1/accounts:signInWithPassword"
        assert request.url.params["key"] == "web-key"
        assert transport.json_bodies()[0] == {
            "email": "ada@example.com",
            "password": "secret",
            "returnSecureToken": True,
        }

    @pytest.mark.asyncio
    async def test_tenant_is_sent(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                200,
                json={"idToken": "i", "refreshToken": "r", "expiresIn": "3600", "localId": "u1"},
            )
        )
        client = _client(transport, tenant_id="acme")

        await client.verify_password("ada@example.com", "secret")

        assert transport.json_bodies()[0]["tenantId"] == "acme"

    @pytest.mark.asyncio
    async def test_custom_token_response_without_local_id(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                200, json={"idToken": "i", "refreshToken": "r", "expiresIn": "3600"}
            )
        )
        client = _client(transport)

        result = await client.verify_custom_token("custom-1")

        assert result.local_id == ""
        assert transport.requests[0].url.path == "/v1/accounts:signInWithCustomToken"
        assert transport.json_bodies()[0]["token"] == "custom-1"

    @pytest.mark.asyncio
    async def test_wrong_password(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                400, json={"error": {"code": 400, "message": "INVALID_PASSWORD"}}
            )
        )
        client = _client(transport)

        with pytest.raises(IdentityProviderError) as exc_info:
            await client.verify_password("ada@example.com", "nope")

        assert exc_info.value.provider_code == "auth/wrong-password"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(500))
        client = _client(transport, api_key=None)

        with pytest.raises(ConfigurationError, match="No API key available"):
            await client.verify_password("ada@example.com", "secret")

        assert transport.requests == []


@pytest.mark.unit
class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_id_token(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                200,
                json={
                    "id_token": "id-2",
                    "refresh_token": "r-2",
                    "expires_in": "3600",
                    "token_type": "Bearer",
                    "user_id": "u1",
                    "project_id": "demo",
                },
            )
        )
        client = _client(transport)

        result = await client.refresh_id_token("r-1")

        assert result.id_token == "id-2"
        assert result.expires_in == 3600
        request = transport.requests[0]
        assert request.url.host == "securetoken.test"
        assert request.url.path == "/v1/token"
        form = dict(httpx.QueryParams(request.content.decode()))
        assert form == {"grant_type": "refresh_token", "refresh_token": "r-1"}

    @pytest.mark.asyncio
    async def test_invalid_refresh_token(self, make_transport):
        transport = make_transport(
            lambda request: httpx.Response(
                400, json={"error": {"code": 400, "message": "INVALID_REFRESH_TOKEN"}}
            )
        )
        client = _client(transport)

        with pytest.raises(IdentityProviderError) as exc_info:
            await client.refresh_id_token("bad")

        assert exc_info.value.provider_code == "auth/invalid-refresh-token"
