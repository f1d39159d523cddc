"""Tests for HttpIdentityBackend against a mocked admin API."""
from __future__ import annotations

import httpx
import jwt
import pytest

from identity_directory.core.exceptions import ConfigurationError, InvalidArgumentException
from identity_directory.core.settings.identity import IdentitySettings
from identity_directory.infra.identity.errors import IdentityProviderError
from identity_directory.infra.identity.http_backend import (
    CUSTOM_TOKEN_AUDIENCE,
    HttpIdentityBackend,
)
from identity_directory.infra.identity.protocols import IdentityBackend

BASE = "/identitytoolkit.googleapis.com/v1/projects/demo"

ADA = {"localId": "u1", "email": "ada@example.com", "emailVerified": True, "validSince": "1700000000"}


def _error(message: str, code: int = 400) -> httpx.Response:
    return httpx.Response(code, json={"error": {"code": code, "message": message}})


def _settings(**overrides) -> IdentitySettings:
    values = {"project_id": "demo", "emulator_host": "localhost:9099"}
    values.update(overrides)
    return IdentitySettings(**values)


@pytest.fixture
def routes() -> dict:
    """Responses keyed by (method, path suffix); tests add their own."""
    return {}


@pytest.fixture
def transport(make_transport, routes):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        for (method, suffix), response in routes.items():
            if request.method == method and path.endswith(suffix):
                return response(request) if callable(response) else response
        return _error("NOT_IMPLEMENTED", 501)

    return make_transport(handler)


@pytest.fixture
async def backend(transport):
    async with httpx.AsyncClient(transport=transport) as client:
        yield HttpIdentityBackend.from_settings(_settings(), client=client)


@pytest.fixture
async def tenant_backend(transport):
    async with httpx.AsyncClient(transport=transport) as client:
        yield HttpIdentityBackend.from_settings(_settings(), tenant_id="acme", client=client)


@pytest.mark.unit
class TestConstruction:
    def test_implements_protocol(self):
        backend = HttpIdentityBackend.from_settings(_settings())

        assert isinstance(backend, IdentityBackend)

    def test_requires_project_id(self):
        with pytest.raises(ConfigurationError, match="IDENTITY_PROJECT_ID"):
            HttpIdentityBackend.from_settings(IdentitySettings(project_id=None, emulator_host="h:1"))

    def test_tenant_resource_path(self):
        backend = HttpIdentityBackend.from_settings(_settings(), tenant_id="acme")

        assert backend.resource_path == "/v1/projects/demo/tenants/acme"

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        async with httpx.AsyncClient() as client:
            backend = HttpIdentityBackend.from_settings(_settings(), client=client)
            await backend.aclose()

            assert not client.is_closed


@pytest.mark.unit
class TestLookupsAndListing:
    @pytest.mark.asyncio
    async def test_get_user(self, backend, routes, transport):
        routes[("POST", "/accounts:lookup")] = httpx.Response(200, json={"users": [ADA]})

        user = await backend.get_user("u1")

        assert user.id == "u1"
        assert user.email_verified is True
        assert user.tokens_valid_after == 1700000000
        request = transport.requests[0]
        assert request.url.path == f"{BASE}/accounts:lookup"
        assert request.headers["Authorization"] == "Bearer owner"
        assert transport.json_bodies() == [{"localId": ["u1"]}]

    @pytest.mark.asyncio
    async def test_lookup_by_email_and_phone(self, backend, routes, transport):
        routes[("POST", "/accounts:lookup")] = httpx.Response(200, json={"users": [ADA]})

        await backend.get_user_by_email("ada@example.com")
        await backend.get_user_by_phone_number("+15550000001")

        assert transport.json_bodies() == [
            {"email": ["ada@example.com"]},
            {"phoneNumber": ["+15550000001"]},
        ]

    @pytest.mark.asyncio
    async def test_lookup_without_users_is_not_found(self, backend, routes):
        routes[("POST", "/accounts:lookup")] = httpx.Response(200, json={})

        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.get_user("nobody")

        assert exc_info.value.is_not_found
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_list_users(self, backend, routes, transport):
        routes[("GET", "/accounts:batchGet")] = httpx.Response(
            200, json={"users": [ADA, {"localId": "u2"}], "nextPageToken": "next-2"}
        )

        page = await backend.list_users(2, "tok-1")

        assert [user.id for user in page.users] == ["u1", "u2"]
        assert page.next_page_token == "next-2"
        params = transport.requests[0].url.params
        assert params["maxResults"] == "2"
        assert params["nextPageToken"] == "tok-1"

    @pytest.mark.asyncio
    async def test_list_users_last_page(self, backend, routes):
        routes[("GET", "/accounts:batchGet")] = httpx.Response(200, json={"users": [ADA]})

        page = await backend.list_users(10)

        assert page.next_page_token is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_results", [0, 1001])
    async def test_list_users_bounds(self, backend, transport, max_results):
        with pytest.raises(InvalidArgumentException):
            await backend.list_users(max_results)

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_provider_error(self, backend, routes):
        routes[("GET", "/accounts:batchGet")] = _error("INVALID_PAGE_SELECTION")

        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.list_users(10, "bad")

        assert exc_info.value.reason == "INVALID_PAGE_SELECTION"
        assert exc_info.value.status_code == 400


@pytest.mark.unit
class TestWrites:
    @pytest.mark.asyncio
    async def test_create_user(self, backend, routes, transport):
        routes[("POST", "/accounts")] = httpx.Response(200, json={"localId": "u1"})
        routes[("POST", "/accounts:lookup")] = httpx.Response(200, json={"users": [ADA]})

        user = await backend.create_user("u1", {"email": "ada@example.com", "password": "secret1"})

        assert user.id == "u1"
        assert transport.json_bodies()[0] == {
            "localId": "u1",
            "email": "ada@example.com",
            "password": "secret1",
        }

    @pytest.mark.asyncio
    async def test_update_user_translates_fields(self, backend, routes, transport):
        routes[("POST", "/accounts:update")] = httpx.Response(200, json={"localId": "u1"})
        routes[("POST", "/accounts:lookup")] = httpx.Response(200, json={"users": [ADA]})

        await backend.update_user(
            "u1",
            {"disabled": True, "phoneNumber": None, "displayName": None, "email": "new@example.com"},
        )

        assert transport.json_bodies()[0] == {
            "localId": "u1",
            "disableUser": True,
            "deleteProvider": ["phone"],
            "deleteAttribute": ["DISPLAY_NAME"],
            "email": "new@example.com",
        }

    @pytest.mark.asyncio
    async def test_update_missing_user(self, backend, routes):
        routes[("POST", "/accounts:update")] = _error("USER_NOT_FOUND")

        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.update_user("nobody", {"disabled": True})

        assert exc_info.value.is_not_found

    @pytest.mark.asyncio
    async def test_delete_user(self, backend, routes, transport):
        routes[("POST", "/accounts:delete")] = httpx.Response(200, json={})

        await backend.delete_user("u1")

        assert transport.json_bodies() == [{"localId": "u1"}]

    @pytest.mark.asyncio
    async def test_revoke_sets_valid_since(self, backend, routes, transport):
        routes[("POST", "/accounts:update")] = httpx.Response(200, json={"localId": "u1"})

        await backend.revoke_refresh_tokens("u1")

        body = transport.json_bodies()[0]
        assert body["localId"] == "u1"
        assert isinstance(body["validSince"], int)


@pytest.mark.unit
class TestTokens:
    @pytest.mark.asyncio
    async def test_emulator_custom_token_is_unsigned(self, backend):
        token = await backend.create_custom_token("u1", {"premium": True})

        assert jwt.get_unverified_header(token)["alg"] == "none"
        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims["uid"] == "u1"
        assert claims["claims"] == {"premium": True}
        assert claims["aud"] == CUSTOM_TOKEN_AUDIENCE

    @pytest.mark.asyncio
    async def test_custom_token_carries_tenant(self, tenant_backend):
        token = await tenant_backend.create_custom_token("u1")

        assert jwt.decode(token, options={"verify_signature": False})["tenant_id"] == "acme"

    @pytest.mark.asyncio
    async def test_custom_token_rejects_reserved_claims(self, backend):
        with pytest.raises(InvalidArgumentException, match="sub"):
            await backend.create_custom_token("u1", {"sub": "someone-else"})

    @pytest.mark.asyncio
    async def test_custom_token_rejects_long_uid(self, backend):
        with pytest.raises(InvalidArgumentException):
            await backend.create_custom_token("x" * 129)

    @pytest.mark.asyncio
    async def test_custom_token_signed_with_credentials(self, transport, private_key_pem, rsa_private_key):
        settings = _settings(
            emulator_host=None,
            client_email="svc@demo.iam.gserviceaccount.com",
            private_key=private_key_pem,
        )
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpIdentityBackend.from_settings(settings, client=client)

            token = await backend.create_custom_token("u1")

        claims = jwt.decode(
            token,
            rsa_private_key.public_key(),
            algorithms=["RS256"],
            audience=CUSTOM_TOKEN_AUDIENCE,
        )
        assert claims["iss"] == "svc@demo.iam.gserviceaccount.com"

    @pytest.mark.asyncio
    async def test_session_cookie(self, backend, routes, transport):
        routes[("POST", ":createSessionCookie")] = httpx.Response(
            200, json={"sessionCookie": "cookie-1"}
        )

        cookie = await backend.create_session_cookie("id-1", 3600)

        assert cookie == "cookie-1"
        assert transport.requests[0].url.path == f"{BASE}:createSessionCookie"
        assert transport.json_bodies() == [{"idToken": "id-1", "validDuration": 3600}]

    @pytest.mark.asyncio
    async def test_verify_id_token_checks_revocation(self, backend, routes):
        routes[("POST", "/accounts:lookup")] = httpx.Response(
            200, json={"users": [{**ADA, "validSince": "2000000000"}]}
        )
        token = jwt.encode(
            {
                "iss": "https://securetoken.google.com/demo",
                "aud": "demo",
                "sub": "u1",
                "auth_time": 1_800_000_000,
            },
            "",
            algorithm="none",
        )

        claims = await backend.verify_id_token(token)
        assert claims["uid"] == "u1"

        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.verify_id_token(token, check_revoked=True)
        assert exc_info.value.provider_code == "auth/id-token-revoked"

    @pytest.mark.asyncio
    async def test_verify_rejects_other_tenant(self, tenant_backend):
        token = jwt.encode(
            {
                "iss": "https://securetoken.google.com/demo",
                "aud": "demo",
                "sub": "u1",
                "firebase": {"tenant": "other"},
            },
            "",
            algorithm="none",
        )

        with pytest.raises(IdentityProviderError) as exc_info:
            await tenant_backend.verify_id_token(token)

        assert exc_info.value.provider_code == "auth/mismatching-tenant-id"


@pytest.mark.unit
class TestActionLinks:
    @pytest.mark.asyncio
    async def test_password_reset_link(self, tenant_backend, routes, transport):
        routes[("POST", "/accounts:sendOobCode")] = httpx.Response(
            200, json={"oobLink": "https://link.test/reset"}
        )

        link = await tenant_backend.generate_password_reset_link("ada@example.com")

        assert link == "https://link.test/reset"
        assert transport.json_bodies() == [
            {
                "requestType": "PASSWORD_RESET",
                "email": "ada@example.com",
                "returnOobLink": True,
                "tenantId": "acme",
            }
        ]

    @pytest.mark.asyncio
    async def test_sign_in_link_requires_continue_url(self, backend, transport):
        with pytest.raises(ConfigurationError, match="CONTINUE_URL"):
            await backend.generate_sign_in_with_email_link("ada@example.com")

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_sign_in_link_with_continue_url(self, transport, routes):
        routes[("POST", "/accounts:sendOobCode")] = httpx.Response(
            200, json={"oobLink": "https://link.test/signin"}
        )
        settings = _settings(action_code_continue_url="https://app.test/finish")
        async with httpx.AsyncClient(transport=transport) as client:
            backend = HttpIdentityBackend.from_settings(settings, client=client)

            link = await backend.generate_sign_in_with_email_link("ada@example.com")

        assert link == "https://link.test/signin"
        body = transport.json_bodies()[0]
        assert body["requestType"] == "EMAIL_SIGNIN"
        assert body["continueUrl"] == "https://app.test/finish"
