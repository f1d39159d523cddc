"""Tests for the in-memory identity backend used across the suite."""
from __future__ import annotations

import pytest

from identity_directory.infra.identity.errors import IdentityProviderError
from identity_directory.infra.identity.models import UserRecord
from identity_directory.infra.identity.protocols import IdentityBackend
from identity_directory.infra.identity.testing import InMemoryIdentityBackend


@pytest.fixture
def backend() -> InMemoryIdentityBackend:
    return InMemoryIdentityBackend.with_users(
        UserRecord(id="a", email="a@example.com", phone_number="+15550000001"),
        UserRecord(id="b", email="b@example.com"),
        UserRecord(id="c"),
    )


@pytest.mark.unit
def test_implements_protocol(backend):
    assert isinstance(backend, IdentityBackend)


@pytest.mark.unit
class TestListing:
    @pytest.mark.asyncio
    async def test_pages_in_insertion_order(self, backend):
        first = await backend.list_users(2)
        second = await backend.list_users(2, first.next_page_token)

        assert [u.id for u in first.users] == ["a", "b"]
        assert [u.id for u in second.users] == ["c"]
        assert second.next_page_token is None

    @pytest.mark.asyncio
    async def test_exact_fit_has_no_next_token(self, backend):
        page = await backend.list_users(3)

        assert len(page.users) == 3
        assert page.next_page_token is None

    @pytest.mark.parametrize("token", ["bm90LWEtdG9rZW4=", "page:abc", "%%%"])
    @pytest.mark.asyncio
    async def test_bad_page_token(self, backend, token):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.list_users(2, token)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_records_calls(self, backend):
        await backend.list_users(1)
        await backend.get_user("a")

        assert backend.call_count() == 2
        assert backend.call_count("list_users") == 1
        assert backend.calls[0] == ("list_users", (1, None))

        backend.reset_calls()
        assert backend.call_count() == 0


@pytest.mark.unit
class TestLookups:
    @pytest.mark.asyncio
    async def test_email_lookup_ignores_case(self, backend):
        user = await backend.get_user_by_email("A@Example.com")

        assert user.id == "a"

    @pytest.mark.asyncio
    async def test_phone_lookup(self, backend):
        user = await backend.get_user_by_phone_number("+15550000001")

        assert user.id == "a"

    @pytest.mark.asyncio
    async def test_miss_is_user_not_found(self, backend):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.get_user("zzz")

        assert exc_info.value.is_not_found


@pytest.mark.unit
class TestWrites:
    @pytest.mark.asyncio
    async def test_create_assigns_id(self, backend):
        user = await backend.create_user(None, {"email": "new@example.com", "password": "pw"})

        assert user.id
        assert backend.password_for(user.id) == "pw"
        assert backend.users[-1].id == user.id

    @pytest.mark.asyncio
    async def test_duplicate_id(self, backend):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.create_user("a", {})

        assert exc_info.value.provider_code == "auth/uid-already-exists"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, backend):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.update_user("c", {"email": "a@example.com"})

        assert exc_info.value.provider_code == "auth/email-already-exists"

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, backend):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.create_user("d", {"phoneNumber": "+15550000001"})

        assert exc_info.value.provider_code == "auth/phone-number-already-exists"

    @pytest.mark.asyncio
    async def test_update_keeps_own_email(self, backend):
        user = await backend.update_user("a", {"email": "a@example.com", "disabled": True})

        assert user.disabled is True

    @pytest.mark.asyncio
    async def test_delete_missing(self, backend):
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.delete_user("zzz")

        assert exc_info.value.is_not_found


@pytest.mark.unit
class TestTokens:
    @pytest.mark.asyncio
    async def test_session_cookie_round_trip(self, backend):
        backend.register_id_token("tok", "a", admin=True)

        cookie = await backend.create_session_cookie("tok", 3600)
        claims = await backend.verify_session_cookie(cookie)

        assert claims["uid"] == "a"
        assert claims["admin"] is True
        assert claims["iss"].startswith("https://session.firebase.google.com/")

    @pytest.mark.asyncio
    async def test_revoked_token(self, backend):
        backend.register_id_token("tok", "a")
        await backend.revoke_refresh_tokens("a")

        assert (await backend.verify_id_token("tok"))["uid"] == "a"
        with pytest.raises(IdentityProviderError) as exc_info:
            await backend.verify_id_token("tok", check_revoked=True)

        assert exc_info.value.provider_code == "auth/id-token-revoked"

    @pytest.mark.asyncio
    async def test_action_link(self, backend):
        link = await backend.generate_password_reset_link("a@example.com")

        assert link.startswith("https://identity.test/__/auth/action?mode=resetPassword")
        assert "email=a%40example.com" in link
