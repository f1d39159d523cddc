"""Unit tests for filtered listing through point lookups."""
from __future__ import annotations

import pytest

from identity_directory.core.exceptions import UnsupportedOperationException
from identity_directory.core.pagination import CursorCodec
from identity_directory.features.users.lookup import lookup_by_field, lookup_users
from identity_directory.features.users.schemas import FilterOperator, UserFilter
from identity_directory.infra.identity.errors import IdentityProviderError
from identity_directory.infra.identity.testing import InMemoryIdentityBackend


def eq(field: str, value: str) -> UserFilter:
    return UserFilter(field=field, value=value)


@pytest.mark.unit
class TestLookupByField:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("field", "value", "method"),
        [
            ("id", "u3", "get_user"),
            ("email", "alan@example.com", "get_user_by_email"),
            ("phoneNumber", "+15550000003", "get_user_by_phone_number"),
        ],
    )
    async def test_dispatches_to_primitive(
        self, backend: InMemoryIdentityBackend, field: str, value: str, method: str
    ):
        user = await lookup_by_field(backend, field, value)

        assert user is not None
        assert user.id == "u3"
        assert backend.calls == [(method, (value,))]

    @pytest.mark.asyncio
    async def test_not_found_is_soft_miss(self, backend: InMemoryIdentityBackend):
        assert await lookup_by_field(backend, "id", "missing") is None

    @pytest.mark.asyncio
    async def test_unsupported_field(self, backend: InMemoryIdentityBackend):
        with pytest.raises(UnsupportedOperationException, match='Filtering on "displayName" not supported'):
            await lookup_by_field(backend, "displayName", "Ada")

        assert backend.call_count() == 0

    @pytest.mark.asyncio
    async def test_other_provider_errors_propagate(self, backend: InMemoryIdentityBackend):
        async def failing(uid: str):
            raise IdentityProviderError("quota", reason="QUOTA_EXCEEDED", status_code=429)

        backend.get_user = failing  # type: ignore[method-assign]

        with pytest.raises(IdentityProviderError, match="quota"):
            await lookup_by_field(backend, "id", "u1")


@pytest.mark.unit
class TestLookupUsers:
    @pytest.mark.asyncio
    async def test_single_filter(self, backend: InMemoryIdentityBackend):
        connection = await lookup_users(backend, [eq("email", "ada@example.com")])

        assert [user.id for user in connection.nodes] == ["u1"]
        assert connection.page_info.has_next_page is False
        assert connection.page_info.has_previous_page is False
        assert CursorCodec.decode(connection.edges[0].cursor) == CursorCodec.decode(
            CursorCodec.point("id", "u1")
        )

    @pytest.mark.asyncio
    async def test_only_the_first_filter_hits_the_provider(
        self, backend: InMemoryIdentityBackend
    ):
        connection = await lookup_users(
            backend, [eq("email", "ada@example.com"), eq("phoneNumber", "+15550000001")]
        )

        assert connection.nodes[0].id == "u1"
        assert backend.calls == [("get_user_by_email", ("ada@example.com",))]

    @pytest.mark.asyncio
    async def test_narrowing_mismatch_is_empty(self, backend: InMemoryIdentityBackend):
        connection = await lookup_users(backend, [eq("email", "ada@example.com"), eq("id", "u2")])

        assert connection.edges == []
        assert connection.page_info.start_cursor is None

    @pytest.mark.asyncio
    async def test_seed_miss_is_empty(self, backend: InMemoryIdentityBackend):
        connection = await lookup_users(backend, [eq("id", "nobody")])

        assert connection.edges == []

    @pytest.mark.asyncio
    async def test_non_equality_seed_rejected_before_lookup(
        self, backend: InMemoryIdentityBackend
    ):
        with pytest.raises(UnsupportedOperationException, match="equals"):
            await lookup_users(
                backend, [UserFilter(field="id", op=FilterOperator.GT, value="u1")]
            )

        assert backend.call_count() == 0

    @pytest.mark.asyncio
    async def test_non_equality_narrowing_rejected_when_reached(
        self, backend: InMemoryIdentityBackend
    ):
        with pytest.raises(UnsupportedOperationException, match="equals"):
            await lookup_users(
                backend,
                [eq("id", "u1"), UserFilter(field="email", op=FilterOperator.NE, value="x")],
            )

    @pytest.mark.asyncio
    async def test_filters_after_an_empty_result_are_not_checked(
        self, backend: InMemoryIdentityBackend
    ):
        connection = await lookup_users(
            backend,
            [
                eq("id", "nobody"),
                UserFilter(field="email", op=FilterOperator.LT, value="x"),
                eq("displayName", "Ada"),
            ],
        )

        assert connection.edges == []

    @pytest.mark.asyncio
    async def test_unsupported_narrowing_field_rejected_when_reached(
        self, backend: InMemoryIdentityBackend
    ):
        with pytest.raises(UnsupportedOperationException, match="displayName"):
            await lookup_users(backend, [eq("id", "u1"), eq("displayName", "Ada")])

    @pytest.mark.asyncio
    async def test_point_cursor_resumes_the_same_record(
        self, backend: InMemoryIdentityBackend
    ):
        after = CursorCodec.decode(CursorCodec.point("id", "u2"))

        connection = await lookup_users(backend, [], after)

        assert [user.id for user in connection.nodes] == ["u2"]
        assert backend.calls == [("get_user", ("u2",))]

    @pytest.mark.asyncio
    async def test_point_cursor_narrows_with_every_filter(
        self, backend: InMemoryIdentityBackend
    ):
        after = CursorCodec.decode(CursorCodec.point("id", "u2"))

        connection = await lookup_users(backend, [eq("email", "ada@example.com")], after)

        assert connection.edges == []
        assert backend.call_count() == 1
