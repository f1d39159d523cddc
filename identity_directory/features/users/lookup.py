"""Filtered listing through point lookups.

The provider cannot filter a listing, but it can fetch a single user by id,
email or phone number, each of which is unique. A filter chain is answered by
seeding from one point lookup and narrowing the (at most one) result with the
remaining filters in memory.

Filters are checked one at a time as the chain reaches them. Once the result
set is empty the chain stops, so filters further along are never checked.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Final

from identity_directory.core.exceptions import UnsupportedOperationException
from identity_directory.core.pagination import Connection, CursorCodec, Edge
from identity_directory.features.users.schemas import FilterOperator, UserFilter
from identity_directory.infra.identity.errors import IdentityProviderError
from identity_directory.infra.identity.models import UserRecord
from identity_directory.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from identity_directory.core.pagination import CursorData
    from identity_directory.infra.identity.protocols import IdentityBackend

lazy_logger = get_lazy_logger(__name__)

CURSOR_FIELD: Final[str] = "id"

# Filter field name -> UserRecord attribute
FILTERABLE_FIELDS: Final[dict[str, str]] = {
    "id": "id",
    "email": "email",
    "phoneNumber": "phone_number",
}


def _lookup_method(
    backend: IdentityBackend,
    field: str,
) -> Callable[[str], Awaitable[UserRecord]]:
    if field == "id":
        return backend.get_user
    if field == "email":
        return backend.get_user_by_email
    if field == "phoneNumber":
        return backend.get_user_by_phone_number
    msg = f'Filtering on "{field}" not supported'
    raise UnsupportedOperationException(
        msg,
        extra={"field": field, "supported": sorted(FILTERABLE_FIELDS)},
    )


def _check_operator(user_filter: UserFilter) -> None:
    if user_filter.op is not FilterOperator.EQ:
        msg = "Filter operations on users only support comparison (equals) operations"
        raise UnsupportedOperationException(
            msg,
            extra={"field": user_filter.field, "op": user_filter.op.value},
        )


async def lookup_by_field(
    backend: IdentityBackend,
    field: str,
    value: str,
) -> UserRecord | None:
    """Point lookup that turns a provider not-found into None.

    Raises:
        UnsupportedOperationException: ``field`` has no lookup primitive
        IdentityProviderError: Any provider error other than not-found
    """
    method = _lookup_method(backend, field)
    try:
        return await method(value)
    except IdentityProviderError as e:
        if e.is_not_found:
            return None
        raise


def _matches(user: UserRecord, user_filter: UserFilter) -> bool:
    attribute = FILTERABLE_FIELDS.get(user_filter.field)
    if attribute is None:
        msg = f'Filtering on "{user_filter.field}" not supported'
        raise UnsupportedOperationException(
            msg,
            extra={"field": user_filter.field, "supported": sorted(FILTERABLE_FIELDS)},
        )
    return getattr(user, attribute) == user_filter.value


async def lookup_users(
    backend: IdentityBackend,
    filters: tuple[UserFilter, ...] | list[UserFilter],
    after: CursorData | None = None,
) -> Connection[UserRecord]:
    """Answer a filter chain, or resume a point cursor, with point lookups.

    Args:
        backend: Identity backend to look users up in
        filters: Filter chain; every entry narrows when resuming from ``after``
        after: Point cursor to resume from

    Returns:
        Connection with at most one edge and no further pages.

    Raises:
        UnsupportedOperationException: The chain reaches a non-EQ operator or
            a field without a lookup
    """
    remaining = list(filters)

    if after is not None and after.is_point:
        seed = await lookup_by_field(backend, after.field or "", after.value or "")
    else:
        first_filter = remaining.pop(0)
        _check_operator(first_filter)
        seed = await lookup_by_field(backend, first_filter.field, first_filter.value)

    users = [seed] if seed is not None else []
    while remaining and users:
        user_filter = remaining.pop(0)
        _check_operator(user_filter)
        users = [user for user in users if _matches(user, user_filter)]

    lazy_logger.debug(
        lambda: f"lookup_users(filters={len(filters)}, resumed={after is not None}) "
        f"-> {len(users)} match(es), {len(remaining)} filter(s) not evaluated",
    )
    edges = [
        Edge[UserRecord](node=user, cursor=CursorCodec.point(CURSOR_FIELD, user.id))
        for user in users
    ]
    return Connection[UserRecord].build(edges, has_previous_page=False, has_next_page=False)


__all__ = ["FILTERABLE_FIELDS", "lookup_by_field", "lookup_users"]
