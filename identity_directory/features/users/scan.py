"""Sequential scan over the provider's user listing.

The provider pages with an opaque continuation token and cannot start
mid-batch. A scan cursor therefore stores the token that produced a batch and
an offset into it; resuming re-fetches that batch with ``limit + offset``
entries and skips the first ``offset``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from identity_directory.core.pagination import Connection, CursorCodec, Edge
from identity_directory.infra.identity.models import UserRecord
from identity_directory.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from identity_directory.core.pagination import CursorData
    from identity_directory.infra.identity.protocols import IdentityBackend

lazy_logger = get_lazy_logger(__name__)


async def scan_users(
    backend: IdentityBackend,
    limit: int,
    after: CursorData | None = None,
) -> Connection[UserRecord]:
    """Fetch one page of users in provider order.

    Args:
        backend: Identity backend to list from
        limit: Page size
        after: Scan cursor to resume from

    Returns:
        Connection whose last edge continues at the next batch when the
        provider reported one, and at ``index + 1`` of this batch otherwise.
    """
    list_token = after.list_token if after is not None else None
    offset = (after.offset or 0) if after is not None else 0

    page = await backend.list_users(limit + offset, list_token)
    batch = page.users
    next_token = page.next_page_token
    last_index = len(batch) - 1

    edges: list[Edge[UserRecord]] = []
    for index in range(offset, len(batch)):
        if index == last_index and next_token:
            cursor = CursorCodec.scan(next_token, 0)
        else:
            cursor = CursorCodec.scan(list_token, index + 1)
        edges.append(Edge[UserRecord](node=batch[index], cursor=cursor))

    lazy_logger.debug(
        lambda: f"scan_users(limit={limit}, offset={offset}) fetched {len(batch)}, "
        f"returned {len(edges)}, next_page={'yes' if next_token else 'no'}",
    )
    return Connection[UserRecord].build(
        edges,
        has_previous_page=after is not None,
        has_next_page=bool(next_token),
    )


__all__ = ["scan_users"]
