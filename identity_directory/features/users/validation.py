"""List request validation and mode selection.

Checks run in a fixed order and stop at the first failure. Every check runs
before the identity provider is contacted, so a rejected request costs no
remote call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from identity_directory.core.exceptions import (
    InvalidArgumentException,
    UnsupportedOperationException,
)
from identity_directory.core.pagination import CursorCodec, CursorData
from identity_directory.features.users.schemas import UserFilter, UserListRequest

logger = logging.getLogger(__name__)


class ListMode(str, Enum):
    """Execution strategy for a list request."""

    SCAN = "scan"
    LOOKUP = "lookup"


@dataclass(frozen=True)
class ListPlan:
    """A validated list request.

    Attributes:
        limit: Effective page size
        after: Decoded resume cursor, if any
        filters: Filter chain in request order
    """

    limit: int
    after: CursorData | None
    filters: tuple[UserFilter, ...]

    @property
    def mode(self) -> ListMode:
        return select_mode(self)


def validate_list_request(
    request: UserListRequest,
    *,
    default_limit: int,
    max_limit: int,
) -> ListPlan | None:
    """Validate ``request`` and compute its plan.

    Returns:
        The plan, or None when the request asks for zero records and the
        answer is an empty connection.

    Raises:
        InvalidArgumentException: Negative page size, or a page size above ``max_limit``
        UnsupportedOperationException: ``before``, tail access, or ordering
        MalformedCursorException: ``after`` cannot be decoded
    """
    first, last = request.first, request.last

    if first is not None and first < 0:
        msg = "When supplied, first MUST be greater than or equal to 0"
        raise InvalidArgumentException(msg, extra={"first": first})
    if last is not None and last < 0:
        msg = "When supplied, last MUST be greater than or equal to 0"
        raise InvalidArgumentException(msg, extra={"last": last})

    if request.before is not None:
        msg = "User listing does not support the before cursor"
        raise UnsupportedOperationException(msg, extra={"before": request.before})

    if first == 0 or last == 0:
        return None

    if first is not None and last is not None and first > last:
        last = None

    if last is not None and (first is None or last > first):
        msg = "User listing does not support accessing data from the tail"
        raise UnsupportedOperationException(msg, extra={"first": first, "last": last})

    if request.order:
        msg = "User listing does not support ordering"
        raise UnsupportedOperationException(
            msg,
            extra={"order": [order.field for order in request.order]},
        )

    limit = _effective_limit(first, last, default_limit)
    if limit > max_limit:
        msg = (
            "The maximum number of records that can be requested (using first and last) "
            f"is {max_limit}. Received {limit} (first: {request.first}. last: {request.last})"
        )
        raise InvalidArgumentException(
            msg,
            extra={"requested": limit, "maximum": max_limit, "first": request.first, "last": request.last},
        )

    after = CursorCodec.decode(request.after) if request.after is not None else None
    return ListPlan(limit=limit, after=after, filters=tuple(request.filters))


def _effective_limit(first: int | None, last: int | None, default_limit: int) -> int:
    if first is not None and last is not None:
        return max(first, last)
    if first is not None:
        return first
    if last is not None:
        return last
    return default_limit


def select_mode(plan: ListPlan) -> ListMode:
    """Route to point lookups when resuming a point cursor or filtering."""
    if (plan.after is not None and plan.after.is_point) or plan.filters:
        return ListMode.LOOKUP
    return ListMode.SCAN


__all__ = ["ListMode", "ListPlan", "select_mode", "validate_list_request"]
