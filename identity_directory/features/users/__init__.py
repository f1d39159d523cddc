"""Users feature: Relay-style listing and writes over the identity provider."""

from __future__ import annotations

from .schemas import (
    FilterOperator,
    OrderDirection,
    UserCreate,
    UserFilter,
    UserListRequest,
    UserOrder,
    UserUpdate,
)
from .service import UserDirectory
from .validation import ListMode, ListPlan, select_mode, validate_list_request

__all__ = [
    "FilterOperator",
    "ListMode",
    "ListPlan",
    "OrderDirection",
    "UserCreate",
    "UserDirectory",
    "UserFilter",
    "UserListRequest",
    "UserOrder",
    "UserUpdate",
    "select_mode",
    "validate_list_request",
]
