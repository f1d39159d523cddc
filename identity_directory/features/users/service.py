"""Service layer for the users feature."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from identity_directory.core.pagination import Connection
from identity_directory.core.settings import get_pagination_settings
from identity_directory.features.users.lookup import lookup_by_field, lookup_users
from identity_directory.features.users.scan import scan_users
from identity_directory.features.users.validation import (
    ListMode,
    select_mode,
    validate_list_request,
)
from identity_directory.infra.identity.models import UserRecord
from identity_directory.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from identity_directory.core.settings.pagination import PaginationSettings
    from identity_directory.features.users.schemas import (
        UserCreate,
        UserListRequest,
        UserUpdate,
    )
    from identity_directory.infra.identity.protocols import IdentityBackend


# Standard logger for INFO/WARNING/ERROR
logger = logging.getLogger(__name__)
# Lazy logger for DEBUG (zero overhead when DEBUG disabled)
lazy_logger = get_lazy_logger(__name__)


class UserDirectory:
    """Directory of users held by the identity provider.

    Handles:
    - Relay-style listing (validation, mode selection, scan or lookup)
    - Point lookups with not-found as a soft miss
    - Writes, including the non-atomic upsert
    """

    def __init__(
        self,
        backend: IdentityBackend,
        pagination: PaginationSettings | None = None,
    ) -> None:
        """Initialize the directory.

        Args:
            backend: Identity backend serving the current tenant
            pagination: Page size limits (optional, uses settings if not provided)
        """
        self._backend = backend
        self._pagination = pagination or get_pagination_settings()

    @property
    def backend(self) -> IdentityBackend:
        return self._backend

    async def list_users(self, request: UserListRequest) -> Connection[UserRecord]:
        """List users as a connection.

        Raises:
            InvalidArgumentException: Negative or oversized page size
            UnsupportedOperationException: Unsupported arguments or filters
            MalformedCursorException: ``after`` cannot be decoded
            IdentityProviderError: The provider failed
        """
        plan = validate_list_request(
            request,
            default_limit=self._pagination.default_limit,
            max_limit=self._pagination.max_limit,
        )
        if plan is None:
            lazy_logger.debug("list_users: zero-size page requested")
            return Connection[UserRecord].empty()

        mode = select_mode(plan)
        lazy_logger.debug(
            lambda: f"list_users(limit={plan.limit}, filters={len(plan.filters)}, "
            f"after={'yes' if plan.after else 'no'}) -> {mode.value}",
        )
        if mode is ListMode.LOOKUP:
            return await lookup_users(self._backend, plan.filters, plan.after)
        return await scan_users(self._backend, plan.limit, plan.after)

    async def find(self, uid: str) -> UserRecord | None:
        """Get a user by id, or None when the provider has no such user."""
        return await lookup_by_field(self._backend, "id", uid)

    async def find_by_email(self, email: str) -> UserRecord | None:
        return await lookup_by_field(self._backend, "email", email)

    async def find_by_phone_number(self, phone_number: str) -> UserRecord | None:
        return await lookup_by_field(self._backend, "phoneNumber", phone_number)

    async def create(self, uid: str | None, data: UserCreate | UserUpdate) -> str:
        """Create a user and return its id.

        Args:
            uid: Id to assign; the provider generates one when None
            data: Attributes of the new user
        """
        user = await self._backend.create_user(uid, data.to_provider())
        logger.info("User created", extra={"uid": user.id})
        return user.id

    async def update(self, uid: str, data: UserCreate | UserUpdate) -> str:
        await self._backend.update_user(uid, data.to_provider())
        logger.info("User updated", extra={"uid": uid})
        return uid

    async def delete(self, uid: str) -> None:
        await self._backend.delete_user(uid)
        logger.info("User deleted", extra={"uid": uid})

    async def upsert(self, uid: str, data: UserCreate | UserUpdate) -> str:
        """Update the user if it exists, create it otherwise.

        Not atomic: two concurrent upserts for a new id can both decide to
        create, and the provider's write order decides the outcome.
        """
        existing = await self.find(uid)
        if existing is None:
            return await self.create(uid, data)
        return await self.update(uid, data)


__all__ = ["UserDirectory"]
