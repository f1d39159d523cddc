"""Identity backend protocol definitions.

This module defines the IdentityBackend protocol that every identity provider
adapter must satisfy. The directory engine only ever talks to this protocol:
- Protocol-based test doubles (no mocking library needed)
- HTTP admin API and in-memory backends are interchangeable
- Clear separation between interface and implementation

The protocol uses structural subtyping (@runtime_checkable), so any class
implementing these methods will satisfy the protocol without explicit inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from identity_directory.infra.identity.models import ListUsersPage, UserRecord


@runtime_checkable
class IdentityBackend(Protocol):
    """Protocol for the remote identity provider's admin operations.

    The provider can enumerate users sequentially and look one up by id, email
    or phone number. It cannot filter, sort or page backwards, and it has no
    conditional writes.

    Implementations:
        - HttpIdentityBackend: Identity Toolkit admin REST API over httpx
        - InMemoryIdentityBackend: Test double (no mocking library needed)

    Example:
        backend: IdentityBackend = InMemoryIdentityBackend.with_users(
            UserRecord(id="u1", email="a@example.com"),
        )
        page = await backend.list_users(200)
        user = await backend.get_user_by_email("a@example.com")
    """

    # ========================================================================
    # Point lookups
    # ========================================================================

    async def get_user(self, uid: str) -> UserRecord:
        """Look up a user by id.

        Raises:
            IdentityProviderError: With ``auth/user-not-found`` on a miss
        """
        ...

    async def get_user_by_email(self, email: str) -> UserRecord:
        """Look up a user by email.

        Raises:
            IdentityProviderError: With ``auth/user-not-found`` on a miss
        """
        ...

    async def get_user_by_phone_number(self, phone_number: str) -> UserRecord:
        """Look up a user by phone number.

        Raises:
            IdentityProviderError: With ``auth/user-not-found`` on a miss
        """
        ...

    # ========================================================================
    # Sequential listing
    # ========================================================================

    async def list_users(
        self,
        max_results: int,
        page_token: str | None = None,
    ) -> ListUsersPage:
        """Return up to ``max_results`` users, resuming from ``page_token``.

        The returned page carries ``next_page_token`` while more users remain.
        """
        ...

    # ========================================================================
    # Writes
    # ========================================================================

    async def create_user(self, uid: str | None, data: dict[str, Any]) -> UserRecord:
        """Create a user with provider-shaped ``data`` and return the record."""
        ...

    async def update_user(self, uid: str, data: dict[str, Any]) -> UserRecord:
        """Apply provider-shaped ``data`` to an existing user."""
        ...

    async def delete_user(self, uid: str) -> None:
        """Delete a user."""
        ...

    # ========================================================================
    # Tokens and action links
    # ========================================================================

    async def verify_id_token(
        self,
        id_token: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        """Verify an ID token and return its decoded claims."""
        ...

    async def verify_session_cookie(
        self,
        session_cookie: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        """Verify a session cookie and return its decoded claims."""
        ...

    async def create_custom_token(
        self,
        uid: str,
        developer_claims: dict[str, Any] | None = None,
    ) -> str:
        """Mint a custom sign-in token for ``uid``."""
        ...

    async def create_session_cookie(self, id_token: str, expires_in: int) -> str:
        """Exchange an ID token for a session cookie valid ``expires_in`` seconds."""
        ...

    async def revoke_refresh_tokens(self, uid: str) -> None:
        """Invalidate every refresh token issued to ``uid``."""
        ...

    async def generate_email_verification_link(self, email: str) -> str:
        """Build an email verification action link."""
        ...

    async def generate_sign_in_with_email_link(self, email: str) -> str:
        """Build an email sign-in action link."""
        ...

    async def generate_password_reset_link(self, email: str) -> str:
        """Build a password reset action link."""
        ...

    async def aclose(self) -> None:
        """Release any pooled connections."""
        ...


__all__ = [
    "IdentityBackend",
]
