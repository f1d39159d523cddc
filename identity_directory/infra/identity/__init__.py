"""Identity provider integration.

Provides:
- IdentityBackend protocol with HTTP and in-memory implementations
- IdentityRestClient for the public sign-in endpoints
- Service-account credentials and token verification
- A per-tenant client registry with LRU/TTL eviction

Usage:
    from identity_directory.infra.identity import get_identity_registry

    async with get_identity_registry().lease(tenant_id) as clients:
        page = await clients.backend.list_users(200)
"""

from identity_directory.infra.identity.errors import USER_NOT_FOUND, IdentityProviderError
from identity_directory.infra.identity.http_backend import HttpIdentityBackend
from identity_directory.infra.identity.models import (
    IdTokenResult,
    ListUsersPage,
    RefreshTokenResult,
    UserRecord,
)
from identity_directory.infra.identity.protocols import IdentityBackend
from identity_directory.infra.identity.registry import (
    IdentityClientRegistry,
    IdentityClients,
    get_identity_registry,
)
from identity_directory.infra.identity.rest_client import IdentityRestClient
from identity_directory.infra.identity.testing import InMemoryIdentityBackend

__all__ = [
    "USER_NOT_FOUND",
    "HttpIdentityBackend",
    "IdTokenResult",
    "IdentityBackend",
    "IdentityClientRegistry",
    "IdentityClients",
    "IdentityProviderError",
    "IdentityRestClient",
    "InMemoryIdentityBackend",
    "ListUsersPage",
    "RefreshTokenResult",
    "UserRecord",
    "get_identity_registry",
]
