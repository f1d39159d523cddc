"""Per-tenant identity client registry.

Each tenant gets its own admin backend and public REST client, because the
provider scopes resource paths and sign-in calls by tenant. Bundles are built
on first use and kept in a bounded cache:

- LRU eviction once ``max_entries`` bundles are alive
- TTL expiry; a bundle is never served past ``ttl_seconds``
- Evicted and expired bundles are closed once no request holds them
- Construction is serialized so concurrent callers for one tenant share a bundle
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import lru_cache
import logging
import time
from typing import TYPE_CHECKING, Final

from identity_directory.infra.identity.http_backend import HttpIdentityBackend
from identity_directory.infra.identity.rest_client import IdentityRestClient

if TYPE_CHECKING:
    from identity_directory.core.settings.identity import IdentitySettings
    from identity_directory.infra.identity.protocols import IdentityBackend

logger = logging.getLogger(__name__)

DEFAULT_TENANT_KEY: Final[str] = ""


@dataclass(eq=False)
class IdentityClients:
    """Clients serving one tenant.

    Attributes:
        tenant_id: Tenant the clients are scoped to, None for the project itself
        backend: Admin backend used by the directory and token service
        rest: Public sign-in client
        created_at: Monotonic timestamp of construction
        leases: Requests currently holding the bundle
        retired: Whether the bundle has left the registry map
    """

    tenant_id: str | None
    backend: IdentityBackend
    rest: IdentityRestClient
    created_at: float = field(default_factory=time.monotonic)
    leases: int = field(default=0, init=False)
    retired: bool = field(default=False, init=False)

    async def aclose(self) -> None:
        await self.backend.aclose()
        await self.rest.aclose()


ClientFactory = Callable[[str | None], IdentityClients]


def build_identity_clients(settings: IdentitySettings, tenant_id: str | None) -> IdentityClients:
    """Build HTTP clients for ``tenant_id`` from settings."""
    return IdentityClients(
        tenant_id=tenant_id,
        backend=HttpIdentityBackend.from_settings(settings, tenant_id=tenant_id),
        rest=IdentityRestClient.from_settings(settings, tenant_id=tenant_id),
    )


class IdentityClientRegistry:
    """Bounded map from tenant key to its client bundle.

    Bundles are handed out as leases. A bundle that is evicted, expires or is
    invalidated leaves the map at once, but its HTTP pools are only closed
    when its last lease is released.

    Example:
        registry = IdentityClientRegistry(lambda tenant: build_identity_clients(settings, tenant))
        async with registry.lease("acme") as clients:
            await clients.backend.list_users(200)
        await registry.aclose()

    Attributes:
        max_entries: Maximum bundles kept in the map
        ttl_seconds: Lifetime of a bundle in the map
    """

    def __init__(
        self,
        factory: ClientFactory,
        *,
        max_entries: int = 64,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            msg = "max_entries must be at least 1"
            raise ValueError(msg)
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._factory = factory
        self._clock = clock
        self._entries: OrderedDict[str, IdentityClients] = OrderedDict()
        self._retired: list[IdentityClients] = []
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: IdentitySettings) -> IdentityClientRegistry:
        return cls(
            lambda tenant_id: build_identity_clients(settings, tenant_id),
            max_entries=settings.client_cache_max_entries,
            ttl_seconds=settings.client_cache_ttl_seconds,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tenant_id: object) -> bool:
        return _key(tenant_id) in self._entries  # type: ignore[arg-type]

    @property
    def retired_count(self) -> int:
        """Bundles out of the map that still wait for their leases to end."""
        return len(self._retired)

    @asynccontextmanager
    async def lease(self, tenant_id: str | None = None) -> AsyncIterator[IdentityClients]:
        """Hold the bundle for ``tenant_id`` for the duration of the block."""
        clients = await self.acquire(tenant_id)
        try:
            yield clients
        finally:
            await self.release(clients)

    async def acquire(self, tenant_id: str | None = None) -> IdentityClients:
        """Lease the bundle for ``tenant_id``, building it if needed.

        Every call must be paired with ``release``.
        """
        key = _key(tenant_id)
        to_close: list[IdentityClients] = []
        async with self._lock:
            clients = self._entries.get(key)
            if clients is not None and self._expired(clients):
                logger.debug("Identity clients expired", extra={"tenant_id": tenant_id})
                del self._entries[key]
                self._retire(clients, to_close)
                clients = None

            if clients is not None:
                self._entries.move_to_end(key)
            else:
                self._evict_if_needed(to_close)
                clients = self._factory(tenant_id)
                clients.created_at = self._clock()
                self._entries[key] = clients
                logger.info(
                    "Built identity clients",
                    extra={"tenant_id": tenant_id, "cached_tenants": len(self._entries)},
                )
            clients.leases += 1

        await _close_all(to_close)
        return clients

    async def release(self, clients: IdentityClients) -> None:
        """End one lease; a retired bundle is closed with its last lease."""
        async with self._lock:
            clients.leases -= 1
            done = clients.leases <= 0 and clients in self._retired
            if done:
                self._retired.remove(clients)
        if done:
            await clients.aclose()

    async def invalidate(self, tenant_id: str | None = None) -> bool:
        """Drop the bundle for ``tenant_id`` from the map.

        Returns:
            True if a bundle was cached for the tenant.
        """
        to_close: list[IdentityClients] = []
        async with self._lock:
            clients = self._entries.pop(_key(tenant_id), None)
            if clients is not None:
                self._retire(clients, to_close)
        if clients is None:
            return False
        await _close_all(to_close)
        logger.info("Invalidated identity clients", extra={"tenant_id": tenant_id})
        return True

    async def aclose(self) -> None:
        """Close every bundle, leased or not."""
        async with self._lock:
            bundles = [*self._entries.values(), *self._retired]
            self._entries.clear()
            self._retired.clear()
        await _close_all(bundles)

    def _expired(self, clients: IdentityClients) -> bool:
        return self._clock() - clients.created_at >= self.ttl_seconds

    def _retire(self, clients: IdentityClients, to_close: list[IdentityClients]) -> None:
        # Caller holds the lock and has removed the bundle from the map
        clients.retired = True
        if clients.leases > 0:
            self._retired.append(clients)
        else:
            to_close.append(clients)

    def _evict_if_needed(self, to_close: list[IdentityClients]) -> None:
        # Caller holds the lock
        for key in [k for k, c in self._entries.items() if self._expired(c)]:
            self._retire(self._entries.pop(key), to_close)
        while len(self._entries) >= self.max_entries:
            _, evicted = self._entries.popitem(last=False)
            logger.debug("Evicted identity clients", extra={"tenant_id": evicted.tenant_id})
            self._retire(evicted, to_close)


async def _close_all(bundles: list[IdentityClients]) -> None:
    for clients in bundles:
        await clients.aclose()


def _key(tenant_id: str | None) -> str:
    return tenant_id or DEFAULT_TENANT_KEY


@lru_cache(maxsize=1)
def get_identity_registry() -> IdentityClientRegistry:
    """Get the process-wide registry built from identity settings."""
    from identity_directory.core.settings import get_identity_settings

    return IdentityClientRegistry.from_settings(get_identity_settings())


__all__ = [
    "IdentityClientRegistry",
    "IdentityClients",
    "build_identity_clients",
    "get_identity_registry",
]
