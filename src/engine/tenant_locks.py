"""Per-tenant write serialization.

One ``asyncio.Lock`` per tenant id, created on first use. Holding a
tenant's lock across mutation → recompute → commit means a recomputation
never runs on a mapping graph older than one already committed by another
request in this process. Tenants never contend with each other.

A lock is dropped once its last holder or waiter leaves, so the registry
only holds tenants with a write in flight.

Scope is a single process; multiple workers each hold their own registry.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class TenantLockRegistry:
    """Lazily-created, reference-counted ``asyncio.Lock`` per tenant id."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def lock_for(self, tenant_id: str) -> asyncio.Lock | None:
        """The tenant's lock while a write is in flight, else None."""
        return self._locks.get(tenant_id)

    @asynccontextmanager
    async def hold(self, tenant_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        # Counts waiters too, so a queued writer keeps the same lock alive
        self._users[tenant_id] = self._users.get(tenant_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[tenant_id] -= 1
            if not self._users[tenant_id]:
                del self._users[tenant_id]
                del self._locks[tenant_id]

    def __len__(self) -> int:
        return len(self._locks)


tenant_locks = TenantLockRegistry()
