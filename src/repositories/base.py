"""Tenant-scoped repository base for Prioriwise persistence layer.

Repositories call add()/flush()/refresh()/delete() only — never commit().
The session dependency handles commit/rollback (Unit-of-Work).

Every repository is bound to exactly one tenant at construction time and
filters every statement by it. There is no unscoped read or write.
"""

from sqlalchemy.ext.asyncio import AsyncSession


class TenantScopedRepository:
    """Base for repositories whose rows are partitioned by ``tenant_id``."""

    def __init__(self, session: AsyncSession, tenant_id: str) -> None:
        if not tenant_id or not tenant_id.strip():
            msg = "tenant_id must be a non-empty identifier"
            raise ValueError(msg)
        self._session = session
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> str:
        return self._tenant_id
