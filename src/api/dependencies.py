"""FastAPI dependency injection factories for tenant-scoped repositories.

Each factory takes the ``tenant_id`` path parameter and an AsyncSession via
Depends(get_async_session) and returns a repository bound to that tenant.
Mutating endpoints additionally depend on ``get_tenant_session`` to hold the
tenant's write lock until their transaction is committed.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import get_async_session
from src.engine.tenant_locks import tenant_locks
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

TenantPath = Annotated[
    str,
    Path(
        min_length=1,
        max_length=255,
        pattern=r"^[A-Za-z0-9_.:-]+$",
        description="User or organization id resolved by the identity provider.",
    ),
]


# ---------------------------------------------------------------------------
# Session / write serialization
# ---------------------------------------------------------------------------


async def get_tenant_session(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield the request session while holding the tenant's write lock.

    Commits before releasing the lock so the next writer for the same
    tenant sees this request's mutation and derived fields.
    """
    async with tenant_locks.hold(tenant_id):
        yield session
        await session.commit()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


async def get_job_repo(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> JobRepository:
    return JobRepository(session, tenant_id)


async def get_output_repo(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> OutputRepository:
    return OutputRepository(session, tenant_id)


async def get_outcome_repo(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> OutcomeRepository:
    return OutcomeRepository(session, tenant_id)


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


async def get_job_output_mapping_repo(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> JobOutputMappingRepository:
    return JobOutputMappingRepository(session, tenant_id)


async def get_output_outcome_mapping_repo(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_async_session),
) -> OutputOutcomeMappingRepository:
    return OutputOutcomeMappingRepository(session, tenant_id)
