"""Impact recomputation trigger shared by every mutating endpoint.

Called in-line after the endpoint's own write has been flushed, inside the
tenant's write lock. A failed recomputation is logged and reported in the
response's ``impact_sync`` block; the mutation is still committed unless
``IMPACT_SYNC_STRICT`` is enabled, in which case the request fails with 503
and the session dependency rolls everything back.
"""

import logging

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.schemas import ImpactSyncResponse
from src.config.settings import Settings
from src.engine.recompute import recompute_impacts

logger = logging.getLogger(__name__)


async def run_impact_sync(
    session: AsyncSession,
    tenant_id: str,
    settings: Settings,
    *reload: object,
) -> ImpactSyncResponse:
    """Recompute impacts for the tenant after a mutation.

    Rows in ``reload`` are refreshed after a failed run: the rolled-back
    SAVEPOINT expires anything it touched, and the caller still needs to
    serialize them.
    """
    result = await recompute_impacts(session, tenant_id)
    if not result.success:
        for row in reload:
            await session.refresh(row)
        logger.warning(
            "Derived impact values stale for tenant %s: %s", tenant_id, result.message,
        )
        if settings.IMPACT_SYNC_STRICT:
            raise HTTPException(
                status_code=503,
                detail=f"Impact recomputation failed: {result.message}",
            )
    return ImpactSyncResponse(
        success=result.success,
        message=result.message,
        jobs_updated=result.jobs_updated,
        outcomes_updated=result.outcomes_updated,
    )
