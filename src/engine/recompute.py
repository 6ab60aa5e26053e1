"""Tenant impact recomputation — load graph, propagate, persist derived fields.

Full recomputation on every trigger: reads all Jobs, Outputs, Outcomes and
both mapping sets of one tenant, runs ``ImpactAggregator`` and overwrites
``JobRow.impact_value`` and ``OutcomeRow.points``. No other column and no
mapping row is written.

All derived writes happen inside a SAVEPOINT: a data-access failure rolls
them back and leaves the enclosing transaction (and the caller's own
mutation) usable.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.engine.impact import ImpactAggregator, job_output_edges, output_outcome_edges
from src.models.impact import ImpactRecomputeResult
from src.models.portfolio import JobOutputMapping, OutputOutcomeMapping
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

logger = logging.getLogger(__name__)

_aggregator = ImpactAggregator()


async def recompute_impacts(session: AsyncSession, tenant_id: str) -> ImpactRecomputeResult:
    """Recompute and persist every derived impact field for one tenant.

    Idempotent: with no intervening mutation, a second call writes the
    same values.

    Returns:
        ImpactRecomputeResult. ``success=False`` for a blank tenant id
        (no query issued), a data-access failure, or an impact that
        overflows to a non-finite value. Nothing is persisted on failure.
    """
    if not tenant_id or not tenant_id.strip():
        return ImpactRecomputeResult(
            success=False,
            message="tenant_id must be a non-empty identifier",
        )

    job_repo = JobRepository(session, tenant_id)
    output_repo = OutputRepository(session, tenant_id)
    outcome_repo = OutcomeRepository(session, tenant_id)
    job_output_repo = JobOutputMappingRepository(session, tenant_id)
    output_outcome_repo = OutputOutcomeMappingRepository(session, tenant_id)

    try:
        async with session.begin_nested():
            jobs = await job_repo.list_all()
            outputs = await output_repo.list_all()
            outcomes = await outcome_repo.list_all()
            jo_mappings = [
                JobOutputMapping.model_validate(r) for r in await job_output_repo.list_all()
            ]
            oo_mappings = [
                OutputOutcomeMapping.model_validate(r) for r in await output_outcome_repo.list_all()
            ]

            computation = _aggregator.compute(
                job_ids=[j.job_id for j in jobs],
                output_ids=[o.output_id for o in outputs],
                outcome_ids=[q.outcome_id for q in outcomes],
                job_output=job_output_edges(jo_mappings),
                output_outcome=output_outcome_edges(oo_mappings),
            )

            overflowed = computation.non_finite_count
            if overflowed:
                logger.warning(
                    "Impact recomputation for tenant %s produced %d non-finite values",
                    tenant_id, overflowed,
                )
                return ImpactRecomputeResult(
                    success=False,
                    message=(
                        f"Impact values not finite for {overflowed} jobs or outcomes; "
                        "mapping weights are too large"
                    ),
                    skipped_edges=computation.skipped_edges,
                )

            jobs_updated = await job_repo.apply_impact_values(computation.job_impacts)
            outcomes_updated = await outcome_repo.apply_points(computation.outcome_points)
    except SQLAlchemyError as exc:
        logger.exception("Impact recomputation failed for tenant %s", tenant_id)
        return ImpactRecomputeResult(
            success=False,
            message=f"Failed to update job impact values: {exc.__class__.__name__}",
        )

    logger.info(
        "Impact recomputed for tenant %s: %d jobs, %d outcomes, %d dangling edges skipped",
        tenant_id, jobs_updated, outcomes_updated, computation.skipped_edges,
    )
    return ImpactRecomputeResult(
        success=True,
        message=f"Updated impact values for {jobs_updated} jobs",
        jobs_updated=jobs_updated,
        outcomes_updated=outcomes_updated,
        skipped_edges=computation.skipped_edges,
    )
