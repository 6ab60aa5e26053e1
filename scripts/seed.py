"""Seed script — load a demo tenant into the Prioriwise database.

Creates, for tenant ``demo-tenant``:
1. Three Outcomes (QBOs)
2. Four Outputs (PIs)
3. Five Jobs (one already done)
4. Job→Output and Output→Outcome mappings wiring them together
5. A full impact recomputation so every Job carries its impact_value

Idempotent: safe to run multiple times — skips if the demo tenant already has jobs.

Usage:
    python -m scripts.seed                # against DATABASE_URL from .env
    pytest tests/scripts/test_seed.py     # against aiosqlite in-memory
"""

import asyncio
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from src.engine.recompute import recompute_impacts
from src.models.common import utc_now
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

DEMO_TENANT_ID = "demo-tenant"

# (name, unit, beginning, current, target)
DEMO_OUTCOMES = [
    ("Monthly recurring revenue", "USD", 40_000.0, 46_000.0, 60_000.0),
    ("Customer retention", "%", 82.0, 84.0, 90.0),
    ("Net promoter score", "pts", 20.0, 24.0, 40.0),
]

# (name, unit, beginning, target)
DEMO_OUTPUTS = [
    ("Qualified demos booked", "demos", 0.0, 40.0),
    ("Onboarding guides published", "guides", 0.0, 6.0),
    ("Support tickets closed", "tickets", 0.0, 300.0),
    ("Case studies published", "studies", 0.0, 4.0),
]

# (title, is_done)
DEMO_JOBS = [
    ("Run outbound campaign to mid-market leads", False),
    ("Write onboarding guide for integrations", True),
    ("Triage support backlog", False),
    ("Interview three reference customers", False),
    ("Refresh pricing page copy", False),
]

# (job index, output index, pi_impact_value, pi_target)
DEMO_JOB_OUTPUT = [
    (0, 0, 10.0, 40.0),
    (1, 1, 1.0, 6.0),
    (2, 2, 50.0, 300.0),
    (3, 3, 1.0, 4.0),
    (3, 0, 2.0, 40.0),
]

# (output index, outcome index, qbo_impact)
DEMO_OUTPUT_OUTCOME = [
    (0, 0, 5.0),
    (1, 1, 3.0),
    (1, 2, 2.0),
    (2, 1, 4.0),
    (2, 2, 3.0),
    (3, 0, 2.0),
]


async def seed_entities(session: AsyncSession, tenant_id: str = DEMO_TENANT_ID) -> dict:
    """Create the demo Jobs, Outputs and Outcomes. Returns their rows by kind."""
    job_repo = JobRepository(session, tenant_id)
    output_repo = OutputRepository(session, tenant_id)
    outcome_repo = OutcomeRepository(session, tenant_id)
    deadline = utc_now() + timedelta(days=90)

    outcomes = [
        await outcome_repo.create(
            outcome_id=uuid7(), name=name, unit=unit, beginning_value=begin,
            current_value=current, target_value=target, deadline=deadline,
        )
        for name, unit, begin, current, target in DEMO_OUTCOMES
    ]
    outputs = [
        await output_repo.create(
            output_id=uuid7(), name=name, unit=unit,
            beginning_value=begin, target_value=target,
        )
        for name, unit, begin, target in DEMO_OUTPUTS
    ]
    jobs = [
        await job_repo.create(job_id=uuid7(), title=title, is_done=is_done)
        for title, is_done in DEMO_JOBS
    ]
    return {"jobs": jobs, "outputs": outputs, "outcomes": outcomes}


async def seed_mappings(
    session: AsyncSession, entities: dict, tenant_id: str = DEMO_TENANT_ID,
) -> tuple[list, list]:
    """Wire the demo entities together with weighted mappings."""
    jo_repo = JobOutputMappingRepository(session, tenant_id)
    oo_repo = OutputOutcomeMappingRepository(session, tenant_id)
    jobs, outputs, outcomes = entities["jobs"], entities["outputs"], entities["outcomes"]

    job_output = []
    for j, o, impact, target in DEMO_JOB_OUTPUT:
        job_output.append(await jo_repo.create(
            mapping_id=uuid7(), job_id=jobs[j].job_id, pi_id=outputs[o].output_id,
            job_name=jobs[j].title, pi_name=outputs[o].name,
            pi_impact_value=impact, pi_target=target,
        ))

    output_outcome = []
    for o, q, impact in DEMO_OUTPUT_OUTCOME:
        output_outcome.append(await oo_repo.create(
            mapping_id=uuid7(), pi_id=outputs[o].output_id, qbo_id=outcomes[q].outcome_id,
            pi_name=outputs[o].name, qbo_name=outcomes[q].name,
            pi_target=outputs[o].target_value, qbo_target=outcomes[q].target_value,
            qbo_impact=impact,
        ))
    return job_output, output_outcome


async def seed_demo(session: AsyncSession) -> dict:
    """Idempotent demo seed: entities + mappings + recomputation.

    Returns dict with keys: created (bool), tenant_id, and counts when created.
    If the demo tenant already has jobs, returns created=False and skips.
    """
    if await JobRepository(session, DEMO_TENANT_ID).list_all():
        return {"created": False, "tenant_id": DEMO_TENANT_ID}

    entities = await seed_entities(session)
    job_output, output_outcome = await seed_mappings(session, entities)
    sync = await recompute_impacts(session, DEMO_TENANT_ID)

    return {
        "created": True,
        "tenant_id": DEMO_TENANT_ID,
        "job_count": len(entities["jobs"]),
        "output_count": len(entities["outputs"]),
        "outcome_count": len(entities["outcomes"]),
        "mapping_count": len(job_output) + len(output_outcome),
        "impact_sync": sync,
    }


# ---------------------------------------------------------------------------
# CLI entry point: python -m scripts.seed
# ---------------------------------------------------------------------------


async def _run_seed() -> None:
    """Run the full seed against the real database (idempotent)."""
    from src.db.session import async_session_factory

    async with async_session_factory() as session:
        result = await seed_demo(session)

        if not result["created"]:
            print(f"Demo data already seeded (tenant {DEMO_TENANT_ID} has jobs). Skipping.")
            return

        await session.commit()

        print("Seed complete.")
        print(f"  Tenant:    {result['tenant_id']}")
        print(f"  Jobs:      {result['job_count']}")
        print(f"  Outputs:   {result['output_count']}")
        print(f"  Outcomes:  {result['outcome_count']}")
        print(f"  Mappings:  {result['mapping_count']}")
        print(f"  Impacts:   {result['impact_sync'].message}")
        print()
        await _print_summary(session)


async def _print_summary(session: AsyncSession) -> None:
    """Print the demo jobs ranked by impact."""
    jobs = await JobRepository(session, DEMO_TENANT_ID).list_all()
    print("Jobs by impact:")
    print(f"  {'Impact':>8}  {'Done':<5} Title")
    print(f"  {'─' * 8}  {'─' * 5} {'─' * 40}")
    for job in sorted(jobs, key=lambda j: j.impact_value, reverse=True):
        print(f"  {job.impact_value:>8,.1f}  {'yes' if job.is_done else 'no':<5} {job.title}")


if __name__ == "__main__":
    asyncio.run(_run_seed())
