"""Recompute every derived impact value of one tenant.

Runs the same aggregation the API triggers after each mutation, holding
the tenant's write lock, and commits on success.

Usage:
    python -m scripts.recompute_impacts <tenant_id>
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from src.engine.recompute import recompute_impacts
from src.engine.tenant_locks import tenant_locks
from src.models.impact import ImpactRecomputeResult


async def run(session: AsyncSession, tenant_id: str) -> ImpactRecomputeResult:
    """Recompute under the tenant lock; commit only when it succeeded."""
    async with tenant_locks.hold(tenant_id):
        result = await recompute_impacts(session, tenant_id)
        if result.success:
            await session.commit()
        else:
            await session.rollback()
    return result


async def _run_cli(tenant_id: str) -> ImpactRecomputeResult:
    from src.db.session import async_session_factory, engine

    try:
        async with async_session_factory() as session:
            return await run(session, tenant_id)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, recompute, and return the process exit code."""
    parser = argparse.ArgumentParser(
        description="Recompute job impact values and outcome points for one tenant",
    )
    parser.add_argument("tenant_id", help="User or organization id owning the data")
    args = parser.parse_args(argv)

    result = asyncio.run(_run_cli(args.tenant_id))

    if result.success:
        print(f"OK: {result.message}")
        print(f"  Jobs updated:      {result.jobs_updated}")
        print(f"  Outcomes updated:  {result.outcomes_updated}")
        print(f"  Dangling skipped:  {result.skipped_edges}")
        return 0
    print(f"FAILED: {result.message}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
