"""Job repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from src.db.tables import JobRow
from src.models.common import utc_now
from src.repositories.base import TenantScopedRepository

# impact_value is derived; only the aggregator writes it (apply_impact_values)
_EDITABLE_FIELDS = frozenset({
    "title", "notes", "business_function_id", "due_date", "is_done", "next_task_id",
})


class JobRepository(TenantScopedRepository):

    async def create(self, *, job_id: UUID, title: str, notes: str = "",
                     business_function_id: str | None = None,
                     due_date: datetime | None = None,
                     is_done: bool = False,
                     next_task_id: str | None = None) -> JobRow:
        now = utc_now()
        row = JobRow(
            job_id=job_id, tenant_id=self._tenant_id, title=title, notes=notes,
            business_function_id=business_function_id, due_date=due_date,
            is_done=is_done, impact_value=0.0, next_task_id=next_task_id,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, job_id: UUID) -> JobRow | None:
        result = await self._session.execute(
            select(JobRow).where(
                JobRow.tenant_id == self._tenant_id,
                JobRow.job_id == job_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[JobRow]:
        result = await self._session.execute(
            select(JobRow).where(JobRow.tenant_id == self._tenant_id)
        )
        return list(result.scalars().all())

    async def list_active(self) -> list[JobRow]:
        result = await self._session.execute(
            select(JobRow).where(
                JobRow.tenant_id == self._tenant_id,
                JobRow.is_done.is_(False),
            )
        )
        return list(result.scalars().all())

    async def update(self, job_id: UUID, **fields) -> JobRow | None:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            msg = f"Job fields not editable: {sorted(unknown)}"
            raise ValueError(msg)
        row = await self.get(job_id)
        if row is not None:
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, job_id: UUID) -> bool:
        row = await self.get(job_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def apply_impact_values(self, impacts: dict[UUID, float]) -> int:
        """Overwrite ``impact_value`` on every Job of the tenant.

        Jobs absent from ``impacts`` are reset to 0. Returns the number
        of Jobs written.
        """
        rows = await self.list_all()
        for row in rows:
            row.impact_value = impacts.get(row.job_id, 0.0)
        await self._session.flush()
        return len(rows)
