"""Mapping store — Job→Output and Output→Outcome edge repositories.

Pure data access. Mappings hold no FK to the entities they reference;
dangling ``job_id`` / ``pi_id`` / ``qbo_id`` values are a legal state.
"""

from uuid import UUID

from sqlalchemy import select, update

from src.db.tables import JobOutputMappingRow, OutputOutcomeMappingRow
from src.models.common import utc_now
from src.repositories.base import TenantScopedRepository

_JOB_OUTPUT_EDITABLE = frozenset({
    "job_id", "pi_id", "job_name", "pi_name", "pi_impact_value", "pi_target", "notes",
})
_OUTPUT_OUTCOME_EDITABLE = frozenset({
    "pi_id", "qbo_id", "pi_name", "qbo_name", "pi_target", "qbo_target", "qbo_impact", "notes",
})


class JobOutputMappingRepository(TenantScopedRepository):

    async def create(self, *, mapping_id: UUID, job_id: UUID, pi_id: UUID,
                     job_name: str = "", pi_name: str = "",
                     pi_impact_value: float = 0.0, pi_target: float = 0.0,
                     notes: str = "") -> JobOutputMappingRow:
        now = utc_now()
        row = JobOutputMappingRow(
            mapping_id=mapping_id, tenant_id=self._tenant_id,
            job_id=job_id, pi_id=pi_id, job_name=job_name, pi_name=pi_name,
            pi_impact_value=pi_impact_value, pi_target=pi_target, notes=notes,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, mapping_id: UUID) -> JobOutputMappingRow | None:
        result = await self._session.execute(
            select(JobOutputMappingRow).where(
                JobOutputMappingRow.tenant_id == self._tenant_id,
                JobOutputMappingRow.mapping_id == mapping_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[JobOutputMappingRow]:
        result = await self._session.execute(
            select(JobOutputMappingRow).where(JobOutputMappingRow.tenant_id == self._tenant_id)
        )
        return list(result.scalars().all())

    async def list_for_job(self, job_id: UUID) -> list[JobOutputMappingRow]:
        result = await self._session.execute(
            select(JobOutputMappingRow).where(
                JobOutputMappingRow.tenant_id == self._tenant_id,
                JobOutputMappingRow.job_id == job_id,
            )
        )
        return list(result.scalars().all())

    async def list_for_output(self, pi_id: UUID) -> list[JobOutputMappingRow]:
        result = await self._session.execute(
            select(JobOutputMappingRow).where(
                JobOutputMappingRow.tenant_id == self._tenant_id,
                JobOutputMappingRow.pi_id == pi_id,
            )
        )
        return list(result.scalars().all())

    async def update(self, mapping_id: UUID, **fields) -> JobOutputMappingRow | None:
        unknown = set(fields) - _JOB_OUTPUT_EDITABLE
        if unknown:
            msg = f"Job-output mapping fields not editable: {sorted(unknown)}"
            raise ValueError(msg)
        row = await self.get(mapping_id)
        if row is not None:
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, mapping_id: UUID) -> bool:
        row = await self.get(mapping_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def refresh_job_name(self, job_id: UUID, job_name: str) -> None:
        await self._session.execute(
            update(JobOutputMappingRow)
            .where(
                JobOutputMappingRow.tenant_id == self._tenant_id,
                JobOutputMappingRow.job_id == job_id,
            )
            .values(job_name=job_name)
            .execution_options(synchronize_session="fetch")
        )

    async def refresh_output_name(self, pi_id: UUID, pi_name: str) -> None:
        await self._session.execute(
            update(JobOutputMappingRow)
            .where(
                JobOutputMappingRow.tenant_id == self._tenant_id,
                JobOutputMappingRow.pi_id == pi_id,
            )
            .values(pi_name=pi_name)
            .execution_options(synchronize_session="fetch")
        )


class OutputOutcomeMappingRepository(TenantScopedRepository):

    async def create(self, *, mapping_id: UUID, pi_id: UUID, qbo_id: UUID,
                     pi_target: float, qbo_target: float, qbo_impact: float,
                     pi_name: str = "", qbo_name: str = "",
                     notes: str = "") -> OutputOutcomeMappingRow:
        now = utc_now()
        row = OutputOutcomeMappingRow(
            mapping_id=mapping_id, tenant_id=self._tenant_id,
            pi_id=pi_id, qbo_id=qbo_id, pi_name=pi_name, qbo_name=qbo_name,
            pi_target=pi_target, qbo_target=qbo_target, qbo_impact=qbo_impact,
            notes=notes, created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, mapping_id: UUID) -> OutputOutcomeMappingRow | None:
        result = await self._session.execute(
            select(OutputOutcomeMappingRow).where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.mapping_id == mapping_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_pair(self, pi_id: UUID, qbo_id: UUID) -> OutputOutcomeMappingRow | None:
        result = await self._session.execute(
            select(OutputOutcomeMappingRow).where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.pi_id == pi_id,
                OutputOutcomeMappingRow.qbo_id == qbo_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[OutputOutcomeMappingRow]:
        result = await self._session.execute(
            select(OutputOutcomeMappingRow).where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id
            )
        )
        return list(result.scalars().all())

    async def list_for_output(self, pi_id: UUID) -> list[OutputOutcomeMappingRow]:
        result = await self._session.execute(
            select(OutputOutcomeMappingRow).where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.pi_id == pi_id,
            )
        )
        return list(result.scalars().all())

    async def list_for_outcome(self, qbo_id: UUID) -> list[OutputOutcomeMappingRow]:
        result = await self._session.execute(
            select(OutputOutcomeMappingRow).where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.qbo_id == qbo_id,
            )
        )
        return list(result.scalars().all())

    async def update(self, mapping_id: UUID, **fields) -> OutputOutcomeMappingRow | None:
        unknown = set(fields) - _OUTPUT_OUTCOME_EDITABLE
        if unknown:
            msg = f"Output-outcome mapping fields not editable: {sorted(unknown)}"
            raise ValueError(msg)
        row = await self.get(mapping_id)
        if row is not None:
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, mapping_id: UUID) -> bool:
        row = await self.get(mapping_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def refresh_output_name(self, pi_id: UUID, pi_name: str) -> None:
        await self._session.execute(
            update(OutputOutcomeMappingRow)
            .where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.pi_id == pi_id,
            )
            .values(pi_name=pi_name)
            .execution_options(synchronize_session="fetch")
        )

    async def refresh_outcome_name(self, qbo_id: UUID, qbo_name: str) -> None:
        await self._session.execute(
            update(OutputOutcomeMappingRow)
            .where(
                OutputOutcomeMappingRow.tenant_id == self._tenant_id,
                OutputOutcomeMappingRow.qbo_id == qbo_id,
            )
            .values(qbo_name=qbo_name)
            .execution_options(synchronize_session="fetch")
        )
