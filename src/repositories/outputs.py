"""Output (PI) repository."""

from uuid import UUID

from sqlalchemy import select

from src.db.tables import OutputRow
from src.models.common import utc_now
from src.repositories.base import TenantScopedRepository

_EDITABLE_FIELDS = frozenset({"name", "unit", "beginning_value", "target_value", "notes"})


class OutputRepository(TenantScopedRepository):

    async def create(self, *, output_id: UUID, name: str, target_value: float,
                     unit: str = "", beginning_value: float = 0.0,
                     notes: str = "") -> OutputRow:
        now = utc_now()
        row = OutputRow(
            output_id=output_id, tenant_id=self._tenant_id, name=name,
            unit=unit, beginning_value=beginning_value,
            target_value=target_value, notes=notes,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, output_id: UUID) -> OutputRow | None:
        result = await self._session.execute(
            select(OutputRow).where(
                OutputRow.tenant_id == self._tenant_id,
                OutputRow.output_id == output_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[OutputRow]:
        result = await self._session.execute(
            select(OutputRow).where(OutputRow.tenant_id == self._tenant_id)
        )
        return list(result.scalars().all())

    async def update(self, output_id: UUID, **fields) -> OutputRow | None:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            msg = f"Output fields not editable: {sorted(unknown)}"
            raise ValueError(msg)
        row = await self.get(output_id)
        if row is not None:
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, output_id: UUID) -> bool:
        row = await self.get(output_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True
