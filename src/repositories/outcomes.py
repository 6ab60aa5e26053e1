"""Outcome (QBO) repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from src.db.tables import OutcomeRow
from src.models.common import utc_now
from src.repositories.base import TenantScopedRepository

# points is derived; only the aggregator writes it (apply_points)
_EDITABLE_FIELDS = frozenset({
    "name", "unit", "beginning_value", "current_value", "target_value", "deadline", "notes",
})


class OutcomeRepository(TenantScopedRepository):

    async def create(self, *, outcome_id: UUID, name: str, target_value: float,
                     unit: str = "", beginning_value: float = 0.0,
                     current_value: float = 0.0,
                     deadline: datetime | None = None,
                     notes: str = "") -> OutcomeRow:
        now = utc_now()
        row = OutcomeRow(
            outcome_id=outcome_id, tenant_id=self._tenant_id, name=name,
            unit=unit, beginning_value=beginning_value,
            current_value=current_value, target_value=target_value,
            deadline=deadline, points=0.0, notes=notes,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, outcome_id: UUID) -> OutcomeRow | None:
        result = await self._session.execute(
            select(OutcomeRow).where(
                OutcomeRow.tenant_id == self._tenant_id,
                OutcomeRow.outcome_id == outcome_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[OutcomeRow]:
        result = await self._session.execute(
            select(OutcomeRow).where(OutcomeRow.tenant_id == self._tenant_id)
        )
        return list(result.scalars().all())

    async def update(self, outcome_id: UUID, **fields) -> OutcomeRow | None:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            msg = f"Outcome fields not editable: {sorted(unknown)}"
            raise ValueError(msg)
        row = await self.get(outcome_id)
        if row is not None:
            for name, value in fields.items():
                setattr(row, name, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, outcome_id: UUID) -> bool:
        row = await self.get(outcome_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def apply_points(self, points: dict[UUID, float]) -> int:
        """Overwrite ``points`` on every Outcome of the tenant (missing → 0)."""
        rows = await self.list_all()
        for row in rows:
            row.points = points.get(row.outcome_id, 0.0)
        await self._session.flush()
        return len(rows)
