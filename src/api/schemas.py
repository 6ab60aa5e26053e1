"""Request/response schemas shared across the tenant-scoped routers."""

from collections.abc import Iterable

from fastapi import HTTPException
from pydantic import BaseModel


class ImpactSyncResponse(BaseModel):
    """Outcome of the recomputation triggered by a mutation."""

    success: bool
    message: str = ""
    jobs_updated: int = 0
    outcomes_updated: int = 0


class DeleteResponse(BaseModel):
    deleted_id: str
    impact_sync: ImpactSyncResponse | None = None


def partial_update(body: BaseModel, *, nullable: Iterable[str] = ()) -> dict:
    """Fields explicitly sent in a PUT body.

    An explicit ``null`` is only allowed for nullable columns.
    """
    fields = body.model_dump(exclude_unset=True)
    allowed_null = set(nullable)
    cleared = sorted(k for k, v in fields.items() if v is None and k not in allowed_null)
    if cleared:
        raise HTTPException(status_code=422, detail=f"Fields cannot be null: {cleared}")
    return fields
