"""FastAPI output (PI) endpoints.

GET    /v1/tenants/{tenant_id}/outputs               — list outputs
POST   /v1/tenants/{tenant_id}/outputs               — create output
GET    /v1/tenants/{tenant_id}/outputs/{output_id}   — get output
PUT    /v1/tenants/{tenant_id}/outputs/{output_id}   — update output (recomputes impacts)
DELETE /v1/tenants/{tenant_id}/outputs/{output_id}   — delete output (recomputes impacts)

Deleting an Output leaves its mappings in place; they become dangling and
contribute zero.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    TenantPath,
    get_job_output_mapping_repo,
    get_output_outcome_mapping_repo,
    get_output_repo,
    get_tenant_session,
)
from src.api.schemas import DeleteResponse, ImpactSyncResponse, partial_update
from src.api.triggers import run_impact_sync
from src.config.settings import Settings, get_settings
from src.models.common import FiniteFloat, new_uuid7
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outputs import OutputRepository

router = APIRouter(prefix="/v1/tenants", tags=["outputs"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateOutputRequest(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = ""
    beginning_value: FiniteFloat = 0.0
    target_value: FiniteFloat
    notes: str = ""


class UpdateOutputRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    unit: str | None = None
    beginning_value: FiniteFloat | None = None
    target_value: FiniteFloat | None = None
    notes: str | None = None


class OutputResponse(BaseModel):
    output_id: str
    name: str
    unit: str
    beginning_value: float
    target_value: float
    notes: str


class OutputMutationResponse(OutputResponse):
    impact_sync: ImpactSyncResponse


class OutputListResponse(BaseModel):
    items: list[OutputResponse]
    total: int


def _output_fields(row) -> dict:
    return {
        "output_id": str(row.output_id),
        "name": row.name,
        "unit": row.unit or "",
        "beginning_value": row.beginning_value,
        "target_value": row.target_value,
        "notes": row.notes or "",
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/{tenant_id}/outputs", response_model=OutputListResponse)
async def list_outputs(
    tenant_id: TenantPath,
    repo: OutputRepository = Depends(get_output_repo),
) -> OutputListResponse:
    rows = await repo.list_all()
    return OutputListResponse(
        items=[OutputResponse(**_output_fields(r)) for r in rows],
        total=len(rows),
    )


@router.post(
    "/{tenant_id}/outputs", status_code=201, response_model=OutputResponse,
    dependencies=[Depends(get_tenant_session)],
)
async def create_output(
    tenant_id: TenantPath,
    body: CreateOutputRequest,
    repo: OutputRepository = Depends(get_output_repo),
) -> OutputResponse:
    """Create an Output. It has no mappings yet, so no recomputation."""
    row = await repo.create(
        output_id=new_uuid7(),
        name=body.name,
        unit=body.unit,
        beginning_value=body.beginning_value,
        target_value=body.target_value,
        notes=body.notes,
    )
    return OutputResponse(**_output_fields(row))


@router.get("/{tenant_id}/outputs/{output_id}", response_model=OutputResponse)
async def get_output(
    tenant_id: TenantPath,
    output_id: UUID,
    repo: OutputRepository = Depends(get_output_repo),
) -> OutputResponse:
    row = await repo.get(output_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Output {output_id} not found.")
    return OutputResponse(**_output_fields(row))


@router.put("/{tenant_id}/outputs/{output_id}", response_model=OutputMutationResponse)
async def update_output(
    tenant_id: TenantPath,
    output_id: UUID,
    body: UpdateOutputRequest,
    repo: OutputRepository = Depends(get_output_repo),
    job_output_repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    output_outcome_repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> OutputMutationResponse:
    fields = partial_update(body)
    row = await repo.update(output_id, **fields)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Output {output_id} not found.")
    if "name" in fields:
        await job_output_repo.refresh_output_name(output_id, row.name)
        await output_outcome_repo.refresh_output_name(output_id, row.name)

    sync = await run_impact_sync(session, tenant_id, settings, row)
    return OutputMutationResponse(**_output_fields(row), impact_sync=sync)


@router.delete("/{tenant_id}/outputs/{output_id}", response_model=DeleteResponse)
async def delete_output(
    tenant_id: TenantPath,
    output_id: UUID,
    repo: OutputRepository = Depends(get_output_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> DeleteResponse:
    if not await repo.delete(output_id):
        raise HTTPException(status_code=404, detail=f"Output {output_id} not found.")

    sync = await run_impact_sync(session, tenant_id, settings)
    return DeleteResponse(deleted_id=str(output_id), impact_sync=sync)
