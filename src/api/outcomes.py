"""FastAPI outcome (QBO) endpoints.

GET    /v1/tenants/{tenant_id}/outcomes                 — list outcomes
POST   /v1/tenants/{tenant_id}/outcomes                 — create outcome (recomputes impacts)
GET    /v1/tenants/{tenant_id}/outcomes/progress        — achieved vs. expected progress
GET    /v1/tenants/{tenant_id}/outcomes/{outcome_id}    — get outcome
PUT    /v1/tenants/{tenant_id}/outcomes/{outcome_id}    — update outcome (recomputes impacts)
DELETE /v1/tenants/{tenant_id}/outcomes/{outcome_id}    — delete outcome (recomputes impacts)

``points`` is read-only here; it is derived from Output→Outcome mappings.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import (
    TenantPath,
    get_job_output_mapping_repo,
    get_job_repo,
    get_outcome_repo,
    get_output_outcome_mapping_repo,
    get_output_repo,
    get_tenant_session,
)
from src.api.schemas import DeleteResponse, ImpactSyncResponse, partial_update
from src.api.triggers import run_impact_sync
from src.config.settings import Settings, get_settings
from src.engine.progress import outcome_progress
from src.models.common import FiniteFloat, new_uuid7
from src.models.portfolio import Job, JobOutputMapping, Outcome, Output, OutputOutcomeMapping
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

router = APIRouter(prefix="/v1/tenants", tags=["outcomes"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateOutcomeRequest(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = ""
    beginning_value: FiniteFloat = 0.0
    current_value: FiniteFloat = 0.0
    target_value: FiniteFloat
    deadline: datetime | None = None
    notes: str = ""


class UpdateOutcomeRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    unit: str | None = None
    beginning_value: FiniteFloat | None = None
    current_value: FiniteFloat | None = None
    target_value: FiniteFloat | None = None
    deadline: datetime | None = None
    notes: str | None = None


class OutcomeResponse(BaseModel):
    outcome_id: str
    name: str
    unit: str
    beginning_value: float
    current_value: float
    target_value: float
    deadline: datetime | None = None
    points: float
    notes: str


class OutcomeMutationResponse(OutcomeResponse):
    impact_sync: ImpactSyncResponse


class OutcomeListResponse(BaseModel):
    items: list[OutcomeResponse]
    total: int


class OutcomeProgressEntry(BaseModel):
    outcome_id: str
    name: str
    achieved_outcome: float
    expected_outcome: float


class OutcomeProgressResponse(BaseModel):
    items: list[OutcomeProgressEntry]


def _outcome_fields(row) -> dict:
    return {
        "outcome_id": str(row.outcome_id),
        "name": row.name,
        "unit": row.unit or "",
        "beginning_value": row.beginning_value,
        "current_value": row.current_value,
        "target_value": row.target_value,
        "deadline": row.deadline,
        "points": row.points,
        "notes": row.notes or "",
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/{tenant_id}/outcomes", response_model=OutcomeListResponse)
async def list_outcomes(
    tenant_id: TenantPath,
    repo: OutcomeRepository = Depends(get_outcome_repo),
) -> OutcomeListResponse:
    rows = await repo.list_all()
    return OutcomeListResponse(
        items=[OutcomeResponse(**_outcome_fields(r)) for r in rows],
        total=len(rows),
    )


@router.post("/{tenant_id}/outcomes", status_code=201, response_model=OutcomeMutationResponse)
async def create_outcome(
    tenant_id: TenantPath,
    body: CreateOutcomeRequest,
    repo: OutcomeRepository = Depends(get_outcome_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> OutcomeMutationResponse:
    row = await repo.create(
        outcome_id=new_uuid7(),
        name=body.name,
        unit=body.unit,
        beginning_value=body.beginning_value,
        current_value=body.current_value,
        target_value=body.target_value,
        deadline=body.deadline,
        notes=body.notes,
    )
    sync = await run_impact_sync(session, tenant_id, settings, row)
    return OutcomeMutationResponse(**_outcome_fields(row), impact_sync=sync)


@router.get("/{tenant_id}/outcomes/progress", response_model=OutcomeProgressResponse)
async def get_outcome_progress(
    tenant_id: TenantPath,
    outcome_repo: OutcomeRepository = Depends(get_outcome_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    job_repo: JobRepository = Depends(get_job_repo),
    job_output_repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    output_outcome_repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
) -> OutcomeProgressResponse:
    """Achieved (from current values) vs. expected (from completed jobs) progress."""
    entries = outcome_progress(
        outcomes=[Outcome.model_validate(r) for r in await outcome_repo.list_all()],
        outputs=[Output.model_validate(r) for r in await output_repo.list_all()],
        jobs=[Job.model_validate(r) for r in await job_repo.list_all()],
        job_output_mappings=[
            JobOutputMapping.model_validate(r) for r in await job_output_repo.list_all()
        ],
        output_outcome_mappings=[
            OutputOutcomeMapping.model_validate(r) for r in await output_outcome_repo.list_all()
        ],
    )
    return OutcomeProgressResponse(items=[
        OutcomeProgressEntry(
            outcome_id=str(e.outcome_id),
            name=e.name,
            achieved_outcome=e.achieved_outcome,
            expected_outcome=e.expected_outcome,
        )
        for e in entries
    ])


@router.get("/{tenant_id}/outcomes/{outcome_id}", response_model=OutcomeResponse)
async def get_outcome(
    tenant_id: TenantPath,
    outcome_id: UUID,
    repo: OutcomeRepository = Depends(get_outcome_repo),
) -> OutcomeResponse:
    row = await repo.get(outcome_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Outcome {outcome_id} not found.")
    return OutcomeResponse(**_outcome_fields(row))


@router.put("/{tenant_id}/outcomes/{outcome_id}", response_model=OutcomeMutationResponse)
async def update_outcome(
    tenant_id: TenantPath,
    outcome_id: UUID,
    body: UpdateOutcomeRequest,
    repo: OutcomeRepository = Depends(get_outcome_repo),
    mapping_repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> OutcomeMutationResponse:
    fields = partial_update(body, nullable=("deadline",))
    row = await repo.update(outcome_id, **fields)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Outcome {outcome_id} not found.")
    if "name" in fields:
        await mapping_repo.refresh_outcome_name(outcome_id, row.name)

    sync = await run_impact_sync(session, tenant_id, settings, row)
    return OutcomeMutationResponse(**_outcome_fields(row), impact_sync=sync)


@router.delete("/{tenant_id}/outcomes/{outcome_id}", response_model=DeleteResponse)
async def delete_outcome(
    tenant_id: TenantPath,
    outcome_id: UUID,
    repo: OutcomeRepository = Depends(get_outcome_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> DeleteResponse:
    if not await repo.delete(outcome_id):
        raise HTTPException(status_code=404, detail=f"Outcome {outcome_id} not found.")

    sync = await run_impact_sync(session, tenant_id, settings)
    return DeleteResponse(deleted_id=str(outcome_id), impact_sync=sync)
