"""FastAPI job endpoints.

GET    /v1/tenants/{tenant_id}/jobs                      — list jobs
POST   /v1/tenants/{tenant_id}/jobs                      — create job
POST   /v1/tenants/{tenant_id}/jobs/calculate-impact     — recompute all impacts
POST   /v1/tenants/{tenant_id}/jobs/{job_id}/duplicate   — copy job and its output mappings
GET    /v1/tenants/{tenant_id}/jobs/{job_id}             — get job
PUT    /v1/tenants/{tenant_id}/jobs/{job_id}             — update job
DELETE /v1/tenants/{tenant_id}/jobs/{job_id}             — delete job

``impact_value`` is read-only here; it is derived from the mapping graph.
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
    get_output_repo,
    get_tenant_session,
)
from src.api.schemas import DeleteResponse, ImpactSyncResponse, partial_update
from src.api.triggers import run_impact_sync
from src.config.settings import Settings, get_settings
from src.engine.recompute import recompute_impacts
from src.models.common import new_uuid7
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository
from src.repositories.outputs import OutputRepository

router = APIRouter(prefix="/v1/tenants", tags=["jobs"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateJobRequest(BaseModel):
    title: str = Field(..., min_length=1)
    notes: str = ""
    business_function_id: str | None = None
    due_date: datetime | None = None
    is_done: bool = False
    next_task_id: str | None = None


class UpdateJobRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    business_function_id: str | None = None
    due_date: datetime | None = None
    is_done: bool | None = None
    next_task_id: str | None = None


class JobResponse(BaseModel):
    job_id: str
    title: str
    notes: str
    business_function_id: str | None = None
    due_date: datetime | None = None
    is_done: bool
    impact_value: float
    next_task_id: str | None = None


class DuplicateJobRequest(BaseModel):
    """Overrides for the copy; anything unset is taken from the source job."""

    title: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    due_date: datetime | None = None


class JobMutationResponse(JobResponse):
    impact_sync: ImpactSyncResponse


class JobListResponse(BaseModel):
    items: list[JobResponse]
    total: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_response(row) -> JobResponse:
    return JobResponse(
        job_id=str(row.job_id),
        title=row.title,
        notes=row.notes or "",
        business_function_id=row.business_function_id,
        due_date=row.due_date,
        is_done=row.is_done,
        impact_value=row.impact_value,
        next_task_id=row.next_task_id,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/{tenant_id}/jobs", response_model=JobListResponse)
async def list_jobs(
    tenant_id: TenantPath,
    repo: JobRepository = Depends(get_job_repo),
) -> JobListResponse:
    rows = await repo.list_all()
    return JobListResponse(items=[_job_response(r) for r in rows], total=len(rows))


@router.post(
    "/{tenant_id}/jobs", status_code=201, response_model=JobResponse,
    dependencies=[Depends(get_tenant_session)],
)
async def create_job(
    tenant_id: TenantPath,
    body: CreateJobRequest,
    repo: JobRepository = Depends(get_job_repo),
) -> JobResponse:
    row = await repo.create(
        job_id=new_uuid7(),
        title=body.title,
        notes=body.notes,
        business_function_id=body.business_function_id,
        due_date=body.due_date,
        is_done=body.is_done,
        next_task_id=body.next_task_id,
    )
    return _job_response(row)


@router.post("/{tenant_id}/jobs/calculate-impact", response_model=ImpactSyncResponse)
async def calculate_impact(
    tenant_id: TenantPath,
    session: AsyncSession = Depends(get_tenant_session),
) -> ImpactSyncResponse:
    """Explicitly recompute every derived impact value of the tenant.

    Unlike mutation triggers, a failure here is the whole point of the
    call, so it is surfaced as a 500.
    """
    result = await recompute_impacts(session, tenant_id)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return ImpactSyncResponse.model_validate(result.model_dump())


@router.post(
    "/{tenant_id}/jobs/{job_id}/duplicate", status_code=201,
    response_model=JobMutationResponse,
)
async def duplicate_job(
    tenant_id: TenantPath,
    job_id: UUID,
    body: DuplicateJobRequest | None = None,
    repo: JobRepository = Depends(get_job_repo),
    mapping_repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> JobMutationResponse:
    """Copy a job together with its Job → Output mappings.

    The copy starts not done and without a next task. Each mapping gets a
    new id, the copy's title and the Output's current name.
    """
    source = await repo.get(job_id)
    if source is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    body = body or DuplicateJobRequest()

    row = await repo.create(
        job_id=new_uuid7(),
        title=body.title or f"{source.title} (Copy)",
        notes=source.notes if body.notes is None else body.notes,
        business_function_id=source.business_function_id,
        due_date=body.due_date or source.due_date,
    )
    for mapping in await mapping_repo.list_for_job(job_id):
        output = await output_repo.get(mapping.pi_id)
        await mapping_repo.create(
            mapping_id=new_uuid7(),
            job_id=row.job_id,
            pi_id=mapping.pi_id,
            job_name=row.title,
            pi_name=output.name if output is not None else mapping.pi_name,
            pi_impact_value=mapping.pi_impact_value,
            pi_target=mapping.pi_target,
            notes=f"Duplicated from job: {source.title}",
        )

    sync = await run_impact_sync(session, tenant_id, settings, row)
    return JobMutationResponse(**_job_response(row).model_dump(), impact_sync=sync)


@router.get("/{tenant_id}/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    tenant_id: TenantPath,
    job_id: UUID,
    repo: JobRepository = Depends(get_job_repo),
) -> JobResponse:
    row = await repo.get(job_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    return _job_response(row)


@router.put(
    "/{tenant_id}/jobs/{job_id}", response_model=JobResponse,
    dependencies=[Depends(get_tenant_session)],
)
async def update_job(
    tenant_id: TenantPath,
    job_id: UUID,
    body: UpdateJobRequest,
    repo: JobRepository = Depends(get_job_repo),
    mapping_repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
) -> JobResponse:
    fields = partial_update(body, nullable=("business_function_id", "due_date", "next_task_id"))
    row = await repo.update(job_id, **fields)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    if "title" in fields:
        await mapping_repo.refresh_job_name(job_id, row.title)
    return _job_response(row)


@router.delete(
    "/{tenant_id}/jobs/{job_id}", response_model=DeleteResponse,
    dependencies=[Depends(get_tenant_session)],
)
async def delete_job(
    tenant_id: TenantPath,
    job_id: UUID,
    repo: JobRepository = Depends(get_job_repo),
) -> DeleteResponse:
    if not await repo.delete(job_id):
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    return DeleteResponse(deleted_id=str(job_id))
