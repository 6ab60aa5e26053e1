"""FastAPI mapping endpoints — the weighted edges of the impact graph.

GET    /v1/tenants/{tenant_id}/job-output-mappings                    — list (?job_id / ?pi_id)
POST   /v1/tenants/{tenant_id}/job-output-mappings                    — create
GET    /v1/tenants/{tenant_id}/job-output-mappings/{mapping_id}       — get
PUT    /v1/tenants/{tenant_id}/job-output-mappings/{mapping_id}       — update
DELETE /v1/tenants/{tenant_id}/job-output-mappings/{mapping_id}       — delete

GET    /v1/tenants/{tenant_id}/output-outcome-mappings                — list (?pi_id / ?qbo_id)
POST   /v1/tenants/{tenant_id}/output-outcome-mappings                — create
GET    /v1/tenants/{tenant_id}/output-outcome-mappings/{mapping_id}   — get
PUT    /v1/tenants/{tenant_id}/output-outcome-mappings/{mapping_id}   — update
DELETE /v1/tenants/{tenant_id}/output-outcome-mappings/{mapping_id}   — delete

Every create/update/delete recomputes the tenant's impact values in-line.
Both endpoints of a new or re-pointed edge must exist in the tenant; their
names are snapshotted onto the mapping.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
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
from src.models.common import FiniteFloat, new_uuid7
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

router = APIRouter(prefix="/v1/tenants", tags=["mappings"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateJobOutputMappingRequest(BaseModel):
    job_id: UUID
    pi_id: UUID
    pi_impact_value: FiniteFloat = 0.0
    pi_target: FiniteFloat = 0.0
    notes: str = ""


class UpdateJobOutputMappingRequest(BaseModel):
    job_id: UUID | None = None
    pi_id: UUID | None = None
    pi_impact_value: FiniteFloat | None = None
    pi_target: FiniteFloat | None = None
    notes: str | None = None


class JobOutputMappingResponse(BaseModel):
    mapping_id: str
    job_id: str
    pi_id: str
    job_name: str
    pi_name: str
    pi_impact_value: float
    pi_target: float
    notes: str
    impact_sync: ImpactSyncResponse | None = None


class JobOutputMappingListResponse(BaseModel):
    items: list[JobOutputMappingResponse]
    total: int


class CreateOutputOutcomeMappingRequest(BaseModel):
    pi_id: UUID
    qbo_id: UUID
    qbo_impact: FiniteFloat
    pi_target: FiniteFloat = 0.0
    qbo_target: FiniteFloat = 0.0
    notes: str = ""


class UpdateOutputOutcomeMappingRequest(BaseModel):
    pi_id: UUID | None = None
    qbo_id: UUID | None = None
    qbo_impact: FiniteFloat | None = None
    pi_target: FiniteFloat | None = None
    qbo_target: FiniteFloat | None = None
    notes: str | None = None


class OutputOutcomeMappingResponse(BaseModel):
    mapping_id: str
    pi_id: str
    qbo_id: str
    pi_name: str
    qbo_name: str
    qbo_impact: float
    pi_target: float
    qbo_target: float
    notes: str
    impact_sync: ImpactSyncResponse | None = None


class OutputOutcomeMappingListResponse(BaseModel):
    items: list[OutputOutcomeMappingResponse]
    total: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_output_response(row, sync: ImpactSyncResponse | None = None) -> JobOutputMappingResponse:
    return JobOutputMappingResponse(
        mapping_id=str(row.mapping_id),
        job_id=str(row.job_id),
        pi_id=str(row.pi_id),
        job_name=row.job_name or "",
        pi_name=row.pi_name or "",
        pi_impact_value=row.pi_impact_value,
        pi_target=row.pi_target,
        notes=row.notes or "",
        impact_sync=sync,
    )


def _output_outcome_response(
    row, sync: ImpactSyncResponse | None = None,
) -> OutputOutcomeMappingResponse:
    return OutputOutcomeMappingResponse(
        mapping_id=str(row.mapping_id),
        pi_id=str(row.pi_id),
        qbo_id=str(row.qbo_id),
        pi_name=row.pi_name or "",
        qbo_name=row.qbo_name or "",
        qbo_impact=row.qbo_impact,
        pi_target=row.pi_target,
        qbo_target=row.qbo_target,
        notes=row.notes or "",
        impact_sync=sync,
    )


async def _require_job_name(repo: JobRepository, job_id: UUID) -> str:
    job = await repo.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    return job.title


async def _require_output_name(repo: OutputRepository, output_id: UUID) -> str:
    output = await repo.get(output_id)
    if output is None:
        raise HTTPException(status_code=404, detail=f"Output {output_id} not found.")
    return output.name


async def _require_outcome_name(repo: OutcomeRepository, outcome_id: UUID) -> str:
    outcome = await repo.get(outcome_id)
    if outcome is None:
        raise HTTPException(status_code=404, detail=f"Outcome {outcome_id} not found.")
    return outcome.name


# ---------------------------------------------------------------------------
# Job → Output
# ---------------------------------------------------------------------------


@router.get("/{tenant_id}/job-output-mappings", response_model=JobOutputMappingListResponse)
async def list_job_output_mappings(
    tenant_id: TenantPath,
    job_id: UUID | None = None,
    pi_id: UUID | None = None,
    repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
) -> JobOutputMappingListResponse:
    if job_id is not None:
        rows = await repo.list_for_job(job_id)
    elif pi_id is not None:
        rows = await repo.list_for_output(pi_id)
    else:
        rows = await repo.list_all()
    return JobOutputMappingListResponse(
        items=[_job_output_response(r) for r in rows], total=len(rows),
    )


@router.post(
    "/{tenant_id}/job-output-mappings",
    status_code=201,
    response_model=JobOutputMappingResponse,
)
async def create_job_output_mapping(
    tenant_id: TenantPath,
    body: CreateJobOutputMappingRequest,
    repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    job_repo: JobRepository = Depends(get_job_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> JobOutputMappingResponse:
    job_name = await _require_job_name(job_repo, body.job_id)
    pi_name = await _require_output_name(output_repo, body.pi_id)

    row = await repo.create(
        mapping_id=new_uuid7(),
        job_id=body.job_id,
        pi_id=body.pi_id,
        job_name=job_name,
        pi_name=pi_name,
        pi_impact_value=body.pi_impact_value,
        pi_target=body.pi_target,
        notes=body.notes,
    )
    sync = await run_impact_sync(session, tenant_id, settings, row)
    return _job_output_response(row, sync)


@router.get(
    "/{tenant_id}/job-output-mappings/{mapping_id}",
    response_model=JobOutputMappingResponse,
)
async def get_job_output_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
) -> JobOutputMappingResponse:
    row = await repo.get(mapping_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")
    return _job_output_response(row)


@router.put(
    "/{tenant_id}/job-output-mappings/{mapping_id}",
    response_model=JobOutputMappingResponse,
)
async def update_job_output_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    body: UpdateJobOutputMappingRequest,
    repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    job_repo: JobRepository = Depends(get_job_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> JobOutputMappingResponse:
    if await repo.get(mapping_id) is None:
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")

    fields = partial_update(body)
    if "job_id" in fields:
        fields["job_name"] = await _require_job_name(job_repo, fields["job_id"])
    if "pi_id" in fields:
        fields["pi_name"] = await _require_output_name(output_repo, fields["pi_id"])

    row = await repo.update(mapping_id, **fields)

    sync = await run_impact_sync(session, tenant_id, settings, row)
    return _job_output_response(row, sync)


@router.delete("/{tenant_id}/job-output-mappings/{mapping_id}", response_model=DeleteResponse)
async def delete_job_output_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> DeleteResponse:
    if not await repo.delete(mapping_id):
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")

    sync = await run_impact_sync(session, tenant_id, settings)
    return DeleteResponse(deleted_id=str(mapping_id), impact_sync=sync)


# ---------------------------------------------------------------------------
# Output → Outcome
# ---------------------------------------------------------------------------


@router.get(
    "/{tenant_id}/output-outcome-mappings",
    response_model=OutputOutcomeMappingListResponse,
)
async def list_output_outcome_mappings(
    tenant_id: TenantPath,
    pi_id: UUID | None = None,
    qbo_id: UUID | None = None,
    repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
) -> OutputOutcomeMappingListResponse:
    if pi_id is not None:
        rows = await repo.list_for_output(pi_id)
    elif qbo_id is not None:
        rows = await repo.list_for_outcome(qbo_id)
    else:
        rows = await repo.list_all()
    return OutputOutcomeMappingListResponse(
        items=[_output_outcome_response(r) for r in rows], total=len(rows),
    )


@router.post(
    "/{tenant_id}/output-outcome-mappings",
    status_code=201,
    response_model=OutputOutcomeMappingResponse,
)
async def create_output_outcome_mapping(
    tenant_id: TenantPath,
    body: CreateOutputOutcomeMappingRequest,
    repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    outcome_repo: OutcomeRepository = Depends(get_outcome_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> OutputOutcomeMappingResponse:
    pi_name = await _require_output_name(output_repo, body.pi_id)
    qbo_name = await _require_outcome_name(outcome_repo, body.qbo_id)
    if await repo.find_pair(body.pi_id, body.qbo_id) is not None:
        raise HTTPException(
            status_code=409,
            detail="A mapping between this output and outcome already exists.",
        )

    row = await repo.create(
        mapping_id=new_uuid7(),
        pi_id=body.pi_id,
        qbo_id=body.qbo_id,
        pi_name=pi_name,
        qbo_name=qbo_name,
        pi_target=body.pi_target,
        qbo_target=body.qbo_target,
        qbo_impact=body.qbo_impact,
        notes=body.notes,
    )
    sync = await run_impact_sync(session, tenant_id, settings, row)
    return _output_outcome_response(row, sync)


@router.get(
    "/{tenant_id}/output-outcome-mappings/{mapping_id}",
    response_model=OutputOutcomeMappingResponse,
)
async def get_output_outcome_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
) -> OutputOutcomeMappingResponse:
    row = await repo.get(mapping_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")
    return _output_outcome_response(row)


@router.put(
    "/{tenant_id}/output-outcome-mappings/{mapping_id}",
    response_model=OutputOutcomeMappingResponse,
)
async def update_output_outcome_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    body: UpdateOutputOutcomeMappingRequest,
    repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    outcome_repo: OutcomeRepository = Depends(get_outcome_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> OutputOutcomeMappingResponse:
    existing = await repo.get(mapping_id)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")

    fields = partial_update(body)
    if "pi_id" in fields:
        fields["pi_name"] = await _require_output_name(output_repo, fields["pi_id"])
    if "qbo_id" in fields:
        fields["qbo_name"] = await _require_outcome_name(outcome_repo, fields["qbo_id"])

    pair = await repo.find_pair(
        fields.get("pi_id", existing.pi_id), fields.get("qbo_id", existing.qbo_id),
    )
    if pair is not None and pair.mapping_id != mapping_id:
        raise HTTPException(
            status_code=409,
            detail="A mapping between this output and outcome already exists.",
        )

    row = await repo.update(mapping_id, **fields)
    sync = await run_impact_sync(session, tenant_id, settings, row)
    return _output_outcome_response(row, sync)


@router.delete(
    "/{tenant_id}/output-outcome-mappings/{mapping_id}",
    response_model=DeleteResponse,
)
async def delete_output_outcome_mapping(
    tenant_id: TenantPath,
    mapping_id: UUID,
    repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
    session: AsyncSession = Depends(get_tenant_session),
    settings: Settings = Depends(get_settings),
) -> DeleteResponse:
    if not await repo.delete(mapping_id):
        raise HTTPException(status_code=404, detail=f"Mapping {mapping_id} not found.")

    sync = await run_impact_sync(session, tenant_id, settings)
    return DeleteResponse(deleted_id=str(mapping_id), impact_sync=sync)
