"""FastAPI mapping-data endpoint — everything a mapping editor needs in one call.

GET /v1/tenants/{tenant_id}/mapping-data
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.dependencies import (
    TenantPath,
    get_job_output_mapping_repo,
    get_job_repo,
    get_outcome_repo,
    get_output_outcome_mapping_repo,
    get_output_repo,
)
from src.api.jobs import JobResponse, _job_response
from src.api.mappings import (
    JobOutputMappingResponse,
    OutputOutcomeMappingResponse,
    _job_output_response,
    _output_outcome_response,
)
from src.api.outcomes import OutcomeResponse, _outcome_fields
from src.api.outputs import OutputResponse, _output_fields
from src.repositories.jobs import JobRepository
from src.repositories.mappings import JobOutputMappingRepository, OutputOutcomeMappingRepository
from src.repositories.outcomes import OutcomeRepository
from src.repositories.outputs import OutputRepository

router = APIRouter(prefix="/v1/tenants", tags=["mappings"])

UNKNOWN_OUTCOME_NAME = "Unknown Outcome"


class MappingDataResponse(BaseModel):
    jobs: list[JobResponse]
    outputs: list[OutputResponse]
    outcomes: list[OutcomeResponse]
    job_output_mappings: list[JobOutputMappingResponse]
    output_outcome_mappings: list[OutputOutcomeMappingResponse]


@router.get("/{tenant_id}/mapping-data", response_model=MappingDataResponse)
async def get_mapping_data(
    tenant_id: TenantPath,
    job_repo: JobRepository = Depends(get_job_repo),
    output_repo: OutputRepository = Depends(get_output_repo),
    outcome_repo: OutcomeRepository = Depends(get_outcome_repo),
    job_output_repo: JobOutputMappingRepository = Depends(get_job_output_mapping_repo),
    output_outcome_repo: OutputOutcomeMappingRepository = Depends(get_output_outcome_mapping_repo),
) -> MappingDataResponse:
    """Active jobs, all outputs and outcomes, and both mapping sets.

    Output→Outcome mappings with a blank ``qbo_name`` snapshot report the
    Outcome's current name, or ``"Unknown Outcome"`` once it is gone.
    """
    outcomes = await outcome_repo.list_all()
    outcome_names = {o.outcome_id: o.name for o in outcomes}

    output_outcome = []
    for row in await output_outcome_repo.list_all():
        entry = _output_outcome_response(row)
        if not entry.qbo_name.strip():
            entry.qbo_name = outcome_names.get(row.qbo_id, UNKNOWN_OUTCOME_NAME)
        output_outcome.append(entry)

    return MappingDataResponse(
        jobs=[_job_response(r) for r in await job_repo.list_active()],
        outputs=[OutputResponse(**_output_fields(r)) for r in await output_repo.list_all()],
        outcomes=[OutcomeResponse(**_outcome_fields(r)) for r in outcomes],
        job_output_mappings=[_job_output_response(r) for r in await job_output_repo.list_all()],
        output_outcome_mappings=output_outcome,
    )
