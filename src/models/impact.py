"""Impact recomputation result model."""

from pydantic import Field

from src.models.common import PrioriwiseBase


class ImpactRecomputeResult(PrioriwiseBase):
    """Outcome of one ``recompute_impacts`` run for a single tenant.

    ``success=False`` means the derived fields are stale and the caller
    should retry; nothing from the failed run was persisted.
    """

    success: bool
    message: str = ""
    jobs_updated: int = Field(default=0, ge=0)
    outcomes_updated: int = Field(default=0, ge=0)
    skipped_edges: int = Field(default=0, ge=0)
