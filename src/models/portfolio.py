"""Portfolio models — Jobs, Outputs (PIs), Outcomes (QBOs) and the mappings between them.

Built from ORM rows via ``model_validate(row)`` and fed to the pure
engines in ``src.engine``.
"""

from datetime import datetime

from src.models.common import FiniteFloat, PrioriwiseBase, UUIDv7


class Job(PrioriwiseBase):
    """Unit of work a tenant ranks by impact."""

    job_id: UUIDv7
    title: str
    business_function_id: str | None = None
    is_done: bool = False
    impact_value: FiniteFloat = 0.0


class Output(PrioriwiseBase):
    """Performance indicator (PI)."""

    output_id: UUIDv7
    name: str
    unit: str = ""
    beginning_value: FiniteFloat = 0.0
    target_value: FiniteFloat


class Outcome(PrioriwiseBase):
    """Quarterly business objective (QBO)."""

    outcome_id: UUIDv7
    name: str
    unit: str = ""
    beginning_value: FiniteFloat = 0.0
    current_value: FiniteFloat = 0.0
    target_value: FiniteFloat
    deadline: datetime | None = None
    points: FiniteFloat = 0.0


class JobOutputMapping(PrioriwiseBase):
    """Weighted Job → Output edge."""

    mapping_id: UUIDv7
    job_id: UUIDv7
    pi_id: UUIDv7
    job_name: str = ""
    pi_name: str = ""
    pi_impact_value: FiniteFloat = 0.0
    pi_target: FiniteFloat = 0.0


class OutputOutcomeMapping(PrioriwiseBase):
    """Weighted Output → Outcome edge."""

    mapping_id: UUIDv7
    pi_id: UUIDv7
    qbo_id: UUIDv7
    pi_name: str = ""
    qbo_name: str = ""
    pi_target: FiniteFloat
    qbo_target: FiniteFloat
    qbo_impact: FiniteFloat
