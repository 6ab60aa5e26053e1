"""Outcome progress — achieved vs. expected percentage per Outcome.

achieved = (current − beginning) / (target − beginning)

expected: completed Jobs push their ``pi_impact_value`` into Outputs,
each Output's accumulated impact is normalised by its own span
(target − beginning), then pushed into Outcomes through ``qbo_impact``
and normalised by the Outcome span.

Both are expressed in percent and clamped to [0, 100]. A zero span
yields 0 rather than dividing.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

import numpy as np

from src.engine.impact import build_weight_matrix, job_output_edges, output_outcome_edges
from src.models.portfolio import Job, JobOutputMapping, Outcome, Output, OutputOutcomeMapping


@dataclass(frozen=True)
class OutcomeProgress:
    outcome_id: UUID
    name: str
    achieved_outcome: float
    expected_outcome: float


def _safe_divide(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    out = np.zeros_like(numerator, dtype=np.float64)
    np.divide(numerator, denominator, out=out, where=denominator != 0)
    return out


def _to_percent(ratio: np.ndarray) -> np.ndarray:
    return np.clip(ratio * 100.0, 0.0, 100.0)


def achieved_progress(outcomes: Sequence[Outcome]) -> np.ndarray:
    """Percent of the way from beginning to target, per Outcome."""
    beginning = np.array([q.beginning_value for q in outcomes], dtype=np.float64)
    current = np.array([q.current_value for q in outcomes], dtype=np.float64)
    target = np.array([q.target_value for q in outcomes], dtype=np.float64)
    return _to_percent(_safe_divide(current - beginning, target - beginning))


def expected_progress(
    *,
    outcomes: Sequence[Outcome],
    outputs: Sequence[Output],
    jobs: Sequence[Job],
    job_output_mappings: Sequence[JobOutputMapping],
    output_outcome_mappings: Sequence[OutputOutcomeMapping],
) -> np.ndarray:
    """Percent progress implied by completed Jobs, per Outcome."""
    done_index = {j.job_id: i for i, j in enumerate(j for j in jobs if j.is_done)}
    output_index = {o.output_id: i for i, o in enumerate(outputs)}
    outcome_index = {q.outcome_id: i for i, q in enumerate(outcomes)}

    a_matrix, _ = build_weight_matrix(done_index, output_index, job_output_edges(job_output_mappings))
    b_matrix, _ = build_weight_matrix(
        output_index, outcome_index, output_outcome_edges(output_outcome_mappings)
    )

    output_span = np.array([o.target_value - o.beginning_value for o in outputs], dtype=np.float64)
    output_progress = _safe_divide(a_matrix.sum(axis=0), output_span)

    outcome_span = np.array([q.target_value - q.beginning_value for q in outcomes], dtype=np.float64)
    # All edges into one Outcome share its span, so divide once after summing
    outcome_raw = _safe_divide(output_progress @ b_matrix, outcome_span)
    return _to_percent(outcome_raw)


def outcome_progress(
    *,
    outcomes: Sequence[Outcome],
    outputs: Sequence[Output],
    jobs: Sequence[Job],
    job_output_mappings: Sequence[JobOutputMapping],
    output_outcome_mappings: Sequence[OutputOutcomeMapping],
) -> list[OutcomeProgress]:
    achieved = achieved_progress(outcomes)
    expected = expected_progress(
        outcomes=outcomes,
        outputs=outputs,
        jobs=jobs,
        job_output_mappings=job_output_mappings,
        output_outcome_mappings=output_outcome_mappings,
    )
    return [
        OutcomeProgress(
            outcome_id=q.outcome_id,
            name=q.name,
            achieved_outcome=float(achieved[i]),
            expected_outcome=float(expected[i]),
        )
        for i, q in enumerate(outcomes)
    ]
