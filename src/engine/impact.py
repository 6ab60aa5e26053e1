"""Impact propagation — two-stage weighted fan-in over the mapping graph.

Stage 1 rolls each Output up into its Outcomes:
    B[o, q] = Σ qbo_impact of Output o → Outcome q edges
    w       = B · 1          (per-Output aggregate weight)
    points  = 1ᵀ · B         (per-Outcome points)

Stage 2 scales each Job's Output edges by the Output's weight:
    A[j, o] = Σ pi_impact_value of Job j → Output o edges
    impact  = A · w

Raw weighted sums: no normalisation, no clamping. Edges whose endpoint is
not in the tenant's entity set are dropped (zero contribution).

Pure deterministic functions — no I/O.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from uuid import UUID

import numpy as np

from src.models.portfolio import JobOutputMapping, OutputOutcomeMapping


@dataclass(frozen=True)
class WeightedEdge:
    """Source → target edge carrying a numeric weight."""

    source_id: UUID
    target_id: UUID
    weight: float


@dataclass(frozen=True)
class ImpactComputation:
    """Result of one full impact propagation."""

    job_impacts: dict[UUID, float]
    output_weights: dict[UUID, float]
    outcome_points: dict[UUID, float]
    skipped_edges: int = 0

    @property
    def non_finite_count(self) -> int:
        """Impacts and points that overflowed to ±inf or NaN."""
        values = np.fromiter(
            [*self.job_impacts.values(), *self.outcome_points.values()],
            dtype=np.float64,
        )
        return int(np.count_nonzero(~np.isfinite(values)))


def job_output_edges(mappings: Iterable[JobOutputMapping]) -> list[WeightedEdge]:
    return [WeightedEdge(m.job_id, m.pi_id, m.pi_impact_value) for m in mappings]


def output_outcome_edges(mappings: Iterable[OutputOutcomeMapping]) -> list[WeightedEdge]:
    return [WeightedEdge(m.pi_id, m.qbo_id, m.qbo_impact) for m in mappings]


def build_weight_matrix(
    source_index: dict[UUID, int],
    target_index: dict[UUID, int],
    edges: Sequence[WeightedEdge],
) -> tuple[np.ndarray, int]:
    """Accumulate edges into a dense (sources × targets) matrix.

    Duplicate edges sum. Returns the matrix and the number of edges
    dropped because an endpoint is missing from the index.
    """
    rows: list[int] = []
    cols: list[int] = []
    vals: list[float] = []
    skipped = 0
    for edge in edges:
        i = source_index.get(edge.source_id)
        j = target_index.get(edge.target_id)
        if i is None or j is None:
            skipped += 1
            continue
        rows.append(i)
        cols.append(j)
        vals.append(float(edge.weight))

    matrix = np.zeros((len(source_index), len(target_index)), dtype=np.float64)
    # np.add.at is unbuffered, so repeated (i, j) pairs accumulate
    np.add.at(
        matrix,
        (np.asarray(rows, dtype=np.intp), np.asarray(cols, dtype=np.intp)),
        np.asarray(vals, dtype=np.float64),
    )
    return matrix, skipped


def _index(ids: Sequence[UUID]) -> dict[UUID, int]:
    index: dict[UUID, int] = {}
    for entity_id in ids:
        index.setdefault(entity_id, len(index))
    return index


class ImpactAggregator:
    """Deterministic Job/Output/Outcome impact calculator."""

    def compute(
        self,
        *,
        job_ids: Sequence[UUID],
        output_ids: Sequence[UUID],
        outcome_ids: Sequence[UUID],
        job_output: Sequence[WeightedEdge],
        output_outcome: Sequence[WeightedEdge],
    ) -> ImpactComputation:
        """Run both propagation stages over one tenant's graph.

        Args:
            job_ids: Every Job of the tenant (each gets an impact, default 0).
            output_ids: Every Output that currently exists.
            outcome_ids: Every Outcome that currently exists.
            job_output: Job → Output edges (weight = pi_impact_value).
            output_outcome: Output → Outcome edges (weight = qbo_impact).

        Returns:
            ImpactComputation with per-job impact, per-output weight,
            per-outcome points and the dangling edge count.
        """
        job_index = _index(job_ids)
        output_index = _index(output_ids)
        outcome_index = _index(outcome_ids)

        b_matrix, skipped_b = build_weight_matrix(output_index, outcome_index, output_outcome)
        a_matrix, skipped_a = build_weight_matrix(job_index, output_index, job_output)

        # Finite weights can still overflow; callers check non_finite_count
        with np.errstate(over="ignore", invalid="ignore"):
            output_weights = b_matrix.sum(axis=1)
            outcome_points = b_matrix.sum(axis=0)
            impacts = a_matrix @ output_weights

        return ImpactComputation(
            job_impacts={jid: float(impacts[i]) for jid, i in job_index.items()},
            output_weights={oid: float(output_weights[i]) for oid, i in output_index.items()},
            outcome_points={qid: float(outcome_points[i]) for qid, i in outcome_index.items()},
            skipped_edges=skipped_a + skipped_b,
        )
