"""Tests for the pure impact propagation engine.

Covers: weighted fan-in (Job → Output → Outcome), zero-mapping jobs,
duplicate edge accumulation, dangling edge skipping, outcome points.
"""

import numpy as np
import pytest
from uuid_extensions import uuid7

from src.engine.impact import (
    ImpactAggregator,
    WeightedEdge,
    build_weight_matrix,
    job_output_edges,
    output_outcome_edges,
)
from src.models.portfolio import JobOutputMapping, OutputOutcomeMapping


@pytest.fixture
def agg() -> ImpactAggregator:
    return ImpactAggregator()


# ===================================================================
# build_weight_matrix
# ===================================================================


class TestBuildWeightMatrix:

    def test_places_weights(self) -> None:
        a, b, x, y = uuid7(), uuid7(), uuid7(), uuid7()
        m, skipped = build_weight_matrix(
            {a: 0, b: 1}, {x: 0, y: 1},
            [WeightedEdge(a, y, 3.0), WeightedEdge(b, x, -1.5)],
        )
        np.testing.assert_array_equal(m, [[0.0, 3.0], [-1.5, 0.0]])
        assert skipped == 0

    def test_duplicate_edges_sum(self) -> None:
        a, x = uuid7(), uuid7()
        m, _ = build_weight_matrix(
            {a: 0}, {x: 0},
            [WeightedEdge(a, x, 2.0), WeightedEdge(a, x, 4.0)],
        )
        assert m[0, 0] == pytest.approx(6.0)

    def test_missing_endpoint_is_skipped(self) -> None:
        a, x = uuid7(), uuid7()
        m, skipped = build_weight_matrix(
            {a: 0}, {x: 0},
            [WeightedEdge(a, uuid7(), 9.0), WeightedEdge(uuid7(), x, 9.0), WeightedEdge(a, x, 1.0)],
        )
        assert skipped == 2
        assert m[0, 0] == pytest.approx(1.0)

    def test_empty_indices(self) -> None:
        m, skipped = build_weight_matrix({}, {}, [])
        assert m.shape == (0, 0)
        assert skipped == 0


# ===================================================================
# ImpactAggregator
# ===================================================================


class TestWeightedFanIn:
    """J1 → O1 (2) → Q1 (10) gives 20; O2 has no outcomes so J1 → O2 adds 0."""

    def test_single_chain(self, agg: ImpactAggregator) -> None:
        j1, o1, q1 = uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 2.0)],
            output_outcome=[WeightedEdge(o1, q1, 10.0)],
        )
        assert result.job_impacts[j1] == pytest.approx(20.0)
        assert result.output_weights[o1] == pytest.approx(10.0)
        assert result.outcome_points[q1] == pytest.approx(10.0)

    def test_output_without_outcomes_contributes_zero(self, agg: ImpactAggregator) -> None:
        j1, o1, o2, q1 = uuid7(), uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1, o2], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 2.0), WeightedEdge(j1, o2, 5.0)],
            output_outcome=[WeightedEdge(o1, q1, 10.0)],
        )
        assert result.job_impacts[j1] == pytest.approx(20.0)
        assert result.output_weights[o2] == 0.0

    def test_output_fans_into_several_outcomes(self, agg: ImpactAggregator) -> None:
        j1, o1, q1, q2 = uuid7(), uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1, q2],
            job_output=[WeightedEdge(j1, o1, 3.0)],
            output_outcome=[WeightedEdge(o1, q1, 4.0), WeightedEdge(o1, q2, 1.0)],
        )
        assert result.output_weights[o1] == pytest.approx(5.0)
        assert result.job_impacts[j1] == pytest.approx(15.0)

    def test_outcome_points_sum_incoming_edges(self, agg: ImpactAggregator) -> None:
        o1, o2, q1 = uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[], output_ids=[o1, o2], outcome_ids=[q1],
            job_output=[],
            output_outcome=[WeightedEdge(o1, q1, 4.0), WeightedEdge(o2, q1, 6.0)],
        )
        assert result.outcome_points[q1] == pytest.approx(10.0)

    def test_negative_weights_are_not_clamped(self, agg: ImpactAggregator) -> None:
        j1, o1, q1 = uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 2.0)],
            output_outcome=[WeightedEdge(o1, q1, -3.0)],
        )
        assert result.job_impacts[j1] == pytest.approx(-6.0)


class TestZeroAndDangling:

    def test_job_without_mappings_is_zero(self, agg: ImpactAggregator) -> None:
        j1, j2, o1, q1 = uuid7(), uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1, j2], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 1.0)],
            output_outcome=[WeightedEdge(o1, q1, 1.0)],
        )
        assert result.job_impacts[j2] == 0.0

    def test_empty_graph(self, agg: ImpactAggregator) -> None:
        result = agg.compute(
            job_ids=[], output_ids=[], outcome_ids=[],
            job_output=[], output_outcome=[],
        )
        assert result.job_impacts == {}
        assert result.outcome_points == {}
        assert result.skipped_edges == 0

    def test_dangling_output_is_skipped(self, agg: ImpactAggregator) -> None:
        j1, o1, q1, gone = uuid7(), uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 2.0), WeightedEdge(j1, gone, 100.0)],
            output_outcome=[WeightedEdge(o1, q1, 10.0), WeightedEdge(gone, q1, 100.0)],
        )
        assert result.job_impacts[j1] == pytest.approx(20.0)
        assert result.outcome_points[q1] == pytest.approx(10.0)
        assert result.skipped_edges == 2

    def test_dangling_outcome_is_skipped(self, agg: ImpactAggregator) -> None:
        j1, o1 = uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[],
            job_output=[WeightedEdge(j1, o1, 2.0)],
            output_outcome=[WeightedEdge(o1, uuid7(), 10.0)],
        )
        assert result.job_impacts[j1] == 0.0
        assert result.skipped_edges == 1

    def test_deterministic(self, agg: ImpactAggregator) -> None:
        j1, o1, q1 = uuid7(), uuid7(), uuid7()
        kwargs = dict(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 0.1), WeightedEdge(j1, o1, 0.2)],
            output_outcome=[WeightedEdge(o1, q1, 0.3)],
        )
        assert agg.compute(**kwargs) == agg.compute(**kwargs)


class TestOverflow:

    def test_finite_graph_has_no_overflow(self, agg: ImpactAggregator) -> None:
        j1, o1, q1 = uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 2.0)],
            output_outcome=[WeightedEdge(o1, q1, 10.0)],
        )
        assert result.non_finite_count == 0

    def test_large_weights_overflow_job_impact(self, agg: ImpactAggregator) -> None:
        j1, o1, q1 = uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 1e200)],
            output_outcome=[WeightedEdge(o1, q1, 1e200)],
        )
        assert np.isinf(result.job_impacts[j1])
        assert result.outcome_points[q1] == pytest.approx(1e200)
        assert result.non_finite_count == 1

    def test_opposite_overflows_give_nan(self, agg: ImpactAggregator) -> None:
        j1, o1, o2, q1 = uuid7(), uuid7(), uuid7(), uuid7()
        result = agg.compute(
            job_ids=[j1], output_ids=[o1, o2], outcome_ids=[q1],
            job_output=[WeightedEdge(j1, o1, 1e200), WeightedEdge(j1, o2, 1e200)],
            output_outcome=[WeightedEdge(o1, q1, 1e200), WeightedEdge(o2, q1, -1e200)],
        )
        # inf + -inf
        assert np.isnan(result.job_impacts[j1])
        assert result.outcome_points[q1] == 0.0
        assert result.non_finite_count == 1


class TestEdgeAdapters:

    def test_job_output_edges_use_pi_impact_value(self) -> None:
        m = JobOutputMapping(
            mapping_id=uuid7(), job_id=uuid7(), pi_id=uuid7(), pi_impact_value=7.0,
        )
        (edge,) = job_output_edges([m])
        assert (edge.source_id, edge.target_id, edge.weight) == (m.job_id, m.pi_id, 7.0)

    def test_output_outcome_edges_use_qbo_impact(self) -> None:
        m = OutputOutcomeMapping(
            mapping_id=uuid7(), pi_id=uuid7(), qbo_id=uuid7(),
            pi_target=1.0, qbo_target=1.0, qbo_impact=4.5,
        )
        (edge,) = output_outcome_edges([m])
        assert (edge.source_id, edge.target_id, edge.weight) == (m.pi_id, m.qbo_id, 4.5)
