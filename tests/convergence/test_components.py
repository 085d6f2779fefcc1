"""Tests for per-component simulation results."""

from __future__ import annotations

import logging
import math

import pytest

from dftree.convergence.components import ComponentResult, SimulationResults

INF = math.inf


def _result(cid, name, times, total=None) -> ComponentResult:
    return ComponentResult(
        component_id=cid,
        component_name=name,
        component_type="event",
        time_of_failure=tuple(times),
        total_iterations=total,
    )


class TestComponentResult:
    def test_counts_finite_failure_times(self):
        result = _result("e1", "Pump", [12.5, INF, 300.0, INF])
        assert result.n_failures == 2
        assert result.reliability == pytest.approx(0.5)
        assert result.unreliability == pytest.approx(0.5)

    def test_explicit_iteration_count(self):
        result = _result("e1", "Pump", [10.0], total=10)
        assert result.iterations == 10
        assert result.reliability == pytest.approx(0.9)

    def test_nan_is_not_a_failure(self):
        result = _result("e1", "Pump", [float("nan"), 5.0])
        assert result.n_failures == 1
        assert math.isfinite(result.reliability)

    def test_zero_iterations_give_zero_sentinels(self):
        result = _result("e1", "Pump", [])
        assert result.reliability == 0.0
        assert result.unreliability == 0.0

    def test_from_dict_with_simulator_keys(self):
        result = ComponentResult.from_dict(
            {"timeOfFailureArray": [1.0, "Inf", None, 4.0], "totalIterations": 4},
            component_id="g1",
            component_name="System",
            component_type="gate",
        )
        assert result.time_of_failure[1] == INF
        assert result.n_failures == 2
        assert result.to_dict()["reliability"] == pytest.approx(0.5)
        assert result.to_dict()["component_type"] == "gate"


class TestSimulationResults:
    def test_from_model_matches_names(self, simple_tree, caplog):
        components = {
            "Pump": {"timeOfFailureArray": [1.0, INF, INF, INF]},
            "Valve": {"timeOfFailureArray": [1.0, 2.0, INF, INF]},
            "Top": {"timeOfFailureArray": [1.0, 2.0, 3.0, INF]},
        }
        with caplog.at_level(logging.WARNING, logger="dftree"):
            results = SimulationResults.from_model(
                simple_tree, components, mission_time=500.0, total_iterations=4
            )
        assert list(results.components) == ["e1", "e2", "top"]
        assert results.component("top").component_type == "gate"
        assert results.component("e3") is None
        assert "No simulation results for event 'Sensor'" in caplog.text
        assert "No simulation results for gate 'Sub'" in caplog.text

    def test_missing_iteration_count_uses_run_total(self, simple_tree):
        results = SimulationResults.from_model(
            simple_tree, {"Pump": {"timeOfFailureArray": [1.0]}}, total_iterations=10
        )
        assert results.component("e1").reliability == pytest.approx(0.9)

    def test_overall_statistics(self):
        results = SimulationResults()
        results.add(_result("e1", "Pump", [1.0, INF, INF, INF]))
        results.add(_result("e2", "Valve", [1.0, 2.0, INF, INF]))
        results.add(_result("e3", "Sensor", [INF, INF, INF, INF]))
        stats = results.overall_statistics()
        assert stats.total_components == 3
        assert stats.average_reliability == pytest.approx((0.75 + 0.5 + 1.0) / 3)
        assert stats.most_reliable == ("Sensor", 1.0)
        assert stats.least_reliable == ("Valve", 0.5)

    def test_ties_keep_insertion_order(self):
        results = SimulationResults()
        results.add(_result("e1", "Pump", [INF, INF]))
        results.add(_result("e2", "Valve", [INF, INF]))
        stats = results.overall_statistics()
        assert stats.most_reliable[0] == "Pump"
        assert stats.least_reliable[0] == "Valve"

    def test_empty_results(self):
        results = SimulationResults()
        assert results.overall_statistics() is None
        assert results.to_dict()["statistics"] is None
