"""Tests for loading models and samples from YAML/JSON."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dftree.io import (
    dump_model,
    load_model_file,
    load_model_yaml,
    load_results_file,
    load_samples_file,
    results_from_data,
    samples_from_data,
)
from dftree.model.distributions import Exponential, Weibull
from dftree.model.mutations import check_invariants
from dftree.types.base import GateType

MODEL_YAML = """
events:
  - id: e1
    name: Pump
    failure: {type: exponential, lambda: 0.001}
  - id: e2
    name: Valve
    failure: {type: weibull, k: 1.5, lambda: 2000}
    repair: {type: exp, lambda: 0.1}
  - id: e3
    name: Spare pump
gates:
  - id: g1
    name: System
    gate_type: spare
    secondary_inputs: [e3]
  - id: g2
    name: Legacy
    gate_type: OR
    inputs: [e2, ghost]
connections:
  - {source: e1, target: g1}
  - {id: c2, source: e2, target: g1}
  - {source: missing, target: g1}
top_event: g1
"""


def test_load_model_yaml():
    model = load_model_yaml(MODEL_YAML)

    assert check_invariants(model) == []
    assert model.event("e1").failure == Exponential(rate=0.001)
    assert model.event("e2").failure == Weibull(k=1.5, lam=2000.0)
    assert model.event("e2").repair == Exponential(rate=0.1)
    assert model.event("e3").failure == Exponential(rate=0.001)

    g1 = model.gate("g1")
    assert g1.gate_type is GateType.SPARE
    assert g1.inputs == ("e1", "e2")
    assert g1.secondary_inputs == ("e3",)
    assert g1.is_top_event and model.top_event == "g1"

    # Gate-side inputs are adopted, unknown ids dropped
    assert model.gate("g2").inputs == ("e2",)
    assert len(model.connections) == 3
    assert model.connection("c2") is not None


def test_empty_document_is_empty_model():
    model = load_model_yaml("")
    assert model.events == () and model.gates == ()


@pytest.mark.parametrize(
    "text, message",
    [
        ("- just\n- a list\n", "must map to a dictionary"),
        ("events: {}\n", "Invalid fault tree at events"),
        ("gates:\n  - name: no id\n", "Invalid fault tree"),
        ("network: {}\n", "Invalid fault tree at <root>"),
        ("gates:\n  - {id: g, gate_type: XOR}\n", "Invalid gate type"),
        ("events:\n  - {id: e, failure: {type: gamma}}\n", "Invalid fault tree"),
    ],
)
def test_invalid_documents_raise_value_error(text, message):
    with pytest.raises(ValueError, match=message):
        load_model_yaml(text)


def test_dump_and_reload(simple_tree):
    assert load_model_yaml(dump_model(simple_tree)) == simple_tree


def test_load_model_file_reads_json(tmp_path: Path, simple_tree):
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(simple_tree.to_dict()))
    assert load_model_file(path) == simple_tree


def test_load_model_file_missing(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_model_file(tmp_path / "missing.yaml")


def test_load_samples_file_list_and_history(tmp_path: Path):
    rows = [
        {"iteration": 100, "mean_estimate": 0.001, "CI_width": 0.0003, "accepted_error": 0.0001},
        {"iteration": 200, "mean_estimate": 0.0011, "CI_width": 0.0001, "accepted_error": 0.0001},
    ]
    listed = tmp_path / "samples.json"
    listed.write_text(json.dumps(rows))
    wrapped = tmp_path / "history.yaml"
    wrapped.write_text(json.dumps({"ci_history": rows}))

    samples = load_samples_file(listed)
    assert [s.iteration for s in samples] == [100, 200]
    assert load_samples_file(wrapped) == samples


def test_samples_from_data_rejects_bad_shapes():
    assert samples_from_data(None) == []
    with pytest.raises(ValueError):
        samples_from_data({"iterations": []})
    with pytest.raises(ValueError, match="Sample #0"):
        samples_from_data([1, 2])


def test_load_results_file(tmp_path: Path, simple_tree):
    path = tmp_path / "results.json"
    path.write_text(
        json.dumps(
            {
                "missionTime": 1000,
                "totalIterations": 4,
                "components": {
                    "Pump": {"timeOfFailureArray": [10.0, "Inf", "Inf", "Inf"]},
                    "Top": {"timeOfFailureArray": [10.0, 20.0, "Inf", "Inf"]},
                },
            }
        )
    )
    results = load_results_file(path, simple_tree)
    assert results.mission_time == 1000.0
    assert results.component("e1").reliability == pytest.approx(0.75)
    assert results.overall_statistics().least_reliable == ("Top", 0.5)


def test_results_from_data_rejects_bad_shapes(simple_tree):
    with pytest.raises(ValueError):
        results_from_data([], simple_tree)
    with pytest.raises(ValueError, match="'components'"):
        results_from_data({"components": []}, simple_tree)
    with pytest.raises(ValueError, match="Pump"):
        results_from_data({"components": {"Pump": [1.0]}}, simple_tree)
