"""Tests for the SHyFTA model script export."""

from __future__ import annotations

import pytest

from dftree.config import ExportConfig, SimulationSettings
from dftree.export.shyfta import (
    basic_event_statement,
    format_number,
    gate_statement,
    load_main_template,
    parse_progress,
    render_main_script,
    render_model_script,
)
from dftree.model.fault_tree import BaseEvent, FaultTreeModel, Gate
from dftree.types.base import GateType

EXPECTED_SCRIPT = """\
%% Define the Fault Tree Structure %%
Tm = 500; %[h]

%% Define BEs %%

Pump = BasicEvent('Pump','exp','',[0.001],[]);
Valve_2 = BasicEvent('Valve_2','weibull','exp',[1.5, 2000, 0],[0.1]);

%% Define Gates %%
Sub_System = Gate('Sub_System', 'AND', false, [Pump, Valve_2]);
Top = Gate('Top', 'OR', false, [Sub_System]);
TOP = Top;
%% Recall Matlab Script %%
%verify if the FT Structure is valid (it will modify the value of the variable UNVALID_FT)
createFTStructure
"""


def test_render_full_script(export_tree):
    result = render_model_script(export_tree, mission_time=500)
    assert result.script == EXPECTED_SCRIPT
    assert result.warnings == []
    assert not result.top.ambiguous


def test_default_mission_time_from_config(export_tree):
    script = render_model_script(export_tree).script
    assert "Tm = 1000; %[h]" in script
    script = render_model_script(
        export_tree, config=ExportConfig(default_mission_time=12.5)
    ).script
    assert "Tm = 12.5; %[h]" in script


@pytest.mark.parametrize(
    "value, text",
    [(1000.0, "1000"), (0.001, "0.001"), (1.5, "1.5"), (0, "0"), (1e-7, "1e-07")],
)
def test_format_number(value, text):
    assert format_number(value) == text


def test_spare_gate_lists_secondary_inputs(make_tree):
    model = make_tree(
        events=[BaseEvent(id="p", name="Primary"), BaseEvent(id="s", name="1st spare")],
        gates=[
            Gate(
                id="g",
                name="Spare Gate",
                gate_type=GateType.SPARE,
                inputs=("p",),
                secondary_inputs=("s",),
                is_failure_gate=True,
            )
        ],
    )
    assert gate_statement(model.gate("g"), model) == (
        "Spare_Gate = Gate('Spare_Gate', 'SPARE', true, [Primary], [E_1st_spare]);"
    )


def test_basic_event_name_is_sanitized():
    event = BaseEvent(id="e", name="3 way valve")
    assert basic_event_statement(event) == (
        "E_3_way_valve = BasicEvent('E_3_way_valve','exp','',[0.001],[]);"
    )


def test_cycle_and_ambiguity_are_reported(cyclic_tree):
    result = render_model_script(cyclic_tree)
    lines = result.script.splitlines()
    gate_lines = [line for line in lines if "= Gate(" in line]
    assert [line.split(" = ")[0] for line in gate_lines] == ["G2", "G1"]
    assert "TOP = G1;" in lines
    assert result.ordering.has_cycles
    assert result.top.ambiguous
    assert any("cycle" in note for note in result.warnings)
    assert any("ambiguous" in note for note in result.warnings)


def test_events_only_model_has_no_top_line():
    model = FaultTreeModel(events=(BaseEvent(id="e", name="E"),))
    result = render_model_script(model)
    assert "TOP =" not in result.script
    assert result.top.gate is None
    assert "No gate available to designate as top event" in result.warnings


def test_name_collisions_reported(make_tree):
    model = make_tree(
        events=[BaseEvent(id="a", name="Pump A"), BaseEvent(id="b", name="Pump-A")],
        gates=[Gate(id="g", name="G", inputs=("a", "b"))],
    )
    result = render_model_script(model)
    assert result.collisions == {"Pump_A": ["a", "b"]}
    assert any("Pump_A" in note for note in result.warnings)


def test_parse_progress():
    assert parse_progress("Avanzamento:  42.50%") == 42.5
    assert parse_progress("Avanzamento: 100%") == 100.0
    assert parse_progress("Simulation started") is None


class TestMainScript:
    def test_packaged_template_has_all_placeholders(self):
        template = load_main_template()
        for placeholder in ("<MODEL_NAME>", "<ITER>", "<CONFIDENCE>", "<TRUEFALSE>"):
            assert placeholder in template
        assert "Avanzamento" in template

    def test_fills_placeholders(self):
        settings = SimulationSettings(
            model_name="initFaultTree_18102026_140509.m",
            iterations=20000,
            confidence=0.99,
            stop_criteria_on=True,
        )
        text = render_main_script(settings)
        assert "iter = 20000;" in text
        assert "confidenceLevel = 0.99;" in text
        assert "stopCriteriaOn = true;" in text
        assert "\ninitFaultTree_18102026_140509\n" in text
        assert "<ITER>" not in text and "<MODEL_NAME>" not in text

    def test_custom_template_replaces_every_occurrence(self):
        settings = SimulationSettings(model_name="tree", stop_criteria_on=False)
        text = render_main_script(settings, template="<MODEL_NAME>;<MODEL_NAME>;<TRUEFALSE>;<ITER>")
        assert text == "tree;tree;false;10000"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"model_name": " "}, "model name"),
            ({"iterations": 0}, "iterations"),
            ({"confidence": 1.0}, "confidence level"),
        ],
    )
    def test_rejects_invalid_settings(self, overrides, message):
        settings = SimulationSettings(**{"model_name": "tree", **overrides})
        with pytest.raises(ValueError, match=message):
            render_main_script(settings)
