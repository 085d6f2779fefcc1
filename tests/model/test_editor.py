"""Tests for the editing session wrapper."""

from __future__ import annotations

import pytest

from dftree.model.editor import FaultTreeEditor
from dftree.model.fault_tree import FaultTreeModel, Gate
from dftree.model.mutations import check_invariants
from dftree.types.base import GateType


def test_commands_return_full_snapshot():
    editor = FaultTreeEditor()
    pump = editor.add_event(name="Pump").events[-1]
    top = editor.add_gate("OR", name="Top").gates[-1]
    model = editor.connect(pump.id, top.id)

    assert model is editor.model
    assert model.gate(top.id).inputs == (pump.id,)
    assert check_invariants(model) == []


def test_earlier_snapshot_is_unchanged():
    """Observers holding an old snapshot never see later edits."""
    editor = FaultTreeEditor()
    editor.add_event(name="Pump")
    before = editor.model
    editor.add_event(name="Valve")
    assert [e.name for e in before.events] == ["Pump"]
    assert [e.name for e in editor.model.events] == ["Pump", "Valve"]


def test_failed_command_keeps_current_snapshot():
    editor = FaultTreeEditor()
    editor.add_event(name="Pump")
    before = editor.model
    with pytest.raises(ValueError):
        editor.add_gate("NOT-A-GATE")
    assert editor.model is before


def test_constructor_normalizes_loaded_model():
    """Gate inputs without connections are adopted on load."""
    raw = FaultTreeModel(
        gates=(Gate(id="g1", name="G1", inputs=("g2",)), Gate(id="g2", name="G2")),
    )
    editor = FaultTreeEditor(raw)
    assert len(editor.model.connections) == 1
    assert check_invariants(editor.model) == []


def test_full_editing_session(simple_tree):
    editor = FaultTreeEditor(simple_tree)
    editor.update_gate("sub", gate_type=GateType.SPARE, name="Backup")
    editor.set_secondary_inputs("sub", ["e3"])
    editor.set_top_event("top")
    editor.move_element("e1", 5, 5)
    editor.update_event("e2", description="Inlet valve")
    model = editor.reorganize()

    assert model.gate("sub").secondary_inputs == ("e3",)
    assert model.gate("sub").name == "Backup"
    assert model.top_event == "top"
    assert model.event("e2").description == "Inlet valve"

    conn = model.connections[0]
    model = editor.delete_connection(conn.id)
    assert conn not in model.connections
    model = editor.delete_element("top")
    assert model.gates == ()


def test_load_replaces_model(simple_tree):
    editor = FaultTreeEditor()
    model = editor.load(simple_tree)
    assert model == simple_tree
