"""NetworkX views of a fault tree and structural validation.

The editor tolerates cycles and incomplete gates while a tree is being drawn.
The helpers here report such conditions as warnings; they never modify the
snapshot.
"""

from __future__ import annotations

from typing import List

import networkx as nx

from dftree.config import EXPORT_CONFIG
from dftree.model.fault_tree import FaultTreeModel
from dftree.utils.names import find_collisions


def to_networkx(model: FaultTreeModel) -> nx.DiGraph:
    """Build a directed graph with one edge per connection (input -> gate).

    Node attributes: ``kind`` (``"event"`` or ``"gate"``), ``name`` and, for
    gates, ``gate_type``. Edge attribute ``connection`` holds the connection id.
    """
    graph = nx.DiGraph()
    for event in model.events:
        graph.add_node(event.id, kind="event", name=event.name)
    for gate in model.gates:
        graph.add_node(gate.id, kind="gate", name=gate.name, gate_type=gate.gate_type.value)
    for conn in model.connections:
        if conn.source in graph and conn.target in graph:
            graph.add_edge(conn.source, conn.target, connection=conn.id)
    return graph


def gate_dependency_graph(model: FaultTreeModel) -> nx.DiGraph:
    """Return the gate-only graph with an edge A -> B when B is an input of A."""
    graph = nx.DiGraph()
    graph.add_nodes_from(g.id for g in model.gates)
    for gate in model.gates:
        for input_id in gate.inputs:
            if model.gate(input_id) is not None:
                graph.add_edge(gate.id, input_id)
    return graph


def find_cycles(model: FaultTreeModel) -> List[List[str]]:
    """List the elementary cycles among gates, each as a list of gate ids.

    Cycles are rotated to start at their smallest id and sorted, so the result
    is stable across runs.
    """
    cycles = []
    for cycle in nx.simple_cycles(gate_dependency_graph(model)):
        pivot = cycle.index(min(cycle))
        cycles.append(cycle[pivot:] + cycle[:pivot])
    return sorted(cycles)


def validate_model(model: FaultTreeModel) -> List[str]:
    """Return human-readable warnings about the structure of ``model``.

    Checks for gates without inputs, events used by no gate, SPARE/FDEP gates
    without secondary inputs, gate cycles and export name collisions.
    """
    warnings: List[str] = []
    graph = to_networkx(model)

    for gate in model.gates:
        if not gate.inputs:
            warnings.append(f"Gate '{gate.name}' has no inputs")
        if gate.gate_type.has_secondary_inputs and not gate.secondary_inputs:
            warnings.append(
                f"{gate.gate_type.value} gate '{gate.name}' has no secondary inputs"
            )

    secondary = {s for g in model.gates for s in g.secondary_inputs}
    for event in model.events:
        if graph.out_degree(event.id) == 0 and event.id not in secondary:
            warnings.append(f"Event '{event.name}' is not connected to any gate")

    for cycle in find_cycles(model):
        names = " -> ".join(model.gate(gid).name for gid in cycle + cycle[:1])
        warnings.append(f"Cycle between gates: {names}")

    collisions = find_collisions(model.display_names(), EXPORT_CONFIG.name_prefix)
    for ident, ids in collisions.items():
        names = ", ".join(f"'{model.element(i).name}'" for i in ids)
        warnings.append(f"Names {names} all export as '{ident}'")

    return warnings
