"""Bottom-up gate ordering and top-event resolution for export.

The simulator reads one definition per element and requires every gate to be
defined after the gates it references. :func:`bottom_up_order` produces such an
order with a three-colour depth-first search that tolerates cycles: an edge
into a gate that is still being visited closes a cycle and is skipped, so every
gate is still emitted exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dftree.logging import get_logger
from dftree.model.fault_tree import FaultTreeModel, Gate

LOGGER = get_logger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class BackEdge:
    """Gate-to-gate edge skipped because it closes a cycle.

    Attributes:
        gate: Id of the gate whose input list holds the edge.
        input: Id of the in-progress gate the edge points back to.
    """

    gate: str
    input: str


@dataclass(frozen=True)
class GateOrdering:
    """Result of :func:`bottom_up_order`.

    Attributes:
        gates: Every gate exactly once, referenced gates before referencing
            gates (ignoring ``back_edges``).
        back_edges: Cycle-closing edges that were skipped, in discovery order.
    """

    gates: Tuple[Gate, ...]
    back_edges: Tuple[BackEdge, ...] = ()

    @property
    def has_cycles(self) -> bool:
        return bool(self.back_edges)

    @property
    def ids(self) -> List[str]:
        return [g.id for g in self.gates]


@dataclass(frozen=True)
class TopEventResolution:
    """Result of :func:`resolve_top_event`.

    Attributes:
        gate: The gate used as the overall goal, or ``None`` without gates.
        ambiguous: True when the choice fell back to the first stored gate
            because zero or several gates are not used as inputs (or there are
            no gates). Callers should surface this to the user.
        declared: True when the model's explicit ``top_event`` was used.
        candidates: Ids of gates not used as an input by another gate.
    """

    gate: Optional[Gate]
    ambiguous: bool = False
    declared: bool = False
    candidates: Tuple[str, ...] = ()


def bottom_up_order(model: FaultTreeModel) -> GateOrdering:
    """Order all gates so that referenced gates come first.

    Gates are visited in stored order and inputs in input order, so the result
    is deterministic. Inputs that are events or unknown ids are ignored. The
    walk uses an explicit stack; each gate is expanded at most once.

    Args:
        model: Snapshot to order. It may contain cycles.

    Returns:
        GateOrdering with every gate once and the skipped back-edges.
    """
    by_id: Dict[str, Gate] = {}
    for gate in model.gates:
        by_id.setdefault(gate.id, gate)

    color: Dict[str, int] = {gid: _WHITE for gid in by_id}
    ordered: List[Gate] = []
    back_edges: List[BackEdge] = []

    for root in by_id.values():
        if color[root.id] != _WHITE:
            continue
        color[root.id] = _GRAY
        stack = [(root, iter(root.inputs))]
        while stack:
            gate, pending = stack[-1]
            advanced = False
            for input_id in pending:
                child = by_id.get(input_id)
                if child is None or color[input_id] == _BLACK:
                    continue
                if color[input_id] == _GRAY:
                    LOGGER.warning(
                        "Cycle detected: gate '%s' -> '%s' ignored for ordering",
                        gate.name,
                        child.name,
                    )
                    back_edges.append(BackEdge(gate=gate.id, input=input_id))
                    continue
                color[input_id] = _GRAY
                stack.append((child, iter(child.inputs)))
                advanced = True
                break
            if not advanced:
                color[gate.id] = _BLACK
                ordered.append(gate)
                stack.pop()

    return GateOrdering(gates=tuple(ordered), back_edges=tuple(back_edges))


def find_sink_gates(model: FaultTreeModel) -> List[Gate]:
    """Return gates that no other gate uses as an input, in stored order."""
    gate_ids = {g.id for g in model.gates}
    referenced = {
        input_id
        for gate in model.gates
        for input_id in gate.inputs
        if input_id in gate_ids and input_id != gate.id
    }
    return [g for g in model.gates if g.id not in referenced]


def resolve_top_event(model: FaultTreeModel) -> TopEventResolution:
    """Pick the gate the simulator should treat as the overall goal.

    1. The declared ``top_event``, when it names an existing gate.
    2. Otherwise the single gate not used as an input by any other gate.
    3. Otherwise (no such gate, or several) the first gate in stored order,
       with ``ambiguous=True``. This fallback has no deeper rationale than
       being deterministic.
    """
    sinks = tuple(g.id for g in find_sink_gates(model))

    if model.top_event is not None:
        declared = model.gate(model.top_event)
        if declared is not None:
            return TopEventResolution(gate=declared, declared=True, candidates=sinks)
        LOGGER.warning("Declared top event '%s' is not a gate; resolving", model.top_event)

    if not model.gates:
        return TopEventResolution(gate=None, ambiguous=True)

    if len(sinks) == 1:
        return TopEventResolution(gate=model.gate(sinks[0]), candidates=sinks)

    fallback = model.gates[0]
    LOGGER.warning(
        "Top event is ambiguous (%d candidate gates); using first gate '%s'",
        len(sinks),
        fallback.name,
    )
    return TopEventResolution(gate=fallback, ambiguous=True, candidates=sinks)
