"""Invariant-preserving mutations over :class:`FaultTreeModel` snapshots.

Every function takes a snapshot and returns a new one; the input snapshot is
never modified. Operations naming an id that does not exist return the input
snapshot unchanged.

All structural changes end in :func:`normalize`, which rebuilds gate inputs
from the connection list in the same step, so inputs and connections cannot
diverge:

- connections whose endpoints are missing, or whose target is not a gate, are
  dropped;
- a gate's inputs are its previous inputs that still have a connection, in
  their previous order, followed by new connection sources in connection order;
- secondary inputs only keep existing ids;
- ``top_event`` names an existing gate and only that gate has
  ``is_top_event`` set.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from dftree.config import LAYOUT_CONFIG, LayoutConfig
from dftree.logging import get_logger
from dftree.model.distributions import Distribution, distribution_from_dict
from dftree.model.fault_tree import (
    BaseEvent,
    Connection,
    FaultTreeModel,
    Gate,
    default_failure,
)
from dftree.types.base import GateType, Position
from dftree.utils.ids import new_element_id

LOGGER = get_logger(__name__)

_EVENT_FIELDS = frozenset({"name", "description", "failure", "repair", "position"})
_GATE_FIELDS = frozenset(
    {"name", "description", "gate_type", "is_failure_gate", "position"}
)
_OWNED_FIELDS = frozenset(
    {"id", "inputs", "secondary_inputs", "is_top_event", "top_event"}
)


def normalize(model: FaultTreeModel, trust_gates: bool = False) -> FaultTreeModel:
    """Return a snapshot that satisfies every model invariant.

    Args:
        model: Possibly inconsistent snapshot (e.g. freshly loaded from a file).
        trust_gates: If True, gate-side data fills in what the model lacks:
            gate inputs without a matching connection get a new connection
            instead of being dropped, and when ``top_event`` is unset the
            first gate flagged ``is_top_event`` becomes the top event. Used
            when loading external data.

    Returns:
        Consistent snapshot. Gate order, event order and connection order are
        preserved.
    """
    events: List[BaseEvent] = []
    gates: List[Gate] = []
    seen: Set[str] = set()
    for event in model.events:
        if event.id in seen:
            LOGGER.warning("Dropping event with duplicate id '%s'", event.id)
            continue
        seen.add(event.id)
        events.append(event)
    for gate in model.gates:
        if gate.id in seen:
            LOGGER.warning("Dropping gate with duplicate id '%s'", gate.id)
            continue
        seen.add(gate.id)
        gates.append(gate)

    gate_ids = {g.id for g in gates}
    connections: List[Connection] = []
    edges: Set[Tuple[str, str]] = set()
    for conn in model.connections:
        if conn.source not in seen or conn.target not in gate_ids:
            LOGGER.debug("Dropping dangling connection '%s'", conn.id)
            continue
        if (conn.source, conn.target) in edges:
            LOGGER.debug("Dropping duplicate connection '%s'", conn.id)
            continue
        edges.add((conn.source, conn.target))
        connections.append(conn)

    if trust_gates:
        for gate in gates:
            for source in gate.inputs:
                if source in seen and (source, gate.id) not in edges:
                    edges.add((source, gate.id))
                    connections.append(
                        Connection(id=new_element_id("conn"), source=source, target=gate.id)
                    )

    sources_by_target: Dict[str, List[str]] = {gid: [] for gid in gate_ids}
    for conn in connections:
        sources_by_target[conn.target].append(conn.source)

    top_event = model.top_event if model.top_event in gate_ids else None
    if trust_gates and top_event is None and model.top_event is None:
        flagged = [g.id for g in gates if g.is_top_event]
        if flagged:
            top_event = flagged[0]

    rebuilt: List[Gate] = []
    for gate in gates:
        connected = sources_by_target[gate.id]
        connected_set = set(connected)
        inputs = [i for i in dict.fromkeys(gate.inputs) if i in connected_set]
        kept = set(inputs)
        inputs.extend(s for s in connected if s not in kept)
        secondary: Tuple[str, ...] = ()
        if gate.gate_type.has_secondary_inputs:
            secondary = tuple(
                s for s in dict.fromkeys(gate.secondary_inputs) if s in seen and s != gate.id
            )
        rebuilt.append(
            _replace_if_changed(
                gate,
                inputs=tuple(inputs),
                secondary_inputs=secondary,
                is_top_event=gate.id == top_event,
            )
        )

    return FaultTreeModel(
        events=tuple(events),
        gates=tuple(rebuilt),
        connections=tuple(connections),
        top_event=top_event,
    )


def check_invariants(model: FaultTreeModel) -> List[str]:
    """Return a description of every invariant violation in ``model``.

    An empty list means the snapshot is consistent.
    """
    problems: List[str] = []
    event_ids = [e.id for e in model.events]
    gate_ids = [g.id for g in model.gates]
    all_ids = event_ids + gate_ids
    if len(set(all_ids)) != len(all_ids):
        problems.append("element ids are not unique across events and gates")
    known = set(all_ids)
    gate_set = set(gate_ids)

    for conn in model.connections:
        if conn.source not in known:
            problems.append(f"connection '{conn.id}' has unknown source '{conn.source}'")
        if conn.target not in gate_set:
            problems.append(f"connection '{conn.id}' targets non-gate '{conn.target}'")

    for gate in model.gates:
        expected = {c.source for c in model.connections if c.target == gate.id}
        if set(gate.inputs) != expected or len(gate.inputs) != len(set(gate.inputs)):
            problems.append(
                f"gate '{gate.id}' inputs {list(gate.inputs)} do not match "
                f"connections {sorted(expected)}"
            )
        unknown = [s for s in gate.secondary_inputs if s not in known]
        if unknown:
            problems.append(f"gate '{gate.id}' has unknown secondary inputs {unknown}")
        if gate.is_top_event != (gate.id == model.top_event):
            problems.append(f"gate '{gate.id}' top-event flag disagrees with model")

    if model.top_event is not None and model.top_event not in gate_set:
        problems.append(f"top event '{model.top_event}' is not a gate")
    return problems


def add_event(
    model: FaultTreeModel,
    name: Optional[str] = None,
    failure: Optional[Distribution] = None,
    repair: Optional[Distribution] = None,
    description: Optional[str] = None,
    position: Optional[Position] = None,
) -> Tuple[FaultTreeModel, BaseEvent]:
    """Add a basic event with a fresh id.

    Args:
        model: Current snapshot.
        name: Display name. Defaults to ``"Basic Event <n>"``.
        failure: Failure distribution. Defaults to exponential with the
            configured default rate.
        repair: Optional repair distribution.
        description: Optional free text.
        position: Diagram position. Defaults to the layout origin.

    Returns:
        The new snapshot and the created event.
    """
    event = BaseEvent(
        id=new_element_id("event"),
        name=name if name is not None else f"Basic Event {len(model.events) + 1}",
        failure=failure or default_failure(),
        repair=repair,
        description=description,
        position=position or (LAYOUT_CONFIG.origin_x, LAYOUT_CONFIG.origin_y),
    )
    LOGGER.debug("Added event '%s' (%s)", event.name, event.id)
    return replace(model, events=model.events + (event,)), event


def add_gate(
    model: FaultTreeModel,
    gate_type: GateType | str,
    name: Optional[str] = None,
    is_failure_gate: bool = False,
    description: Optional[str] = None,
    position: Optional[Position] = None,
) -> Tuple[FaultTreeModel, Gate]:
    """Add a gate with a fresh id and no inputs.

    Args:
        model: Current snapshot.
        gate_type: Gate kind or its name (case-insensitive).
        name: Display name. Defaults to ``"<TYPE> Gate <n>"``.
        is_failure_gate: Failure-gate flag forwarded to the simulator.
        description: Optional free text.
        position: Diagram position. Defaults to the layout origin.

    Returns:
        The new snapshot and the created gate.

    Raises:
        ValueError: If ``gate_type`` is not a known gate kind.
    """
    kind = GateType.from_string(gate_type)
    gate = Gate(
        id=new_element_id("gate"),
        name=name if name is not None else f"{kind.value} Gate {len(model.gates) + 1}",
        gate_type=kind,
        is_failure_gate=is_failure_gate,
        description=description,
        position=position or (LAYOUT_CONFIG.origin_x, LAYOUT_CONFIG.origin_y),
    )
    LOGGER.debug("Added %s gate '%s' (%s)", kind.value, gate.name, gate.id)
    return replace(model, gates=model.gates + (gate,)), gate


def connect(model: FaultTreeModel, source_id: str, target_id: str) -> FaultTreeModel:
    """Connect ``source_id`` as a primary input of gate ``target_id``.

    No-op when either id is unknown, when the target is not a gate, or when
    the source is already an input of the target.
    """
    target = model.gate(target_id)
    if source_id not in model or target is None:
        LOGGER.debug("Ignoring connect %s -> %s: unknown endpoint", source_id, target_id)
        return model
    if source_id in target.inputs:
        LOGGER.debug("Ignoring duplicate connection %s -> %s", source_id, target_id)
        return model
    conn = Connection(id=new_element_id("conn"), source=source_id, target=target_id)
    gates = tuple(
        replace(g, inputs=g.inputs + (source_id,)) if g.id == target_id else g
        for g in model.gates
    )
    return normalize(
        replace(model, gates=gates, connections=model.connections + (conn,))
    )


def delete_connection(model: FaultTreeModel, connection_id: str) -> FaultTreeModel:
    """Remove a connection and the matching gate input. Unknown id: no-op."""
    conn = model.connection(connection_id)
    if conn is None:
        LOGGER.debug("Ignoring delete of unknown connection '%s'", connection_id)
        return model
    return normalize(
        replace(
            model,
            connections=tuple(c for c in model.connections if c.id != connection_id),
        )
    )


def reachable_from(model: FaultTreeModel, gate_id: str) -> FrozenSet[str]:
    """Return every id transitively referenced through ``gate_id``'s inputs.

    Gate-to-gate edges are followed with a visited set, so cycles end the
    traversal along the revisited edge. The starting gate is only included
    when a cycle leads back to it. Ids that do not exist are skipped.
    """
    start = model.gate(gate_id)
    if start is None:
        return frozenset()
    reachable: Set[str] = set()
    visited = {gate_id}
    stack = [start]
    while stack:
        gate = stack.pop()
        for input_id in gate.inputs:
            if input_id not in model:
                continue
            reachable.add(input_id)
            child = model.gate(input_id)
            if child is not None and input_id not in visited:
                visited.add(input_id)
                stack.append(child)
    return frozenset(reachable)


def delete_element(model: FaultTreeModel, element_id: str) -> FaultTreeModel:
    """Delete an event, or a gate together with the sub-tree it roots.

    - Unknown id: the input snapshot is returned unchanged.
    - Event: the event and every connection touching it are removed.
    - Gate: the gate, everything in :func:`reachable_from`, and every
      connection touching any removed id are removed. Elements not reachable
      from the gate are kept.
    """
    if model.event(element_id) is not None:
        doomed: Set[str] = {element_id}
    elif model.gate(element_id) is not None:
        doomed = {element_id} | set(reachable_from(model, element_id))
    else:
        LOGGER.debug("Ignoring delete of unknown element '%s'", element_id)
        return model

    LOGGER.debug("Deleting %d element(s) rooted at '%s'", len(doomed), element_id)
    return normalize(
        FaultTreeModel(
            events=tuple(e for e in model.events if e.id not in doomed),
            gates=tuple(g for g in model.gates if g.id not in doomed),
            connections=tuple(
                c
                for c in model.connections
                if c.source not in doomed and c.target not in doomed
            ),
            top_event=None if model.top_event in doomed else model.top_event,
        )
    )


def reorganize(
    model: FaultTreeModel, layout: Optional[LayoutConfig] = None
) -> FaultTreeModel:
    """Place all events then all gates on a centred grid.

    ``cols = ceil(sqrt(n))`` and ``rows = ceil(n / cols)``; only positions
    change.
    """
    layout = layout or LAYOUT_CONFIG
    n = len(model.events) + len(model.gates)
    if n == 0:
        return model
    cols = math.ceil(math.sqrt(n))
    rows = math.ceil(n / cols)

    def cell(index: int) -> Position:
        row, col = divmod(index, cols)
        x = layout.origin_x + (col - (cols - 1) / 2) * layout.spacing_x
        y = layout.origin_y + (row - (rows - 1) / 2) * layout.spacing_y
        return (x, y)

    events = tuple(
        replace(e, position=cell(i)) for i, e in enumerate(model.events)
    )
    offset = len(model.events)
    gates = tuple(
        replace(g, position=cell(offset + i)) for i, g in enumerate(model.gates)
    )
    return replace(model, events=events, gates=gates)


def move_element(model: FaultTreeModel, element_id: str, x: float, y: float) -> FaultTreeModel:
    """Set the diagram position of an event or gate. Unknown id: no-op."""
    if element_id not in model:
        return model
    return _update(model, element_id, {"position": (float(x), float(y))})


def update_event(model: FaultTreeModel, event_id: str, **changes: Any) -> FaultTreeModel:
    """Edit name, description, distributions or position of an event.

    Distributions may be given as objects or in their dict form.

    Raises:
        ValueError: If a field is unknown or owned by another operation.
    """
    _check_fields(changes, _EVENT_FIELDS)
    if model.event(event_id) is None:
        LOGGER.debug("Ignoring update of unknown event '%s'", event_id)
        return model
    for key in ("failure", "repair"):
        if isinstance(changes.get(key), dict):
            changes[key] = distribution_from_dict(changes[key])
    if "failure" in changes and changes["failure"] is None:
        raise ValueError("A basic event always has a failure distribution")
    return _update(model, event_id, changes)


def update_gate(model: FaultTreeModel, gate_id: str, **changes: Any) -> FaultTreeModel:
    """Edit name, description, kind, failure-gate flag or position of a gate.

    Changing the kind to one without secondary inputs clears them.

    Raises:
        ValueError: If a field is unknown or owned by another operation.
    """
    _check_fields(changes, _GATE_FIELDS)
    if model.gate(gate_id) is None:
        LOGGER.debug("Ignoring update of unknown gate '%s'", gate_id)
        return model
    if "gate_type" in changes:
        changes["gate_type"] = GateType.from_string(changes["gate_type"])
    return normalize(_update(model, gate_id, changes))


def set_secondary_inputs(
    model: FaultTreeModel, gate_id: str, input_ids: Iterable[str]
) -> FaultTreeModel:
    """Replace the secondary inputs of a SPARE or FDEP gate.

    Unknown ids and the gate itself are dropped. Other gate kinds and unknown
    gates are left unchanged.
    """
    gate = model.gate(gate_id)
    if gate is None:
        LOGGER.debug("Ignoring secondary inputs for unknown gate '%s'", gate_id)
        return model
    if not gate.gate_type.has_secondary_inputs:
        LOGGER.debug(
            "Ignoring secondary inputs for %s gate '%s'", gate.gate_type.value, gate_id
        )
        return model
    return normalize(
        _update(model, gate_id, {"secondary_inputs": tuple(input_ids)})
    )


def set_top_event(model: FaultTreeModel, gate_id: Optional[str]) -> FaultTreeModel:
    """Designate ``gate_id`` as the top event, or clear it with ``None``.

    Ids that are not gates leave the snapshot unchanged.
    """
    if gate_id is not None and model.gate(gate_id) is None:
        LOGGER.debug("Ignoring top event '%s': not a gate", gate_id)
        return model
    return normalize(replace(model, top_event=gate_id))


def _check_fields(changes: Dict[str, Any], allowed: FrozenSet[str]) -> None:
    owned = sorted(set(changes) & _OWNED_FIELDS)
    if owned:
        raise ValueError(
            f"Field(s) {owned} are managed by connect/delete/set_top_event "
            "and cannot be updated directly"
        )
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValueError(f"Unknown field(s) {unknown}; allowed: {sorted(allowed)}")


def _update(model: FaultTreeModel, element_id: str, changes: Dict[str, Any]) -> FaultTreeModel:
    if model.event(element_id) is not None:
        events = tuple(
            replace(e, **changes) if e.id == element_id else e for e in model.events
        )
        return replace(model, events=events)
    gates = tuple(
        replace(g, **changes) if g.id == element_id else g for g in model.gates
    )
    return replace(model, gates=gates)


def _replace_if_changed(gate: Gate, **changes: Any) -> Gate:
    if all(getattr(gate, key) == value for key, value in changes.items()):
        return gate
    return replace(gate, **changes)
