"""Fault tree snapshot model: BaseEvent, Gate, Connection and FaultTreeModel.

A :class:`FaultTreeModel` is an immutable snapshot. Mutation functions in
:mod:`dftree.model.mutations` compute a new snapshot from a stable prior one
and never modify an existing snapshot in place.

Gate inputs and connections describe the same edge set twice. Both are stored
because the simulator export reads ordered gate inputs while the editing
surface draws connections; every mutation rebuilds both in one step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from dftree.config import EXPORT_CONFIG
from dftree.model.distributions import (
    Distribution,
    Exponential,
    distribution_from_dict,
)
from dftree.types.base import GateType, Position


def default_failure() -> Distribution:
    """Exponential failure at the configured default rate."""
    return Exponential(rate=EXPORT_CONFIG.default_failure_rate)


@dataclass(frozen=True)
class BaseEvent:
    """Leaf failure event.

    Attributes:
        id: Unique identifier, never shared with a gate.
        name: Display name; sanitized for export.
        failure: Failure distribution (exponential by default).
        repair: Optional repair distribution.
        description: Optional free text.
        position: Diagram position ``(x, y)``.
    """

    id: str
    name: str
    failure: Distribution = field(default_factory=default_failure)
    repair: Optional[Distribution] = None
    description: Optional[str] = None
    position: Position = (0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "basic-event",
            "name": self.name,
            "description": self.description,
            "position": {"x": self.position[0], "y": self.position[1]},
            "failure": self.failure.to_dict(),
            "repair": self.repair.to_dict() if self.repair is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseEvent":
        failure = distribution_from_dict(data.get("failure"))
        if failure is None and data.get("failure_rate") is not None:
            failure = Exponential(rate=float(data["failure_rate"]))
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            failure=failure if failure is not None else default_failure(),
            repair=distribution_from_dict(data.get("repair")),
            description=data.get("description"),
            position=_position_from(data.get("position")),
        )


@dataclass(frozen=True)
class Gate:
    """Logical gate combining events and other gates.

    Attributes:
        id: Unique identifier, never shared with an event.
        name: Display name; sanitized for export.
        gate_type: Gate kind.
        inputs: Ordered primary input ids. Mirrors the connections that
            target this gate.
        secondary_inputs: Spare (SPARE) or dependent (FDEP) input ids.
        is_top_event: True for the designated top event.
        is_failure_gate: Flag forwarded to the simulator.
        description: Optional free text.
        position: Diagram position ``(x, y)``.
    """

    id: str
    name: str
    gate_type: GateType = GateType.OR
    inputs: Tuple[str, ...] = ()
    secondary_inputs: Tuple[str, ...] = ()
    is_top_event: bool = False
    is_failure_gate: bool = False
    description: Optional[str] = None
    position: Position = (0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "gate",
            "gate_type": self.gate_type.value,
            "name": self.name,
            "description": self.description,
            "position": {"x": self.position[0], "y": self.position[1]},
            "inputs": list(self.inputs),
            "secondary_inputs": list(self.secondary_inputs),
            "is_top_event": self.is_top_event,
            "is_failure_gate": self.is_failure_gate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Gate":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            gate_type=GateType.from_string(data.get("gate_type", "OR")),
            inputs=tuple(str(i) for i in data.get("inputs") or ()),
            secondary_inputs=tuple(str(i) for i in data.get("secondary_inputs") or ()),
            is_top_event=bool(data.get("is_top_event", False)),
            is_failure_gate=bool(data.get("is_failure_gate", False)),
            description=data.get("description"),
            position=_position_from(data.get("position")),
        )


@dataclass(frozen=True)
class Connection:
    """Directed edge from an event or gate (``source``) into a gate (``target``)."""

    id: str
    source: str
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connection":
        return cls(id=str(data["id"]), source=str(data["source"]), target=str(data["target"]))


Element = Union[BaseEvent, Gate]


@dataclass(frozen=True)
class FaultTreeModel:
    """Immutable snapshot of a fault tree.

    Attributes:
        events: Basic events in insertion order.
        gates: Gates in insertion order. The export order of unrelated gates
            follows this order.
        connections: Connections in insertion order.
        top_event: Id of the designated top event gate, if any.
    """

    events: Tuple[BaseEvent, ...] = ()
    gates: Tuple[Gate, ...] = ()
    connections: Tuple[Connection, ...] = ()
    top_event: Optional[str] = None

    @cached_property
    def _events_by_id(self) -> Dict[str, BaseEvent]:
        return {e.id: e for e in self.events}

    @cached_property
    def _gates_by_id(self) -> Dict[str, Gate]:
        return {g.id: g for g in self.gates}

    def event(self, element_id: str) -> Optional[BaseEvent]:
        return self._events_by_id.get(element_id)

    def gate(self, element_id: str) -> Optional[Gate]:
        return self._gates_by_id.get(element_id)

    def element(self, element_id: str) -> Optional[Element]:
        """Return the event or gate with ``element_id``, or ``None``."""
        return self._events_by_id.get(element_id) or self._gates_by_id.get(element_id)

    def connection(self, connection_id: str) -> Optional[Connection]:
        for conn in self.connections:
            if conn.id == connection_id:
                return conn
        return None

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._events_by_id or element_id in self._gates_by_id

    def elements(self) -> Iterator[Element]:
        """Yield events first, then gates, each in stored order."""
        yield from self.events
        yield from self.gates

    def display_names(self) -> Dict[str, str]:
        """Map element id to display name for all events and gates."""
        return {el.id: el.name for el in self.elements()}

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "events": [e.to_dict() for e in self.events],
            "gates": [g.to_dict() for g in self.gates],
            "connections": [c.to_dict() for c in self.connections],
            "top_event": self.top_event,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FaultTreeModel":
        """Rebuild a snapshot from :meth:`to_dict` output as-is.

        No consistency repair happens here; pass the result through
        :func:`dftree.model.mutations.normalize` for untrusted input.
        """
        return cls(
            events=tuple(BaseEvent.from_dict(e) for e in data.get("events") or ()),
            gates=tuple(Gate.from_dict(g) for g in data.get("gates") or ()),
            connections=tuple(
                Connection.from_dict(c) for c in data.get("connections") or ()
            ),
            top_event=data.get("top_event"),
        )


def _position_from(value: Any) -> Position:
    if value is None:
        return (0.0, 0.0)
    if isinstance(value, dict):
        return (float(value.get("x", 0.0)), float(value.get("y", 0.0)))
    x, y = value
    return (float(x), float(y))
