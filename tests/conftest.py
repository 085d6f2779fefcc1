"""Shared fixtures: small fault trees with fixed ids."""

from __future__ import annotations

import pytest

from dftree.model.distributions import Exponential, Weibull
from dftree.model.fault_tree import BaseEvent, FaultTreeModel, Gate
from dftree.model.mutations import normalize
from dftree.types.base import GateType


def build_model(events, gates, top_event=None) -> FaultTreeModel:
    return normalize(
        FaultTreeModel(events=tuple(events), gates=tuple(gates), top_event=top_event),
        trust_gates=True,
    )


@pytest.fixture
def make_tree():
    """Build a consistent snapshot from gate input lists (connections derived)."""
    return build_model


@pytest.fixture
def simple_tree() -> FaultTreeModel:
    """TOP(OR) <- [SUB(AND) <- [e1, e2], e3]."""
    return build_model(
        events=[
            BaseEvent(id="e1", name="Pump"),
            BaseEvent(id="e2", name="Valve"),
            BaseEvent(id="e3", name="Sensor"),
        ],
        gates=[
            Gate(id="top", name="Top", gate_type=GateType.OR, inputs=("sub", "e3")),
            Gate(id="sub", name="Sub", gate_type=GateType.AND, inputs=("e1", "e2")),
        ],
    )


@pytest.fixture
def cyclic_tree() -> FaultTreeModel:
    """Two gates feeding each other, each with one event."""
    return build_model(
        events=[BaseEvent(id="a", name="A"), BaseEvent(id="b", name="B")],
        gates=[
            Gate(id="g1", name="G1", gate_type=GateType.AND, inputs=("g2", "a")),
            Gate(id="g2", name="G2", gate_type=GateType.OR, inputs=("g1", "b")),
        ],
    )


@pytest.fixture
def export_tree() -> FaultTreeModel:
    """Top stored before its sub-gate, with a Weibull event and a repair."""
    return build_model(
        events=[
            BaseEvent(id="e1", name="Pump", failure=Exponential(rate=0.001)),
            BaseEvent(
                id="e2",
                name="Valve 2",
                failure=Weibull(k=1.5, lam=2000.0, mu=0.0),
                repair=Exponential(rate=0.1),
            ),
        ],
        gates=[
            Gate(id="top", name="Top", gate_type=GateType.OR, inputs=("sub",)),
            Gate(id="sub", name="Sub System", gate_type=GateType.AND, inputs=("e1", "e2")),
        ],
    )
