"""Single-owner editing session over fault tree snapshots."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from dftree.logging import get_logger
from dftree.model import mutations
from dftree.model.distributions import Distribution
from dftree.model.fault_tree import FaultTreeModel
from dftree.types.base import GateType, Position

LOGGER = get_logger(__name__)


class FaultTreeEditor:
    """Owns the current :class:`FaultTreeModel` of one editing session.

    Each command computes the next snapshot from the current one with the
    pure functions in :mod:`dftree.model.mutations` and then swaps it in, so
    an observer holding an earlier snapshot never sees a half-applied change.
    Every command returns the full updated snapshot.

    Example:
        ```python
        editor = FaultTreeEditor()
        pump = editor.add_event(name="Pump").events[-1]
        top = editor.add_gate("OR", name="System").gates[-1]
        model = editor.connect(pump.id, top.id)
        ```
    """

    def __init__(self, model: Optional[FaultTreeModel] = None) -> None:
        self._model = (
            mutations.normalize(model, trust_gates=True)
            if model is not None
            else FaultTreeModel()
        )

    @property
    def model(self) -> FaultTreeModel:
        """Current snapshot."""
        return self._model

    def load(self, model: FaultTreeModel) -> FaultTreeModel:
        """Replace the session model with a normalized copy of ``model``."""
        return self._apply(lambda _: mutations.normalize(model, trust_gates=True))

    def add_event(
        self,
        name: Optional[str] = None,
        failure: Optional[Distribution] = None,
        repair: Optional[Distribution] = None,
        description: Optional[str] = None,
        position: Optional[Position] = None,
    ) -> FaultTreeModel:
        return self._apply(
            lambda m: mutations.add_event(
                m,
                name=name,
                failure=failure,
                repair=repair,
                description=description,
                position=position,
            )[0]
        )

    def add_gate(
        self,
        gate_type: GateType | str,
        name: Optional[str] = None,
        is_failure_gate: bool = False,
        description: Optional[str] = None,
        position: Optional[Position] = None,
    ) -> FaultTreeModel:
        return self._apply(
            lambda m: mutations.add_gate(
                m,
                gate_type,
                name=name,
                is_failure_gate=is_failure_gate,
                description=description,
                position=position,
            )[0]
        )

    def connect(self, source_id: str, target_id: str) -> FaultTreeModel:
        return self._apply(lambda m: mutations.connect(m, source_id, target_id))

    def delete_connection(self, connection_id: str) -> FaultTreeModel:
        return self._apply(lambda m: mutations.delete_connection(m, connection_id))

    def delete_element(self, element_id: str) -> FaultTreeModel:
        return self._apply(lambda m: mutations.delete_element(m, element_id))

    def reorganize(self) -> FaultTreeModel:
        return self._apply(mutations.reorganize)

    def move_element(self, element_id: str, x: float, y: float) -> FaultTreeModel:
        return self._apply(lambda m: mutations.move_element(m, element_id, x, y))

    def update_event(self, event_id: str, **changes: Any) -> FaultTreeModel:
        return self._apply(lambda m: mutations.update_event(m, event_id, **changes))

    def update_gate(self, gate_id: str, **changes: Any) -> FaultTreeModel:
        return self._apply(lambda m: mutations.update_gate(m, gate_id, **changes))

    def set_secondary_inputs(self, gate_id: str, input_ids: Iterable[str]) -> FaultTreeModel:
        ids = tuple(input_ids)
        return self._apply(lambda m: mutations.set_secondary_inputs(m, gate_id, ids))

    def set_top_event(self, gate_id: Optional[str]) -> FaultTreeModel:
        return self._apply(lambda m: mutations.set_top_event(m, gate_id))

    def _apply(self, command: Callable[[FaultTreeModel], FaultTreeModel]) -> FaultTreeModel:
        # A raising command leaves the current snapshot in place
        next_model = command(self._model)
        if LOGGER.isEnabledFor(logging.DEBUG):
            for problem in mutations.check_invariants(next_model):
                LOGGER.debug("Invariant violation after edit: %s", problem)
        self._model = next_model
        return next_model
