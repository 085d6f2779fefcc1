"""Per-component reliability figures of one finished simulation run.

The simulator records, for every basic event and gate, the time of failure in
each iteration. ``inf`` marks an iteration in which the component never
failed. From that array:

- ``n_failures`` counts the finite entries,
- ``reliability = (iterations - n_failures) / iterations``,
- ``unreliability = n_failures / iterations``.

A run with zero iterations reports ``0.0`` for both ratios. Entries that are
NaN, ``null`` or not numbers are not counted as failures; the strings
``"Inf"``/``"inf"`` parse as never failed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from dftree.logging import get_logger
from dftree.model.fault_tree import FaultTreeModel
from dftree.utils.numeric import finite_or, safe_div

LOGGER = get_logger(__name__)


def _failure_times(values: Optional[Iterable[Any]]) -> Tuple[float, ...]:
    times: List[float] = []
    for value in values or ():
        try:
            times.append(float(value))
        except (TypeError, ValueError):
            times.append(math.inf)
    return tuple(times)


@dataclass(frozen=True)
class ComponentResult:
    """Simulation outcome of one event or gate.

    Attributes:
        component_id: Id of the element in the model.
        component_name: Display name used by the simulator.
        component_type: ``"event"`` or ``"gate"``.
        time_of_failure: Failure time per iteration, ``inf`` when the
            component survived the mission.
        total_iterations: Iterations of the run. Defaults to the length of
            ``time_of_failure``.
    """

    component_id: str
    component_name: str
    component_type: str
    time_of_failure: Tuple[float, ...] = ()
    total_iterations: Optional[int] = None

    @property
    def iterations(self) -> int:
        if self.total_iterations is not None:
            return max(int(self.total_iterations), 0)
        return len(self.time_of_failure)

    @property
    def n_failures(self) -> int:
        return sum(1 for t in self.time_of_failure if math.isfinite(t))

    @property
    def reliability(self) -> float:
        return safe_div(self.iterations - self.n_failures, self.iterations)

    @property
    def unreliability(self) -> float:
        return safe_div(self.n_failures, self.iterations)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        component_id: Optional[str] = None,
        component_name: Optional[str] = None,
        component_type: Optional[str] = None,
    ) -> "ComponentResult":
        """Build a result from the simulator's export of one component.

        Accepts ``timeOfFailureArray``/``time_of_failure`` and
        ``totalIterations``/``total_iterations``. Keyword arguments override
        the identity fields of ``data``.
        """
        times = data.get("time_of_failure", data.get("timeOfFailureArray"))
        total = data.get("total_iterations", data.get("totalIterations"))
        return cls(
            component_id=str(component_id or data.get("component_id", "")),
            component_name=str(component_name or data.get("component_name", "")),
            component_type=str(component_type or data.get("component_type", "event")),
            time_of_failure=_failure_times(times),
            total_iterations=None if total is None else int(finite_or(total)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_id": self.component_id,
            "component_name": self.component_name,
            "component_type": self.component_type,
            "n_failures": self.n_failures,
            "total_iterations": self.iterations,
            "reliability": self.reliability,
            "unreliability": self.unreliability,
        }


@dataclass(frozen=True)
class OverallStatistics:
    """Summary across all components of a run."""

    total_components: int
    average_reliability: float
    most_reliable: Tuple[str, float]
    least_reliable: Tuple[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_components": self.total_components,
            "average_reliability": self.average_reliability,
            "most_reliable": {
                "name": self.most_reliable[0],
                "reliability": self.most_reliable[1],
            },
            "least_reliable": {
                "name": self.least_reliable[0],
                "reliability": self.least_reliable[1],
            },
        }


@dataclass
class SimulationResults:
    """Component results of one simulation run, keyed by element id."""

    mission_time: float = 0.0
    total_iterations: int = 0
    components: Dict[str, ComponentResult] = field(default_factory=dict)

    def add(self, result: ComponentResult) -> None:
        self.components[result.component_id] = result

    def component(self, component_id: str) -> Optional[ComponentResult]:
        """Return the result for ``component_id``, or ``None``."""
        return self.components.get(component_id)

    def overall_statistics(self) -> Optional[OverallStatistics]:
        """Average reliability plus the most and least reliable component.

        Ties keep the model order: the first of equally reliable components
        is reported as most reliable, the last as least reliable. Returns
        ``None`` when there are no components.
        """
        results = list(self.components.values())
        if not results:
            return None
        ranked = sorted(results, key=lambda r: r.reliability, reverse=True)
        average = safe_div(sum(r.reliability for r in results), len(results))
        return OverallStatistics(
            total_components=len(results),
            average_reliability=average,
            most_reliable=(ranked[0].component_name, ranked[0].reliability),
            least_reliable=(ranked[-1].component_name, ranked[-1].reliability),
        )

    @classmethod
    def from_model(
        cls,
        model: FaultTreeModel,
        components: Mapping[str, Mapping[str, Any]],
        mission_time: float = 0.0,
        total_iterations: int = 0,
    ) -> "SimulationResults":
        """Match simulator output keyed by component name to ``model``.

        Events come first, then gates, each in stored order. Elements the
        simulator reported nothing for are skipped with a warning. A
        component without its own iteration count uses ``total_iterations``.
        """
        results = cls(mission_time=mission_time, total_iterations=total_iterations)
        elements = [(e, "event") for e in model.events] + [(g, "gate") for g in model.gates]
        for element, kind in elements:
            data = components.get(element.name)
            if data is None:
                LOGGER.warning("No simulation results for %s '%s'", kind, element.name)
                continue
            result = ComponentResult.from_dict(
                data,
                component_id=element.id,
                component_name=element.name,
                component_type=kind,
            )
            if result.total_iterations is None and total_iterations > 0:
                result = replace(result, total_iterations=total_iterations)
            results.add(result)
            LOGGER.debug(
                "Component %s: R=%.1f%% failures=%d",
                element.name,
                result.reliability * 100.0,
                result.n_failures,
            )
        return results

    def to_dict(self) -> Dict[str, Any]:
        stats = self.overall_statistics()
        return {
            "mission_time": self.mission_time,
            "total_iterations": self.total_iterations,
            "components": [r.to_dict() for r in self.components.values()],
            "statistics": stats.to_dict() if stats is not None else None,
        }
