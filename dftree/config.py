"""Configuration classes for dftree components."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from dftree.types.base import StopRule

if TYPE_CHECKING:
    from dftree.model.fault_tree import FaultTreeModel


@dataclass
class LayoutConfig:
    """Grid layout used by ``reorganize``."""

    # Horizontal distance between grid columns
    spacing_x: float = 200.0

    # Vertical distance between grid rows
    spacing_y: float = 150.0

    # Centre of the grid on the canvas
    origin_x: float = 400.0
    origin_y: float = 300.0


@dataclass
class ConvergenceConfig:
    """Thresholds for the four convergence criteria."""

    # Relative precision: CI width over mean estimate
    max_relative_error: float = 0.25

    # Mean estimates at or below this use the absolute width fallback
    relative_mean_floor: float = 1e-6

    # Absolute CI width accepted near zero probability
    absolute_width_fallback: float = 1e-5

    # Minimum n * p * (1 - p)
    min_effective_sample_size: float = 10.0

    # Trailing window for the stability criterion
    stability_window: int = 10

    # Coefficient of variation must be strictly below this
    max_coefficient_of_variation: float = 0.10

    # How many of the three support criteria PRIMARY_AND_SUPPORT requires
    min_support_criteria: int = 2

    stop_rule: StopRule = StopRule.PRIMARY

    # Iteration ceiling used when the caller does not supply one
    default_max_iterations: int = 50000


@dataclass
class ExportConfig:
    """Settings for the simulator script export."""

    # Prefix for sanitized names that do not start with a letter
    name_prefix: str = "E_"

    # Failure rate given to new basic events (per hour)
    default_failure_rate: float = 1e-3

    # Mission time in hours
    default_mission_time: float = 1000.0


@dataclass
class SimulationSettings:
    """Parameters of one external simulator run.

    Attributes:
        library_folder: Folder of the simulator library on disk.
        model_name: Name of the generated model script (``.m`` optional).
        iterations: Maximum number of Monte Carlo iterations.
        confidence: Confidence level of the stop criterion, in (0, 1).
        stop_criteria_on: Whether the simulator may stop early on convergence.
        mission_time: Mission time in hours.
    """

    library_folder: str = ""
    model_name: str = ""
    iterations: int = 10000
    confidence: float = 0.95
    stop_criteria_on: bool = True
    mission_time: float = 1000.0

    @property
    def model_stem(self) -> str:
        """Model name without the ``.m`` extension."""
        name = self.model_name.strip()
        return name[:-2] if name.endswith(".m") else name

    def validate(self, model: Optional["FaultTreeModel"] = None) -> Optional[str]:
        """Return the first problem with these settings, or ``None`` if valid.

        Args:
            model: Fault tree about to be exported; an empty tree is rejected.
        """
        if not self.library_folder.strip():
            return "Select a valid simulator library folder"
        if not self.model_name.strip():
            return "Enter a valid model name"
        if self.iterations <= 0:
            return "The number of iterations must be greater than 0"
        if not 0 < self.confidence < 1:
            return "The confidence level must be between 0 and 1"
        if self.mission_time <= 0:
            return "The mission time must be greater than 0"
        if model is not None and not model.events and not model.gates:
            return "The fault tree model is empty"
        return None

    @staticmethod
    def default_model_name(now: Optional[datetime] = None) -> str:
        """Return a timestamped model script name.

        Example:
            ``initFaultTree_18102026_140509.m``
        """
        now = now or datetime.now()
        return f"initFaultTree_{now:%d%m%Y_%H%M%S}.m"


# Global configuration instances
LAYOUT_CONFIG = LayoutConfig()
CONVERGENCE_CONFIG = ConvergenceConfig()
EXPORT_CONFIG = ExportConfig()
