"""Enumerations shared by the model, exporter and convergence engine."""

from __future__ import annotations

from enum import Enum
from typing import Tuple, Union

#: 2-D diagram position.
Position = Tuple[float, float]


class GateType(str, Enum):
    """Logical gate kinds understood by the dynamic fault tree simulator."""

    AND = "AND"
    OR = "OR"
    #: Priority AND: inputs must fail in order.
    PAND = "PAND"
    #: Spare gate: primary inputs backed by secondary (spare) inputs.
    SPARE = "SPARE"
    #: Sequence enforcing gate.
    SEQ = "SEQ"
    #: Functional dependency: a trigger forces its dependents to fail.
    FDEP = "FDEP"

    @property
    def has_secondary_inputs(self) -> bool:
        """True for the kinds that carry a secondary input list."""
        return self in (GateType.SPARE, GateType.FDEP)

    @classmethod
    def from_string(cls, value: Union[str, "GateType"]) -> "GateType":
        """Parse a case-insensitive gate kind name.

        Raises:
            ValueError: If the string does not name a gate kind.
        """
        if isinstance(value, GateType):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = ", ".join(e.name for e in cls)
            raise ValueError(
                f"Invalid gate type '{value}'. Valid values are: {valid}"
            ) from None


class StopRule(str, Enum):
    """Rule deciding when a simulation is reported as converged."""

    #: CI width within the accepted error (primary criterion only).
    PRIMARY = "primary"
    #: Primary criterion plus at least two of the three support criteria.
    PRIMARY_AND_SUPPORT = "primary-and-support"

    @classmethod
    def from_string(cls, value: Union[str, "StopRule"]) -> "StopRule":
        """Parse ``primary`` / ``primary-and-support`` (underscores accepted).

        Raises:
            ValueError: If the string does not name a stop rule.
        """
        if isinstance(value, StopRule):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        valid = ", ".join(e.value for e in cls)
        raise ValueError(f"Invalid stop rule '{value}'. Valid values are: {valid}")


class ConvergenceStatus(str, Enum):
    """Three-way classification of the latest convergence sample."""

    IN_PROGRESS = "in-progress"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max-iterations-reached"
