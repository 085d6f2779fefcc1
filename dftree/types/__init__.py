"""Shared enumerations and aliases."""

from dftree.types.base import ConvergenceStatus, GateType, Position, StopRule

__all__ = ["ConvergenceStatus", "GateType", "Position", "StopRule"]
