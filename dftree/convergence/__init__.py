"""Convergence evaluation of Monte Carlo simulation output."""

from dftree.convergence.components import (
    ComponentResult,
    OverallStatistics,
    SimulationResults,
)
from dftree.convergence.evaluator import (
    ci_precision,
    classify,
    effective_sample_size,
    evaluate,
    relative_precision,
    stability,
)
from dftree.convergence.session import ConvergenceSession
from dftree.convergence.types import ConvergenceReport, ConvergenceSample

__all__ = [
    "ComponentResult",
    "ConvergenceReport",
    "ConvergenceSample",
    "ConvergenceSession",
    "OverallStatistics",
    "SimulationResults",
    "ci_precision",
    "classify",
    "effective_sample_size",
    "evaluate",
    "relative_precision",
    "stability",
]
