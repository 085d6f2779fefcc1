"""dftree: dynamic fault tree modeling, export and convergence analysis.

dftree keeps a fault tree as immutable snapshots edited through
invariant-preserving mutations, renders it as a model script for the SHyFTA
Monte Carlo simulator, and judges whether the simulator's running estimate has
converged.

Primary API:
    FaultTreeEditor - Editing session over FaultTreeModel snapshots
    FaultTreeModel, BaseEvent, Gate, Connection - Snapshot model
    render_model_script(), render_main_script() - Simulator script export
    evaluate(), ConvergenceSession - Convergence criteria
    SimulationResults - Per-component reliability of a finished run

Example:
    from dftree import FaultTreeEditor, render_model_script

    editor = FaultTreeEditor()
    pump = editor.add_event(name="Pump").events[-1]
    valve = editor.add_event(name="Valve").events[-1]
    top = editor.add_gate("AND", name="System").gates[-1]
    editor.connect(pump.id, top.id)
    model = editor.connect(valve.id, top.id)

    print(render_model_script(model, mission_time=500).script)
"""

from __future__ import annotations

from dftree import cli, logging
from dftree._version import __version__
from dftree.convergence import (
    ConvergenceReport,
    ConvergenceSample,
    ConvergenceSession,
    SimulationResults,
    evaluate,
)
from dftree.export import (
    ExportResult,
    GateOrdering,
    bottom_up_order,
    render_main_script,
    render_model_script,
    resolve_top_event,
)
from dftree.io import (
    load_model_file,
    load_model_yaml,
    load_results_file,
    load_samples_file,
)
from dftree.model.distributions import Constant, Exponential, Normal, Weibull
from dftree.model.editor import FaultTreeEditor
from dftree.model.fault_tree import BaseEvent, Connection, FaultTreeModel, Gate
from dftree.types.base import ConvergenceStatus, GateType, StopRule

__all__ = [
    # Version
    "__version__",
    # Model
    "BaseEvent",
    "Connection",
    "FaultTreeEditor",
    "FaultTreeModel",
    "Gate",
    "GateType",
    # Distributions
    "Constant",
    "Exponential",
    "Normal",
    "Weibull",
    # Export
    "ExportResult",
    "GateOrdering",
    "bottom_up_order",
    "render_main_script",
    "render_model_script",
    "resolve_top_event",
    # Convergence
    "ConvergenceReport",
    "ConvergenceSample",
    "ConvergenceSession",
    "ConvergenceStatus",
    "SimulationResults",
    "StopRule",
    "evaluate",
    # IO
    "load_model_file",
    "load_model_yaml",
    "load_results_file",
    "load_samples_file",
    # Modules
    "cli",
    "logging",
]
