"""Export of fault trees for the external Monte Carlo simulator."""

from dftree.export.ordering import (
    BackEdge,
    GateOrdering,
    TopEventResolution,
    bottom_up_order,
    find_sink_gates,
    resolve_top_event,
)
from dftree.export.shyfta import (
    ExportResult,
    find_name_collisions,
    parse_progress,
    render_main_script,
    render_model_script,
)

__all__ = [
    "BackEdge",
    "GateOrdering",
    "TopEventResolution",
    "bottom_up_order",
    "find_sink_gates",
    "resolve_top_event",
    "ExportResult",
    "find_name_collisions",
    "parse_progress",
    "render_main_script",
    "render_model_script",
]
