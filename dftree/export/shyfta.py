"""Render a fault tree as a SHyFTA (MATLAB) model definition script.

Layout of the generated script:

- header and mission time ``Tm``,
- one ``BasicEvent(...)`` statement per event, in stored order,
- one ``Gate(...)`` statement per gate, in bottom-up order,
- ``TOP = <name>;`` for the resolved top event,
- the ``createFTStructure`` call that validates the structure in MATLAB.

:func:`render_main_script` fills the ``ZFTAMain.m`` driver that runs the
model script for a number of iterations with the configured stop criteria.

All element names go through :func:`dftree.utils.names.sanitize_name`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Dict, List, Optional

from dftree.config import EXPORT_CONFIG, ExportConfig, SimulationSettings
from dftree.export.ordering import (
    GateOrdering,
    TopEventResolution,
    bottom_up_order,
    resolve_top_event,
)
from dftree.logging import get_logger
from dftree.model.distributions import Distribution
from dftree.model.fault_tree import BaseEvent, FaultTreeModel, Gate
from dftree.utils.names import find_collisions, sanitize_name

LOGGER = get_logger(__name__)

_PROGRESS_RE = re.compile(r"Avanzamento:\s*(\d+(?:\.\d+)?)%")


@dataclass(frozen=True)
class ExportResult:
    """Generated script plus the structural facts the caller should surface.

    Attributes:
        script: Script text, newline-terminated.
        ordering: Gate order used, including skipped cycle edges.
        top: Top-event resolution; check ``top.ambiguous``.
        collisions: Identifier -> element ids whose names collide.
    """

    script: str
    ordering: GateOrdering
    top: TopEventResolution
    collisions: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def warnings(self) -> List[str]:
        """Human-readable notes about cycles, top-event choice and names."""
        notes: List[str] = []
        if self.ordering.has_cycles:
            notes.append(
                f"{len(self.ordering.back_edges)} cycle edge(s) ignored while ordering gates"
            )
        if self.top.gate is None:
            notes.append("No gate available to designate as top event")
        elif self.top.ambiguous:
            notes.append(
                f"Top event is ambiguous; defaulted to first gate '{self.top.gate.name}'"
            )
        for ident, ids in self.collisions.items():
            notes.append(f"{len(ids)} elements export under the same name '{ident}'")
        return notes


def format_number(value: float) -> str:
    """Format a parameter: integral values without decimals, others via repr."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _distribution_args(dist: Optional[Distribution]) -> tuple[str, str]:
    if dist is None:
        return "''", "[]"
    params = ", ".join(format_number(p) for p in dist.parameters())
    return f"'{dist.keyword}'", f"[{params}]"


def basic_event_statement(event: BaseEvent, prefix: str = EXPORT_CONFIG.name_prefix) -> str:
    """Return the ``BasicEvent`` definition line for ``event``."""
    name = sanitize_name(event.name, prefix)
    failure_kind, failure_params = _distribution_args(event.failure)
    repair_kind, repair_params = _distribution_args(event.repair)
    return (
        f"{name} = BasicEvent('{name}',{failure_kind},{repair_kind},"
        f"{failure_params},{repair_params});"
    )


def gate_statement(
    gate: Gate, model: FaultTreeModel, prefix: str = EXPORT_CONFIG.name_prefix
) -> str:
    """Return the ``Gate`` definition line for ``gate``.

    SPARE and FDEP gates carry a second list with their secondary inputs.
    Input ids that do not resolve are written as the raw id.
    """

    def ref(element_id: str) -> str:
        element = model.element(element_id)
        return sanitize_name(element.name, prefix) if element is not None else element_id

    name = sanitize_name(gate.name, prefix)
    failure_flag = "true" if gate.is_failure_gate else "false"
    primary = "[" + ", ".join(ref(i) for i in gate.inputs) + "]"
    head = f"{name} = Gate('{name}', '{gate.gate_type.value}', {failure_flag}, {primary}"
    if gate.gate_type.has_secondary_inputs:
        secondary = "[" + ", ".join(ref(i) for i in gate.secondary_inputs) + "]"
        return f"{head}, {secondary});"
    return f"{head});"


def find_name_collisions(
    model: FaultTreeModel, prefix: str = EXPORT_CONFIG.name_prefix
) -> Dict[str, List[str]]:
    """Return exported identifiers shared by several elements of ``model``.

    Returns:
        Identifier -> element ids (events first, then gates) using it.
    """
    return find_collisions(model.display_names(), prefix)


def render_model_script(
    model: FaultTreeModel,
    mission_time: Optional[float] = None,
    config: Optional[ExportConfig] = None,
) -> ExportResult:
    """Render ``model`` as a simulator model script.

    Args:
        model: Snapshot to export; cycles and ambiguous tops are tolerated.
        mission_time: Mission time in hours (``Tm``). Defaults to the config.
        config: Export settings. Defaults to the global ``EXPORT_CONFIG``.

    Returns:
        ExportResult with the script and the ordering/top-event diagnostics.
    """
    config = config or EXPORT_CONFIG
    if mission_time is None:
        mission_time = config.default_mission_time
    prefix = config.name_prefix

    ordering = bottom_up_order(model)
    top = resolve_top_event(model)
    collisions = find_name_collisions(model, prefix)
    if collisions:
        LOGGER.warning(
            "Export name collision(s): %s", ", ".join(sorted(collisions))
        )

    lines = [
        "%% Define the Fault Tree Structure %%",
        f"Tm = {format_number(mission_time)}; %[h]",
        "",
        "%% Define BEs %%",
        "",
    ]
    lines.extend(basic_event_statement(e, prefix) for e in model.events)
    lines.append("")
    lines.append("%% Define Gates %%")
    lines.extend(gate_statement(g, model, prefix) for g in ordering.gates)
    if top.gate is not None:
        lines.append(f"TOP = {sanitize_name(top.gate.name, prefix)};")
    else:
        LOGGER.warning("Model has no gates; script has no TOP definition")
    lines.append("%% Recall Matlab Script %%")
    lines.append(
        "%verify if the FT Structure is valid "
        "(it will modify the value of the variable UNVALID_FT)"
    )
    lines.append("createFTStructure")

    LOGGER.debug(
        "Rendered model script: %d events, %d gates", len(model.events), len(ordering.gates)
    )
    return ExportResult(
        script="\n".join(lines) + "\n",
        ordering=ordering,
        top=top,
        collisions=collisions,
    )


def parse_progress(line: str) -> Optional[float]:
    """Extract the completion percentage from a simulator console line.

    The simulator prints ``Avanzamento:  42.50%`` while running.

    Returns:
        The percentage, or ``None`` if the line carries no progress.
    """
    match = _PROGRESS_RE.search(line)
    return float(match.group(1)) if match else None


#: Placeholders of the simulator driver template.
MAIN_SCRIPT_PLACEHOLDERS = ("<MODEL_NAME>", "<ITER>", "<CONFIDENCE>", "<TRUEFALSE>")


@lru_cache(maxsize=1)
def load_main_template() -> str:
    """Return the packaged ``ZFTAMain.m`` driver template."""
    with (
        resources.files("dftree.templates")
        .joinpath("zfta_main.m")
        .open("r", encoding="utf-8")
    ) as f:
        return f.read()


def render_main_script(
    settings: SimulationSettings, template: Optional[str] = None
) -> str:
    """Fill the simulator driver template from ``settings``.

    ``<MODEL_NAME>`` becomes the model script name without ``.m`` (the driver
    runs it as a MATLAB command), ``<ITER>`` the iteration count,
    ``<CONFIDENCE>`` the confidence level and ``<TRUEFALSE>`` whether the
    stop criteria may end the run early.

    Args:
        settings: Run parameters. Only the name, iterations and confidence
            are checked here; the library folder is not needed.
        template: Template text. Defaults to the packaged ``ZFTAMain.m``.

    Returns:
        Driver script text.

    Raises:
        ValueError: If the model name is empty, the iteration count is not
            positive or the confidence is outside (0, 1).
    """
    if not settings.model_stem:
        raise ValueError("Enter a valid model name")
    if settings.iterations <= 0:
        raise ValueError("The number of iterations must be greater than 0")
    if not 0 < settings.confidence < 1:
        raise ValueError("The confidence level must be between 0 and 1")

    text = load_main_template() if template is None else template
    values = {
        "<MODEL_NAME>": settings.model_stem,
        "<ITER>": str(int(settings.iterations)),
        "<CONFIDENCE>": format_number(settings.confidence),
        "<TRUEFALSE>": "true" if settings.stop_criteria_on else "false",
    }
    for placeholder in MAIN_SCRIPT_PLACEHOLDERS:
        text = text.replace(placeholder, values[placeholder])
    LOGGER.debug(
        "Rendered driver script for %s: iter=%s confidence=%s stop=%s",
        settings.model_stem,
        values["<ITER>"],
        values["<CONFIDENCE>"],
        values["<TRUEFALSE>"],
    )
    return text
