"""Loading of fault tree models, convergence samples and component results.

Models are validated against the packaged JSON schema
(``dftree/schemas/fault_tree.json``) and then normalized, so a loaded snapshot
always satisfies the model invariants: gate inputs are re-derived from the
connections and dangling references are dropped.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Union

import jsonschema
import yaml

from dftree.convergence.components import SimulationResults
from dftree.convergence.types import ConvergenceSample
from dftree.logging import get_logger
from dftree.model.fault_tree import FaultTreeModel
from dftree.model.mutations import normalize
from dftree.utils.ids import new_element_id
from dftree.utils.numeric import finite_or

LOGGER = get_logger(__name__)

PathLike = Union[str, Path]


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    """Return the packaged fault tree JSON schema."""
    with (
        resources.files("dftree.schemas")
        .joinpath("fault_tree.json")
        .open("r", encoding="utf-8")
    ) as f:
        return json.load(f)


def model_from_data(data: Any) -> FaultTreeModel:
    """Validate a parsed document and return a normalized snapshot.

    Args:
        data: Parsed YAML/JSON document (``None`` means an empty model).

    Returns:
        Consistent FaultTreeModel.

    Raises:
        ValueError: If the document is not a mapping, fails schema validation
            or names an unknown gate type or distribution.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("The fault tree document must map to a dictionary at top-level.")

    try:
        jsonschema.validate(data, load_schema())
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ValueError(f"Invalid fault tree at {location}: {exc.message}") from exc

    connections = []
    for conn in data.get("connections") or ():
        if "id" not in conn:
            conn = {**conn, "id": new_element_id("conn")}
        connections.append(conn)
    data = {**data, "connections": connections}

    model = normalize(FaultTreeModel.from_dict(data), trust_gates=True)
    LOGGER.debug(
        "Loaded model: %d events, %d gates, %d connections",
        len(model.events),
        len(model.gates),
        len(model.connections),
    )
    return model


def load_model_yaml(text: str) -> FaultTreeModel:
    """Parse a YAML (or JSON) document into a normalized snapshot."""
    return model_from_data(yaml.safe_load(text))


def _read_document(path: Path) -> Any:
    # YAML 1.1 reads exponent floats without a dot (1e-05) as strings
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_model_file(path: PathLike) -> FaultTreeModel:
    """Read a YAML or JSON file and return the normalized snapshot it describes.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the content is not a valid fault tree.
    """
    path = Path(path)
    LOGGER.info("Loading fault tree from %s", path)
    return model_from_data(_read_document(path))


def dump_model(model: FaultTreeModel) -> str:
    """Serialize ``model`` as YAML that :func:`load_model_yaml` accepts."""
    return yaml.safe_dump(model.to_dict(), sort_keys=False)


def samples_from_data(data: Any) -> List[ConvergenceSample]:
    """Build samples from a list of mappings or ``{"ci_history": [...]}``.

    Raises:
        ValueError: If the document has neither shape or an entry is invalid.
    """
    if isinstance(data, dict) and "ci_history" in data:
        data = data["ci_history"]
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("Samples must be a list or a mapping with 'ci_history'")
    samples = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Sample #{index} must be a mapping")
        samples.append(ConvergenceSample.from_dict(entry))
    return samples


def load_samples_file(path: PathLike) -> List[ConvergenceSample]:
    """Read convergence samples from a YAML or JSON file."""
    path = Path(path)
    LOGGER.info("Loading convergence samples from %s", path)
    return samples_from_data(_read_document(path))


def results_from_data(data: Any, model: FaultTreeModel) -> SimulationResults:
    """Build component results for ``model`` from a parsed results document.

    The document maps ``components`` to per-component records keyed by
    element name, with optional ``mission_time``/``missionTime`` and
    ``total_iterations``/``totalIterations``.

    Raises:
        ValueError: If the document or its ``components`` is not a mapping.
    """
    if not isinstance(data, dict):
        raise ValueError("The results document must map to a dictionary at top-level.")
    components = data.get("components")
    if components is None:
        components = {}
    if not isinstance(components, dict):
        raise ValueError("'components' must map component names to results")
    for name, entry in components.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Results for component '{name}' must be a mapping")
    mission_time = data.get("mission_time", data.get("missionTime", 0.0))
    total = data.get("total_iterations", data.get("totalIterations", 0))
    return SimulationResults.from_model(
        model,
        components,
        mission_time=finite_or(mission_time),
        total_iterations=int(finite_or(total)),
    )


def load_results_file(path: PathLike, model: FaultTreeModel) -> SimulationResults:
    """Read per-component simulation results for ``model`` from YAML or JSON."""
    path = Path(path)
    LOGGER.info("Loading simulation results from %s", path)
    return results_from_data(_read_document(path), model)
