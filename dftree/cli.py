"""Command-line interface for dftree."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from time import perf_counter
from typing import Any, List, Optional

from dftree.config import CONVERGENCE_CONFIG, EXPORT_CONFIG, SimulationSettings
from dftree.convergence.session import ConvergenceSession
from dftree.export.ordering import bottom_up_order, resolve_top_event
from dftree.export.shyfta import (
    find_name_collisions,
    render_main_script,
    render_model_script,
)
from dftree.io import load_model_file, load_results_file, load_samples_file
from dftree.logging import get_logger, set_global_log_level
from dftree.model.graph import find_cycles, validate_model
from dftree.model.mutations import check_invariants
from dftree.types.base import StopRule

logger = get_logger(__name__)


def _format_duration(seconds: float) -> str:
    """Return a concise human-readable duration string.

    Examples:
        0.123 -> "123.0 ms"; 1.234 -> "1.23 s"; 75.2 -> "1m 15.2s".
    """
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f} ms"
    if seconds < 60.0:
        return f"{seconds:.2f} s"
    minutes = int(seconds // 60)
    rem = seconds - minutes * 60
    return f"{minutes}m {rem:.1f}s"


def _plural(n: int, singular: str, plural: Optional[str] = None) -> str:
    """Return ``"<n> <unit>"`` with the unit inflected for ``n``."""
    unit = singular if n == 1 else (plural or singular + "s")
    return f"{n} {unit}"


def _fail(action: str, exc: Exception) -> None:
    logger.error(f"Failed to {action}: {type(exc).__name__}: {exc}")
    print(f"❌ ERROR: Failed to {action}")
    print(f"  {type(exc).__name__}: {exc}")
    sys.exit(1)


def _inspect_model(path: Path) -> None:
    """Load a model file and print its structure and any warnings."""
    logger.info(f"Inspecting fault tree from: {path}")
    start = perf_counter()
    try:
        model = load_model_file(path)
    except FileNotFoundError:
        print(f"❌ ERROR: Model file not found: {path}")
        sys.exit(1)
    except Exception as e:
        _fail("inspect model", e)

    ordering = bottom_up_order(model)
    top = resolve_top_event(model)

    print("\n" + "=" * 60)
    print("FAULT TREE INSPECTION")
    print("=" * 60)
    print(f"Events:      {len(model.events)}")
    print(f"Gates:       {len(model.gates)}")
    print(f"Connections: {len(model.connections)}")
    if model.gates:
        kinds: dict[str, int] = {}
        for gate in model.gates:
            kinds[gate.gate_type.value] = kinds.get(gate.gate_type.value, 0) + 1
        print("Gate kinds:  " + ", ".join(f"{k}={v}" for k, v in sorted(kinds.items())))

    print("\nTop event:")
    if top.gate is None:
        print("   (none: model has no gates)")
    else:
        how = "declared" if top.declared else ("fallback" if top.ambiguous else "single root")
        print(f"   {top.gate.name} [{how}]")
        if top.ambiguous:
            print(f"   Candidates: {_plural(len(top.candidates), 'gate')}")

    print("\nExport order:")
    for index, gate in enumerate(ordering.gates, 1):
        print(f"   {index:>3}. {gate.name} ({gate.gate_type.value})")

    cycles = find_cycles(model)
    print(f"\nCycles: {len(cycles)}")
    for cycle in cycles:
        print("   " + " -> ".join(model.gate(g).name for g in cycle + cycle[:1]))

    collisions = find_name_collisions(model)
    print(f"Name collisions: {len(collisions)}")

    problems = check_invariants(model) + validate_model(model)
    if problems:
        print(f"\nWarnings ({len(problems)}):")
        for problem in problems:
            print(f"   - {problem}")
    else:
        print("\nNo structural warnings")

    logger.info(f"Inspection completed in {_format_duration(perf_counter() - start)}")


def _export_model(
    path: Path,
    mission_time: Optional[float],
    output: Optional[Path],
    main_script: Optional[Path] = None,
    model_name: Optional[str] = None,
    iterations: int = 10000,
    confidence: float = 0.95,
    stop_criteria_on: bool = True,
) -> None:
    """Render a model file as a simulator script to ``output`` or stdout.

    With ``main_script`` set, the ``ZFTAMain.m`` driver that runs the model
    script is written there as well.
    """
    logger.info(f"Exporting fault tree from: {path}")
    if mission_time is not None and mission_time <= 0:
        print("❌ ERROR: The mission time must be greater than 0")
        sys.exit(1)

    driver: Optional[str] = None
    if main_script is not None:
        if model_name is None:
            model_name = (
                output.name if output is not None else SimulationSettings.default_model_name()
            )
        settings = SimulationSettings(
            model_name=model_name,
            iterations=iterations,
            confidence=confidence,
            stop_criteria_on=stop_criteria_on,
        )
        try:
            driver = render_main_script(settings)
        except ValueError as e:
            print(f"❌ ERROR: {e}")
            sys.exit(1)

    try:
        model = load_model_file(path)
    except FileNotFoundError:
        print(f"❌ ERROR: Model file not found: {path}")
        sys.exit(1)
    except Exception as e:
        _fail("export model", e)

    if not model.events and not model.gates:
        print("❌ ERROR: The fault tree model is empty")
        sys.exit(1)

    result = render_model_script(model, mission_time=mission_time)
    for note in result.warnings:
        logger.warning(note)

    if output is None:
        sys.stdout.write(result.script)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.script, encoding="utf-8")
        logger.info(f"Model script written to {output}")
        print(f"✅ Model script written to: {output}")

    if driver is not None:
        main_script.parent.mkdir(parents=True, exist_ok=True)
        main_script.write_text(driver, encoding="utf-8")
        logger.info(f"Driver script written to {main_script}")
        if output is not None:
            print(f"✅ Driver script written to: {main_script}")


def _evaluate_samples(
    path: Path, max_iterations: Optional[int], stop_rule: Optional[str]
) -> None:
    """Replay a sample file through a session and print the final report as JSON."""
    logger.info(f"Evaluating convergence samples from: {path}")
    try:
        samples = load_samples_file(path)
    except FileNotFoundError:
        print(f"❌ ERROR: Samples file not found: {path}")
        sys.exit(1)
    except Exception as e:
        _fail("load samples", e)

    config = CONVERGENCE_CONFIG
    if stop_rule is not None:
        config = replace(CONVERGENCE_CONFIG, stop_rule=StopRule.from_string(stop_rule))
    session = ConvergenceSession(config=config, max_iterations=max_iterations)
    session.extend(samples)

    summary: dict[str, Any] = session.summary()
    summary["ratio_history"] = session.ratio_history()
    summary["percent_changes"] = session.percent_changes()
    print(json.dumps(summary, indent=2))


def _report_results(model_path: Path, results_path: Path) -> None:
    """Print per-component reliability and overall statistics as JSON."""
    logger.info(f"Reading component results from: {results_path}")
    try:
        model = load_model_file(model_path)
        results = load_results_file(results_path, model)
    except FileNotFoundError as e:
        print(f"❌ ERROR: File not found: {e.filename}")
        sys.exit(1)
    except Exception as e:
        _fail("load simulation results", e)

    print(json.dumps(results.to_dict(), indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``dftree`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="dftree",
        description="Inspect, export and evaluate dynamic fault trees.",
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{inspect,export,convergence,results}",
        help="Available commands",
    )

    inspect_parser = subparsers.add_parser(
        "inspect", help="Inspect and validate a fault tree model"
    )
    inspect_parser.add_argument("model", type=Path, help="Path to model YAML/JSON")

    export_parser = subparsers.add_parser(
        "export", help="Export a model as a SHyFTA simulator script"
    )
    export_parser.add_argument("model", type=Path, help="Path to model YAML/JSON")
    export_parser.add_argument(
        "--mission-time",
        "-t",
        type=float,
        default=None,
        help=f"Mission time in hours (default: {EXPORT_CONFIG.default_mission_time:g})",
    )
    export_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write the script to this file instead of stdout",
    )
    export_parser.add_argument(
        "--main-script",
        type=Path,
        default=None,
        help="Also write the ZFTAMain.m driver script to this file",
    )
    export_parser.add_argument(
        "--model-name",
        default=None,
        help="Model script name run by the driver (default: the --output file name)",
    )
    export_parser.add_argument(
        "--iterations",
        type=int,
        default=10000,
        help="Monte Carlo iterations of the driver (default: 10000)",
    )
    export_parser.add_argument(
        "--confidence",
        type=float,
        default=0.95,
        help="Confidence level of the stop criteria (default: 0.95)",
    )
    export_parser.add_argument(
        "--no-stop-criteria",
        action="store_true",
        help="Run all iterations instead of stopping on convergence",
    )

    conv_parser = subparsers.add_parser(
        "convergence", help="Evaluate a recorded CI history"
    )
    conv_parser.add_argument("samples", type=Path, help="Path to samples YAML/JSON")
    conv_parser.add_argument(
        "--max-iterations",
        "-n",
        type=int,
        default=None,
        help=(
            "Iteration ceiling of the run "
            f"(default: {CONVERGENCE_CONFIG.default_max_iterations})"
        ),
    )
    conv_parser.add_argument(
        "--stop-rule",
        choices=[r.value for r in StopRule],
        default=None,
        help="Rule deciding convergence (default: primary)",
    )

    results_parser = subparsers.add_parser(
        "results", help="Summarize per-component simulation results"
    )
    results_parser.add_argument("model", type=Path, help="Path to model YAML/JSON")
    results_parser.add_argument(
        "results", type=Path, help="Path to component results YAML/JSON"
    )

    effective_args = sys.argv[1:] if argv is None else argv

    # If no arguments are provided, show help and exit cleanly
    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    if args.verbose:
        set_global_log_level(logging.DEBUG)
        logger.debug("Debug logging enabled")
    elif args.quiet:
        set_global_log_level(logging.WARNING)
    else:
        set_global_log_level(logging.INFO)

    if args.command == "inspect":
        _inspect_model(args.model)
    elif args.command == "export":
        _export_model(
            args.model,
            args.mission_time,
            args.output,
            main_script=args.main_script,
            model_name=args.model_name,
            iterations=args.iterations,
            confidence=args.confidence,
            stop_criteria_on=not args.no_stop_criteria,
        )
    elif args.command == "convergence":
        _evaluate_samples(args.samples, args.max_iterations, args.stop_rule)
    elif args.command == "results":
        _report_results(args.model, args.results)


if __name__ == "__main__":
    main()
