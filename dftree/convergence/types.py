"""Data containers for simulation samples and convergence reports."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from dftree.types.base import ConvergenceStatus, StopRule
from dftree.utils.numeric import UNDEFINED, finite_or

# Keys used by the simulator's CI history next to the snake_case field names
_ALIASES = {
    "ci_lower": ("ci_lower", "CI_lower"),
    "ci_upper": ("ci_upper", "CI_upper"),
    "ci_width": ("ci_width", "CI_width"),
}


@dataclass(frozen=True)
class ConvergenceSample:
    """One snapshot of a running Monte Carlo estimate.

    Attributes:
        iteration: Iteration count at which the snapshot was taken.
        p_failure: Point estimate of the failure probability.
        mean_estimate: Running mean estimate of the failure probability.
        ci_lower: Lower confidence bound.
        ci_upper: Upper confidence bound.
        ci_width: Width of the confidence interval, ``None`` when the
            simulator reported no usable interval.
        accepted_error: Error tolerance configured for the run.
        std_error: Standard error of the mean estimate.
    """

    iteration: int
    mean_estimate: float
    ci_width: Optional[float]
    accepted_error: float
    p_failure: float = 0.0
    ci_lower: float = 0.0
    ci_upper: float = 0.0
    std_error: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConvergenceSample":
        """Build a sample from a mapping, replacing non-finite numbers by 0.0.

        Accepts the simulator's ``CI_lower``/``CI_upper``/``CI_width`` keys.
        A missing ``ci_width`` is derived from the bounds and a missing
        ``p_failure`` defaults to ``mean_estimate``. A non-finite width is
        kept as ``None`` so that it never reads as a tight interval.

        Raises:
            ValueError: If ``iteration`` or ``mean_estimate`` is missing.
        """
        if "iteration" not in data or "mean_estimate" not in data:
            raise ValueError("A sample needs at least 'iteration' and 'mean_estimate'")

        def pick(name: str) -> Optional[float]:
            for key in _ALIASES.get(name, (name,)):
                if data.get(key) is not None:
                    return finite_or(data[key])
            return None

        mean = finite_or(data["mean_estimate"])
        lower = pick("ci_lower") or 0.0
        upper = pick("ci_upper") or 0.0
        # An explicit null width stays undefined; only an absent one is derived
        width: Optional[float] = None
        width_keys = [k for k in _ALIASES["ci_width"] if k in data]
        if any(data[k] is not None for k in width_keys):
            width = finite_or(
                next(data[k] for k in width_keys if data[k] is not None), default=math.nan
            )
        elif not width_keys and pick("ci_lower") is not None and pick("ci_upper") is not None:
            width = upper - lower
        if width is not None and not math.isfinite(width):
            width = None
        p_failure = pick("p_failure")
        return cls(
            iteration=int(finite_or(data["iteration"])),
            mean_estimate=mean,
            ci_width=width,
            accepted_error=pick("accepted_error") or 0.0,
            p_failure=mean if p_failure is None else p_failure,
            ci_lower=lower,
            ci_upper=upper,
            std_error=pick("std_error") or 0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "p_failure": self.p_failure,
            "mean_estimate": self.mean_estimate,
            "ci_lower": self.ci_lower,
            "ci_upper": self.ci_upper,
            "ci_width": self.ci_width,
            "accepted_error": self.accepted_error,
            "std_error": self.std_error,
        }


@dataclass(frozen=True)
class ConvergenceReport:
    """Outcome of evaluating one sample against the convergence criteria.

    All numbers are finite. Values that are not defined are ``None``.

    Attributes:
        iteration: Iteration of the evaluated sample.
        mean_estimate: Mean estimate of the evaluated sample.
        ci_precision: Criterion 1, CI width within the accepted error.
        relative_precision: Criterion 2, relative (or near-zero absolute)
            precision.
        relative_error: CI width over the mean estimate (over 1e-5 near
            zero), ``None`` when the width is undefined.
        robustness: Criterion 3, effective sample size large enough.
        effective_sample_size: ``iteration * p * (1 - p)``.
        stability: Criterion 4, trailing estimates stable.
        stability_evaluated: False when the history is shorter than the window.
        coefficient_of_variation: Of the trailing estimates, or ``None``.
        support_met: How many of criteria 2-4 hold.
        stop_rule: Rule used for ``converged``.
        converged: Whether the stop rule is satisfied.
        ratio: CI width over accepted error, ``None`` when the error is 0 or
            the width is undefined.
        reliability_pct: ``(1 - mean_estimate) * 100``.
        unreliability_pct: ``mean_estimate * 100``.
        status: Three-way classification for display.
    """

    iteration: int
    mean_estimate: float
    ci_precision: bool
    relative_precision: bool
    relative_error: Optional[float]
    robustness: bool
    effective_sample_size: float
    stability: bool
    stability_evaluated: bool
    coefficient_of_variation: Optional[float]
    support_met: int
    stop_rule: StopRule
    converged: bool
    ratio: Optional[float]
    reliability_pct: float
    unreliability_pct: float
    status: ConvergenceStatus

    @property
    def ratio_display(self) -> str:
        """Ratio with three decimals, or ``"undefined"``."""
        return UNDEFINED if self.ratio is None else f"{self.ratio:.3f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "mean_estimate": self.mean_estimate,
            "criteria": {
                "ci_precision": self.ci_precision,
                "relative_precision": self.relative_precision,
                "robustness": self.robustness,
                "stability": self.stability if self.stability_evaluated else None,
            },
            "relative_error": self.relative_error,
            "effective_sample_size": self.effective_sample_size,
            "coefficient_of_variation": self.coefficient_of_variation,
            "support_met": self.support_met,
            "stop_rule": self.stop_rule.value,
            "converged": self.converged,
            "ratio": self.ratio_display,
            "reliability_pct": self.reliability_pct,
            "unreliability_pct": self.unreliability_pct,
            "status": self.status.value,
        }
