"""Convergence criteria for Monte Carlo failure-probability estimates.

Four criteria are computed for every sample:

1. CI precision (primary): ``accepted_error > 0`` and ``ci_width <= accepted_error``.
2. Relative precision: ``ci_width / mean <= 0.25`` when the mean is above
   ``1e-6``, otherwise ``ci_width <= 1e-5``.
3. Robustness: effective sample size ``n * p * (1 - p) >= 10``.
4. Stability: coefficient of variation of the trailing ten mean estimates
   below ``0.10``.

A missing or non-finite CI width fails criteria 1 and 2 and leaves the ratio
undefined.

Criteria 2-4 are supporting diagnostics. Whether they also gate the
``converged`` flag depends on the configured :class:`~dftree.types.base.StopRule`.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from dftree.config import CONVERGENCE_CONFIG, ConvergenceConfig
from dftree.convergence.types import ConvergenceReport, ConvergenceSample
from dftree.logging import get_logger
from dftree.types.base import ConvergenceStatus, StopRule
from dftree.utils.numeric import (
    finite_or,
    ratio_or_none,
    safe_div,
    sample_mean_variance,
)

LOGGER = get_logger(__name__)


def ci_width_or_none(sample: ConvergenceSample) -> Optional[float]:
    """Return the sample's CI width, or ``None`` when it is missing or non-finite."""
    width = sample.ci_width
    if width is None:
        return None
    try:
        width = float(width)
    except (TypeError, ValueError):
        return None
    return width if math.isfinite(width) else None


def ci_precision(sample: ConvergenceSample) -> bool:
    """Primary criterion: the CI width is within a positive accepted error.

    An undefined width never satisfies the criterion.
    """
    width = ci_width_or_none(sample)
    epsilon = finite_or(sample.accepted_error)
    return width is not None and epsilon > 0 and width <= epsilon


def relative_precision(
    sample: ConvergenceSample, config: Optional[ConvergenceConfig] = None
) -> Tuple[bool, Optional[float]]:
    """Return ``(met, relative_error)`` for the relative precision criterion.

    Near zero the relative error is reported against the absolute fallback
    width instead of the mean. An undefined width gives ``(False, None)``.
    """
    config = config or CONVERGENCE_CONFIG
    width = ci_width_or_none(sample)
    if width is None:
        return False, None
    mean = finite_or(sample.mean_estimate)
    if mean > config.relative_mean_floor:
        rel = safe_div(width, mean)
        return rel <= config.max_relative_error, rel
    rel = safe_div(width, config.absolute_width_fallback)
    return width <= config.absolute_width_fallback, rel


def effective_sample_size(sample: ConvergenceSample) -> float:
    """Return ``iteration * p * (1 - p)`` using the mean estimate as ``p``."""
    p = finite_or(sample.mean_estimate)
    return finite_or(sample.iteration * p * (1.0 - p))


def stability(
    window: Sequence[ConvergenceSample], config: Optional[ConvergenceConfig] = None
) -> Tuple[bool, bool, Optional[float]]:
    """Evaluate the stability criterion over the trailing samples.

    Args:
        window: Chronological samples; only the last ``stability_window`` are
            used.
        config: Thresholds. Defaults to ``CONVERGENCE_CONFIG``.

    Returns:
        ``(met, evaluated, coefficient_of_variation)``. ``evaluated`` is False
        when fewer than ``stability_window`` samples are available. The
        coefficient is ``None`` when not evaluated or when the trailing mean is
        not positive.
    """
    config = config or CONVERGENCE_CONFIG
    size = config.stability_window
    if len(window) < size:
        return False, False, None
    means = [finite_or(s.mean_estimate) for s in window[-size:]]
    mean, variance = sample_mean_variance(means)
    if mean <= 0:
        return False, True, None
    cv = finite_or(math.sqrt(variance) / mean)
    return cv < config.max_coefficient_of_variation, True, cv


def classify(
    iteration: int, converged: bool, max_iterations: int
) -> ConvergenceStatus:
    """Three-way status: iteration ceiling first, then convergence."""
    if iteration > max_iterations:
        return ConvergenceStatus.MAX_ITERATIONS_REACHED
    if converged:
        return ConvergenceStatus.CONVERGED
    return ConvergenceStatus.IN_PROGRESS


def evaluate(
    sample: ConvergenceSample,
    window: Sequence[ConvergenceSample] = (),
    config: Optional[ConvergenceConfig] = None,
    max_iterations: Optional[int] = None,
) -> ConvergenceReport:
    """Evaluate ``sample`` against all criteria.

    Args:
        sample: Latest sample of the run.
        window: Chronological history ending with ``sample``. Only the trailing
            ``stability_window`` entries are read.
        config: Thresholds and stop rule. Defaults to ``CONVERGENCE_CONFIG``.
        max_iterations: Iteration ceiling for the status. Defaults to
            ``config.default_max_iterations``.

    Returns:
        ConvergenceReport whose numbers are finite or ``None``.
    """
    config = config or CONVERGENCE_CONFIG
    if max_iterations is None:
        max_iterations = config.default_max_iterations

    width = ci_width_or_none(sample)
    primary = ci_precision(sample)
    relative_met, relative_error = relative_precision(sample, config)
    ess = effective_sample_size(sample)
    robust = ess >= config.min_effective_sample_size
    stable, stability_evaluated, cv = stability(window, config)

    support_met = sum((relative_met, robust, stable))
    stop_rule = StopRule.from_string(config.stop_rule)
    if stop_rule is StopRule.PRIMARY_AND_SUPPORT:
        converged = primary and support_met >= config.min_support_criteria
    else:
        converged = primary

    mean = finite_or(sample.mean_estimate)
    report = ConvergenceReport(
        iteration=sample.iteration,
        mean_estimate=mean,
        ci_precision=primary,
        relative_precision=relative_met,
        relative_error=relative_error,
        robustness=robust,
        effective_sample_size=ess,
        stability=stable,
        stability_evaluated=stability_evaluated,
        coefficient_of_variation=cv,
        support_met=support_met,
        stop_rule=stop_rule,
        converged=converged,
        ratio=None if width is None else ratio_or_none(width, finite_or(sample.accepted_error)),
        reliability_pct=finite_or((1.0 - mean) * 100.0),
        unreliability_pct=finite_or(mean * 100.0),
        status=classify(sample.iteration, converged, max_iterations),
    )
    LOGGER.debug(
        "Iteration %d: status=%s ratio=%s support=%d/3",
        report.iteration,
        report.status.value,
        report.ratio_display,
        support_met,
    )
    return report
