"""Accumulate the samples of one simulation run and evaluate them."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from dftree.config import CONVERGENCE_CONFIG, ConvergenceConfig
from dftree.convergence.evaluator import evaluate
from dftree.convergence.types import ConvergenceReport, ConvergenceSample
from dftree.logging import get_logger
from dftree.utils.numeric import finite_or, safe_div

LOGGER = get_logger(__name__)

SampleLike = Union[ConvergenceSample, Mapping[str, Any]]


class ConvergenceSession:
    """History of one run plus the report for its latest sample.

    Samples must arrive with strictly increasing iteration counts; a sample
    that does not advance the iteration is logged and ignored.

    Args:
        config: Thresholds and stop rule. Defaults to ``CONVERGENCE_CONFIG``.
        max_iterations: Iteration ceiling of the run. Defaults to
            ``config.default_max_iterations``.
    """

    def __init__(
        self,
        config: Optional[ConvergenceConfig] = None,
        max_iterations: Optional[int] = None,
    ) -> None:
        self.config = config or CONVERGENCE_CONFIG
        self.max_iterations = (
            max_iterations
            if max_iterations is not None
            else self.config.default_max_iterations
        )
        self._samples: List[ConvergenceSample] = []
        self._reports: List[ConvergenceReport] = []

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> tuple[ConvergenceSample, ...]:
        return tuple(self._samples)

    @property
    def reports(self) -> tuple[ConvergenceReport, ...]:
        return tuple(self._reports)

    def latest_report(self) -> Optional[ConvergenceReport]:
        """Report for the most recent accepted sample, or ``None`` when empty."""
        return self._reports[-1] if self._reports else None

    def window(self) -> tuple[ConvergenceSample, ...]:
        """Trailing samples read by the stability criterion."""
        return tuple(self._samples[-self.config.stability_window :])

    @property
    def converged(self) -> bool:
        latest = self.latest_report()
        return latest is not None and latest.converged

    def add(self, sample: SampleLike) -> Optional[ConvergenceReport]:
        """Append ``sample`` and evaluate it against the trailing window.

        Args:
            sample: A ConvergenceSample or a mapping accepted by
                :meth:`ConvergenceSample.from_dict`.

        Returns:
            The report for ``sample``, or the previous latest report when the
            sample was rejected.
        """
        if not isinstance(sample, ConvergenceSample):
            sample = ConvergenceSample.from_dict(sample)
        if self._samples and sample.iteration <= self._samples[-1].iteration:
            LOGGER.warning(
                "Ignoring sample at iteration %d: not after iteration %d",
                sample.iteration,
                self._samples[-1].iteration,
            )
            return self.latest_report()

        self._samples.append(sample)
        report = evaluate(sample, self.window(), self.config, self.max_iterations)
        self._reports.append(report)
        if report.converged and (len(self._reports) == 1 or not self._reports[-2].converged):
            LOGGER.info(
                "Converged at iteration %d (mean estimate %.6g)",
                report.iteration,
                report.mean_estimate,
            )
        return report

    def extend(self, samples: Iterable[SampleLike]) -> Optional[ConvergenceReport]:
        """Add samples in order and return the latest report."""
        for sample in samples:
            self.add(sample)
        return self.latest_report()

    def reset(self) -> None:
        self._samples.clear()
        self._reports.clear()

    def ratio_history(self) -> List[float]:
        """CI width over accepted error per sample, 0.0 where undefined."""
        return [r.ratio if r.ratio is not None else 0.0 for r in self._reports]

    def percent_changes(self) -> List[float]:
        """Absolute percentage change between successive mean estimates.

        The list is one shorter than the history; a change from a zero mean
        is reported as 0.0.
        """
        means = [finite_or(s.mean_estimate) for s in self._samples]
        return [
            safe_div(abs(cur - prev), abs(prev)) * 100.0
            for prev, cur in zip(means, means[1:])
        ]

    def summary(self) -> Dict[str, Any]:
        """Final figures of the run for display or JSON output."""
        if not self._samples:
            return {"samples": 0, "status": None, "converged": False}
        last = self._samples[-1]
        report = self._reports[-1]
        return {
            "samples": len(self._samples),
            "iteration": last.iteration,
            "mean_estimate": report.mean_estimate,
            "ci_lower": last.ci_lower,
            "ci_upper": last.ci_upper,
            "ci_width": last.ci_width,
            "accepted_error": last.accepted_error,
            "ratio": report.ratio_display,
            "reliability_pct": report.reliability_pct,
            "unreliability_pct": report.unreliability_pct,
            "status": report.status.value,
            "converged": report.converged,
            "report": report.to_dict(),
        }
