"""Arithmetic helpers that never hand NaN or infinity back to a caller.

Sentinels used across the package:

- ``0.0`` for ratios and statistics whose inputs are degenerate,
- :data:`TINY` as the denominator floor used near zero probabilities,
- ``None`` (rendered as :data:`UNDEFINED`) where no number is meaningful.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

#: Text shown for values that are not defined (e.g. a ratio over zero).
UNDEFINED = "undefined"

#: Denominator floor for near-zero probabilities.
TINY = 1e-5


def finite_or(value: float, default: float = 0.0) -> float:
    """Return ``value`` as float if it is finite, otherwise ``default``."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, substituting ``default`` for a zero denominator or non-finite result."""
    if denominator == 0:
        return default
    return finite_or(numerator / denominator, default)


def ratio_or_none(numerator: float, denominator: float) -> Optional[float]:
    """Divide, returning ``None`` when the quotient is undefined."""
    if denominator == 0:
        return None
    result = numerator / denominator
    return result if math.isfinite(result) else None


def format_fixed(value: Optional[float], decimals: int = 3) -> str:
    """Format with fixed decimals, or :data:`UNDEFINED` for ``None``/non-finite."""
    if value is None or not math.isfinite(value):
        return UNDEFINED
    return f"{value:.{decimals}f}"


def sample_mean_variance(values: Sequence[float]) -> tuple[float, float]:
    """Return the mean and the Bessel-corrected variance of ``values``.

    Fewer than two values give a variance of ``0.0``; an empty sequence gives
    ``(0.0, 0.0)``.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0, 0.0
    mean = float(arr.mean())
    if arr.size < 2:
        return finite_or(mean), 0.0
    return finite_or(mean), finite_or(float(arr.var(ddof=1)))
