"""Failure and repair probability distributions for basic events.

Each distribution kind is its own frozen dataclass carrying only its own
parameters; :data:`Distribution` is the union of the four variants. Every
variant knows the keyword the simulator uses for it and the order in which the
simulator expects its parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union


@dataclass(frozen=True)
class Exponential:
    """Exponential distribution with constant failure rate ``rate`` (lambda)."""

    rate: float

    kind = "exponential"
    keyword = "exp"

    def parameters(self) -> List[float]:
        return [self.rate]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "lambda": self.rate}


@dataclass(frozen=True)
class Weibull:
    """Three-parameter Weibull: shape ``k``, scale ``lam`` and location ``mu``."""

    k: float
    lam: float
    mu: float = 0.0

    kind = "weibull"
    keyword = "weibull"

    def parameters(self) -> List[float]:
        return [self.k, self.lam, self.mu]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "k": self.k, "lambda": self.lam, "mu": self.mu}


@dataclass(frozen=True)
class Normal:
    """Normal distribution of the time to failure (or repair)."""

    mu: float
    sigma: float

    kind = "normal"
    keyword = "normal"

    def parameters(self) -> List[float]:
        return [self.mu, self.sigma]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "mu": self.mu, "sigma": self.sigma}


@dataclass(frozen=True)
class Constant:
    """Fixed probability ``probability`` regardless of time."""

    probability: float

    kind = "constant"
    keyword = "constant"

    def parameters(self) -> List[float]:
        return [self.probability]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "probability": self.probability}


Distribution = Union[Exponential, Weibull, Normal, Constant]


def _num(data: Mapping[str, Any], *keys: str, default: Optional[float] = None) -> float:
    for key in keys:
        if key in data and data[key] is not None:
            return float(data[key])
    if default is not None:
        return default
    raise ValueError(f"Distribution is missing parameter '{keys[0]}'")


def distribution_from_dict(data: Optional[Mapping[str, Any]]) -> Optional[Distribution]:
    """Build a distribution from its dict form (the inverse of ``to_dict``).

    ``type`` accepts the kind name or the simulator keyword (``exp``).
    ``lambda`` may also be spelled ``rate``/``lam``.

    Args:
        data: Mapping with a ``type`` key, or ``None``.

    Returns:
        The distribution, or ``None`` when ``data`` is ``None``.

    Raises:
        ValueError: If the type is unknown or a required parameter is missing.
    """
    if data is None:
        return None
    kind = str(data.get("type", "")).strip().lower()
    if kind in ("exponential", "exp"):
        return Exponential(rate=_num(data, "lambda", "rate", "lam"))
    if kind == "weibull":
        return Weibull(
            k=_num(data, "k"),
            lam=_num(data, "lambda", "lam"),
            mu=_num(data, "mu", default=0.0),
        )
    if kind == "normal":
        return Normal(mu=_num(data, "mu"), sigma=_num(data, "sigma"))
    if kind == "constant":
        return Constant(probability=_num(data, "probability", "p"))
    raise ValueError(f"Unknown distribution type '{data.get('type')}'")
