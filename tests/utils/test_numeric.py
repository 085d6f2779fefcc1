"""Tests for non-finite-safe arithmetic helpers."""

from __future__ import annotations

import pytest

from dftree.utils.numeric import (
    UNDEFINED,
    finite_or,
    format_fixed,
    ratio_or_none,
    safe_div,
    sample_mean_variance,
)


def test_finite_or():
    assert finite_or(1.5) == 1.5
    assert finite_or(float("nan")) == 0.0
    assert finite_or(float("-inf"), default=-1.0) == -1.0
    assert finite_or(None) == 0.0
    assert finite_or("not a number", default=2.0) == 2.0


def test_safe_div_and_ratio():
    assert safe_div(1, 4) == 0.25
    assert safe_div(1, 0) == 0.0
    assert safe_div(1, 0, default=-1.0) == -1.0
    assert ratio_or_none(1, 0) is None
    assert ratio_or_none(3, 2) == 1.5


def test_format_fixed():
    assert format_fixed(1.2) == "1.200"
    assert format_fixed(None) == UNDEFINED
    assert format_fixed(float("inf")) == "undefined"
    assert format_fixed(0.12345, decimals=2) == "0.12"


def test_sample_mean_variance():
    assert sample_mean_variance([]) == (0.0, 0.0)
    assert sample_mean_variance([3.0]) == (3.0, 0.0)
    mean, var = sample_mean_variance([1.0, 2.0, 3.0])
    assert mean == pytest.approx(2.0)
    assert var == pytest.approx(1.0)
