# macrodash/stats.py
from __future__ import annotations
import math
from typing import List, Sequence
import numpy as np
import pandas as pd
from macrodash.models import RegressionResult


def round_half_up(value: float, digits: int = 2) -> float:
    """Round like the dashboard does: halves go towards +inf."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def is_flat(values: Sequence[float]) -> bool:
    """True when every value is identical, i.e. the series has no spread at all."""
    return len(values) > 0 and max(values) == min(values)


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    if is_flat(values):
        # summing e.g. twenty copies of 10.1 does not give back exactly 10.1
        return float(values[0])
    return float(np.mean(np.asarray(values, dtype=float)))


def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def standard_deviation(values: Sequence[float], sample: bool = True) -> float:
    """Standard deviation with an n-1 (sample) or n (population) denominator."""
    n = len(values)
    if n == 0:
        return 0.0
    ddof = 1 if sample else 0
    if n - ddof <= 0 or is_flat(values):
        # a single observation or a constant series has no spread
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=ddof))


def variance(values: Sequence[float], sample: bool = True) -> float:
    return standard_deviation(values, sample) ** 2


def percentile(values: Sequence[float], p: float) -> float:
    """p-th percentile with linear interpolation between order statistics."""
    if len(values) == 0:
        return 0.0
    if p < 0 or p > 100:
        raise ValueError("Percentile must be between 0 and 100")
    return float(np.percentile(np.asarray(values, dtype=float), p, method="linear"))


def z_score(value: float, avg: float, std_dev: float) -> float:
    if std_dev == 0:
        return 0.0
    return (value - avg) / std_dev


def _check_window(values: Sequence[float], window: int):
    if window < 1:
        raise ValueError("Window size must be at least 1")
    if window > len(values):
        raise ValueError("Window size cannot be larger than array length")


def rolling_mean(values: Sequence[float], window: int) -> List[float]:
    _check_window(values, window)
    s = pd.Series(values, dtype=float)
    return s.rolling(window).mean().iloc[window - 1:].tolist()


def rolling_std_dev(values: Sequence[float], window: int, sample: bool = True) -> List[float]:
    _check_window(values, window)
    s = pd.Series(values, dtype=float)
    # a one-value window has no sample spread; report 0 like standard_deviation
    std = s.rolling(window).std(ddof=1 if sample else 0).fillna(0.0)
    return std.iloc[window - 1:].tolist()


def linear_regression(x_values: Sequence[float], y_values: Sequence[float]) -> RegressionResult:
    """Ordinary least squares fit of y on x."""
    if len(x_values) != len(y_values) or len(x_values) == 0:
        raise ValueError("x and y arrays must have the same non-zero length")

    x = np.asarray(x_values, dtype=float)
    y = np.asarray(y_values, dtype=float)
    n = len(x)

    denom = n * np.sum(x * x) - np.sum(x) ** 2
    if denom == 0:
        raise ValueError("x values must not all be equal")
    slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denom
    intercept = (np.sum(y) - slope * np.sum(x)) / n

    ss_total = float(np.sum((y - y.mean()) ** 2))
    ss_residual = float(np.sum((y - (slope * x + intercept)) ** 2))
    r_squared = 1.0 if ss_total == 0 else 1 - ss_residual / ss_total

    return RegressionResult(slope=float(slope), intercept=float(intercept), r_squared=r_squared)


def normalize(value: float, lo: float, hi: float) -> float:
    """Map value onto a 0-100 scale between lo and hi."""
    if hi == lo:
        return 50.0
    return (value - lo) / (hi - lo) * 100


def ema_multiplier(period: int) -> float:
    return 2 / (period + 1)
