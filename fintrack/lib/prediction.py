"""Trend-line forecasts for price charts."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class SeriesPoint:
    x: float
    y: float


@dataclass
class Forecast:
    points: list[SeriesPoint] = field(default_factory=list)
    std_error: float = 0.0


def linear_regression_forecast(points: Sequence[SeriesPoint], count: int) -> Forecast:
    """Ordinary least squares fit, extrapolated ``count`` steps past the input.

    Forecast x values run from ``n`` to ``n + count - 1``. ``std_error`` is the
    population RMS of the residuals over the input points. Inputs whose x
    values do not vary cannot be fitted and yield an empty forecast.
    """
    n = len(points)
    if n == 0:
        return Forecast()
    xs = np.array([p.x for p in points], dtype=float)
    ys = np.array([p.y for p in points], dtype=float)
    sum_x = xs.sum()
    sum_y = ys.sum()
    denominator = n * float((xs * xs).sum()) - float(sum_x) ** 2
    if denominator == 0 or not math.isfinite(denominator):
        return Forecast()
    slope = (n * float((xs * ys).sum()) - float(sum_x * sum_y)) / denominator
    intercept = (float(sum_y) - slope * float(sum_x)) / n

    residuals = (slope * xs + intercept) - ys
    std_error = float(np.sqrt((residuals * residuals).sum() / n))
    forecast = [SeriesPoint(x=float(x), y=slope * x + intercept) for x in range(n, n + max(0, count))]
    return Forecast(points=forecast, std_error=std_error)


def moving_average_forecast(points: Sequence[SeriesPoint], window: int, count: int) -> Forecast:
    """Flat forecast at the mean of the last ``window`` y values."""
    n = len(points)
    if window <= 0 or n < window:
        return Forecast()
    mean = float(np.mean([p.y for p in points[-window:]]))
    return Forecast(points=[SeriesPoint(x=float(x), y=mean) for x in range(n, n + max(0, count))])
