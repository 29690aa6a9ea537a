"""Statistical helpers shared by the forecast and analytics engines."""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

INCREASING = 'increasing'
DECREASING = 'decreasing'
STABLE = 'stable'

DAYS_PER_MONTH = 30.0
TREND_THRESHOLD_PCT = 10.0


def _finite(values: Sequence[float]) -> np.ndarray:
    array = np.asarray(values, dtype=float)
    return array[np.isfinite(array)]


def mean(values: Sequence[float]) -> float:
    """Mean of the finite values, 0 when there are none."""
    array = _finite(values)
    if array.size == 0:
        return 0.0
    return float(array.mean())


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation divided by the mean.

    Returns 0 for an empty input or a zero mean instead of ``nan``/``inf``.
    """
    array = _finite(values)
    if array.size == 0:
        return 0.0
    average = array.mean()
    if average == 0:
        return 0.0
    return float(array.std(ddof=0) / average)


def half_split_change(values: Sequence[float], how: str = 'mean') -> float:
    """Percent change from the first half of ``values`` to the second.

    The split point is ``len(values) // 2`` so an odd element lands in the
    second half. ``how`` selects whether halves are compared by ``mean`` or
    by ``sum``.
    """
    array = _finite(values)
    midpoint = array.size // 2
    if midpoint == 0:
        return 0.0
    first, second = array[:midpoint], array[midpoint:]
    if how == 'sum':
        base, current = first.sum(), second.sum()
    else:
        base, current = first.mean(), second.mean()
    if base == 0:
        return 0.0
    return float((current - base) / base * 100)


def classify_trend(change_pct: float, threshold: float = TREND_THRESHOLD_PCT) -> str:
    if change_pct > threshold:
        return INCREASING
    if change_pct < -threshold:
        return DECREASING
    return STABLE


def linear_projection(values: Sequence[float], steps_ahead: float) -> float:
    """Fit ``y = slope * x + intercept`` over ``x = 0..n-1`` and evaluate at ``steps_ahead``."""
    array = _finite(values)
    if array.size < 2:
        return float(array[0]) if array.size else 0.0
    x = np.arange(array.size, dtype=float)
    slope, intercept = np.polyfit(x, array, 1)
    return float(slope * steps_ahead + intercept)


def monthly_rate(dates: pd.Series, default: float = 1.0) -> float:
    """Events per 30-day month across the span of ``dates``.

    Fewer than two dates, or all dates on the same instant, fall back to
    ``default``. Spans shorter than a day count as one day.
    """
    dated = pd.to_datetime(pd.Series(dates), errors='coerce').dropna()
    if len(dated) < 2:
        return default
    span_days = (dated.max() - dated.min()).total_seconds() / 86400
    if span_days <= 0:
        return default
    span_days = max(span_days, 1.0)
    return float(len(dated) / (span_days / DAYS_PER_MONTH))


def monthly_seasonality(dates: pd.Series, amounts: pd.Series, target_month: int, min_points: int = 12) -> float:
    """Ratio of ``target_month``'s average amount to the overall average.

    ``target_month`` is 1-12. Needs ``min_points`` dated amounts; otherwise,
    or when the month has no data, the factor is neutral (1).
    """
    frame = pd.DataFrame({
        'date': pd.to_datetime(pd.Series(dates).reset_index(drop=True), errors='coerce'),
        'amount': pd.Series(amounts, dtype=float).reset_index(drop=True),
    }).dropna()
    frame = frame[np.isfinite(frame['amount'])]
    if len(frame) < min_points:
        return 1.0
    overall = frame['amount'].mean()
    if overall == 0:
        return 1.0
    by_month = frame.groupby(frame['date'].dt.month)['amount'].mean()
    if target_month not in by_month.index:
        return 1.0
    factor = float(by_month[target_month] / overall)
    return factor if np.isfinite(factor) and factor != 0 else 1.0
