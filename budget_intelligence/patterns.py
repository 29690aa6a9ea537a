"""Per-category spending pattern analysis."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

import numpy as np
import pandas as pd

from . import stats
from .transactions import EXPENSE, parse_transactions, reference_time, transactions_frame

MIN_TREND_POINTS = 4
MIN_SEASONAL_POINTS = 12


@dataclass(frozen=True)
class SpendingPattern:
    category: str
    average_amount: float
    frequency: float  # transactions per month
    trend: str
    seasonality: float  # factor for the forecast month
    volatility: float  # coefficient of variation

    @property
    def monthly_amount(self) -> float:
        return self.average_amount * self.frequency


class PatternAnalyzer:
    """Derive one ``SpendingPattern`` per expense category.

    ``chronological`` controls the trend split. By default amounts are split
    into halves in the order the transactions were supplied, which is not
    necessarily date order; set it to sort each category by date first.
    """

    def __init__(self, data: pd.DataFrame, *, now: Optional[datetime] = None, chronological: bool = False):
        self.data = data
        self.now = reference_time(now)
        self.chronological = chronological

    @classmethod
    def from_transactions(cls, records: Iterable[Any], **kwargs: Any) -> 'PatternAnalyzer':
        return cls(transactions_frame(parse_transactions(records)), **kwargs)

    @property
    def forecast_month(self) -> int:
        """Calendar month (1-12) following ``now``."""
        return self.now.month % 12 + 1

    def analyze(self) -> List[SpendingPattern]:
        expenses = self.data[self.data['type'] == EXPENSE]
        usable = expenses[np.isfinite(expenses['amount']) & (expenses['amount'] > 0)]
        if usable.empty:
            return []
        return [
            self._summarize(str(category), group)
            for category, group in usable.groupby('category', sort=False)
        ]

    def _summarize(self, category: str, group: pd.DataFrame) -> SpendingPattern:
        if self.chronological:
            group = group.sort_values('date', kind='stable', na_position='last')
        amounts = group['amount']
        dated = group.dropna(subset=['date'])

        if len(amounts) >= MIN_TREND_POINTS:
            trend = stats.classify_trend(stats.half_split_change(amounts, how='mean'))
        else:
            trend = stats.STABLE

        return SpendingPattern(
            category=category,
            average_amount=stats.mean(amounts),
            frequency=stats.monthly_rate(dated['date']),
            trend=trend,
            seasonality=stats.monthly_seasonality(
                dated['date'], dated['amount'], self.forecast_month, min_points=MIN_SEASONAL_POINTS
            ),
            volatility=stats.coefficient_of_variation(amounts),
        )
