"""Adaptive budget forecasting.

``ForecastEngine`` turns a transaction history into a recommended monthly
budget. Every query recomputes spending patterns from the current
transactions and settings, so two calls without an intervening
``update_settings``/``learn_from_transactions`` return identical results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from . import stats
from .formatting import format_currency, round_half_up
from .log import get_logger
from .patterns import PatternAnalyzer, SpendingPattern
from .settings import BudgetSettings, coerce_settings
from .transactions import EXPENSE, Transaction, parse_transactions, reference_time, transactions_frame

logger = get_logger(__name__)

BASE_CONFIDENCE = 50.0
UNUSUAL_MULTIPLIER = 2.0
TOP_CATEGORY_LIMIT = 5
ILLUSTRATIVE_TREND_CHANGE = {stats.INCREASING: 15, stats.DECREASING: -15, stats.STABLE: 0}


@dataclass
class BudgetForecast:
    recommended_budget: int
    confidence: float  # 0-100
    reasoning: List[str] = field(default_factory=list)
    category_recommendations: Dict[str, int] = field(default_factory=dict)
    risk_factors: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    next_month_prediction: int = 0
    seasonal_adjustments: Dict[str, float] = field(default_factory=dict)
    base_spending: float = 0.0


class ForecastEngine:
    """Budget forecasts, insights and optimization suggestions."""

    def __init__(
        self,
        transactions: Optional[Iterable[Any]] = None,
        settings: Union[BudgetSettings, Mapping[str, Any], None] = None,
        *,
        now: Optional[datetime] = None,
        chronological_trends: bool = False,
    ):
        self._transactions: List[Transaction] = parse_transactions(transactions)
        self._settings = coerce_settings(settings)
        self.now = reference_time(now)
        self.chronological_trends = chronological_trends
        self.data = transactions_frame(self._transactions)

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._transactions)

    @property
    def settings(self) -> BudgetSettings:
        return self._settings

    def get_settings(self) -> BudgetSettings:
        return self._settings

    def update_settings(self, patch: Optional[Mapping[str, Any]] = None, **changes: Any) -> BudgetSettings:
        """Merge ``patch``/``changes`` into the settings and return the new value."""
        self._settings = self._settings.updated(patch, **changes)
        return self._settings

    def analyze_patterns(self) -> List[SpendingPattern]:
        analyzer = PatternAnalyzer(self.data, now=self.now, chronological=self.chronological_trends)
        return analyzer.analyze()

    def generate_forecast(self) -> BudgetForecast:
        patterns = self.analyze_patterns()
        buffer_pct = self._settings.emergency_buffer

        base_spending = 0.0
        category_recommendations: Dict[str, int] = {}
        seasonal_adjustments: Dict[str, float] = {}
        for pattern in patterns:
            adjusted = pattern.average_amount * pattern.frequency * pattern.seasonality
            category_recommendations[pattern.category] = round_half_up(adjusted)
            seasonal_adjustments[pattern.category] = pattern.seasonality
            base_spending += adjusted

        recommended_budget = round_half_up(base_spending + base_spending * buffer_pct / 100)
        next_month_prediction = round_half_up(base_spending * (1 + buffer_pct / 100))

        reasoning: List[str] = []
        if patterns:
            reasoning.append(
                f"Based on {len(self._transactions)} transactions across {len(patterns)} categories"
            )
            monthly_spending = sum(p.monthly_amount for p in patterns)
            reasoning.append(f"Average monthly spending: {format_currency(monthly_spending)}")
            if buffer_pct > 0:
                reasoning.append(f"Added {buffer_pct:g}% emergency buffer")

        risk_factors: List[str] = []
        for pattern in patterns:
            if pattern.trend == stats.INCREASING and pattern.volatility > 0.5:
                risk_factors.append(f"{pattern.category} spending is increasing rapidly")
            if pattern.volatility > 1:
                risk_factors.append(f"{pattern.category} has high spending volatility")

        opportunities: List[str] = []
        for pattern in patterns:
            if pattern.trend == stats.DECREASING:
                opportunities.append(f"{pattern.category} spending is decreasing - good trend")
            if pattern.volatility < 0.3:
                opportunities.append(f"{pattern.category} has stable spending patterns")

        confidence = self._confidence(patterns)
        logger.debug(
            'Forecast over %d transactions: base=%.2f recommended=%d confidence=%.1f',
            len(self._transactions), base_spending, recommended_budget, confidence,
        )

        return BudgetForecast(
            recommended_budget=recommended_budget,
            confidence=confidence,
            reasoning=reasoning,
            category_recommendations=category_recommendations,
            risk_factors=risk_factors,
            opportunities=opportunities,
            next_month_prediction=next_month_prediction,
            seasonal_adjustments=seasonal_adjustments,
            base_spending=base_spending,
        )

    def _confidence(self, patterns: List[SpendingPattern]) -> float:
        if not patterns:
            return 0.0

        confidence = BASE_CONFIDENCE
        count = len(self._transactions)
        if count > 100:
            confidence += 20
        elif count > 50:
            confidence += 10
        elif count < 10:
            confidence -= 20

        if len(patterns) > 5:
            confidence += 10
        elif len(patterns) < 3:
            confidence -= 10

        avg_volatility = sum(p.volatility for p in patterns) / len(patterns)
        if avg_volatility < 0.3:
            confidence += 15
        elif avg_volatility > 0.8:
            confidence -= 15

        stable = sum(1 for p in patterns if p.trend == stats.STABLE)
        confidence += stable / len(patterns) * 10

        return max(0.0, min(100.0, confidence))

    def learn_from_transactions(self, new_transactions: Optional[Iterable[Any]]) -> None:
        """Absorb new transactions when learning is enabled.

        With learning disabled the call is a no-op. With ``auto_adjust`` the
        monthly budget is replaced by the freshly recommended budget.
        """
        if not self._settings.learning_enabled:
            logger.debug('Learning disabled, ignoring new transactions')
            return

        parsed = parse_transactions(new_transactions)
        self._transactions.extend(parsed)
        self.data = transactions_frame(self._transactions)

        if self._settings.auto_adjust:
            forecast = self.generate_forecast()
            self._settings = self._settings.updated(monthly_budget=forecast.recommended_budget)
            logger.info('Auto-adjusted monthly budget to %d after learning %d transactions',
                        forecast.recommended_budget, len(parsed))

    def get_spending_insights(self) -> Dict[str, Any]:
        """Top categories, unusually large expenses and per-category trends.

        The trend ``change`` is a fixed illustrative delta per direction, not
        a measured one.
        """
        patterns = self.analyze_patterns()
        total = sum(p.monthly_amount for p in patterns)

        top_categories = sorted(
            (
                {
                    'category': p.category,
                    'amount': p.monthly_amount,
                    'percentage': (p.monthly_amount / total * 100) if total > 0 else 0.0,
                }
                for p in patterns
            ),
            key=lambda item: item['amount'],
            reverse=True,
        )[:TOP_CATEGORY_LIMIT]

        unusual_spending: List[Transaction] = []
        expenses = self.data[self.data['type'] == EXPENSE]
        for pattern in patterns:
            threshold = pattern.average_amount * UNUSUAL_MULTIPLIER
            mask = (expenses['category'] == pattern.category) & (expenses['amount'] > threshold)
            unusual_spending.extend(expenses.loc[mask, 'record'].tolist())

        spending_trends = [
            {
                'category': p.category,
                'trend': p.trend,
                'change': ILLUSTRATIVE_TREND_CHANGE[p.trend],
            }
            for p in patterns
        ]

        return {
            'top_categories': top_categories,
            'unusual_spending': unusual_spending,
            'spending_trends': spending_trends,
        }

    def suggest_optimizations(self) -> Dict[str, Any]:
        patterns = self.analyze_patterns()
        insights = self.get_spending_insights()

        recommendations: List[str] = []
        priority_actions: List[str] = []
        potential_savings = 0.0

        for category in insights['top_categories']:
            if category['percentage'] > 30:
                recommendations.append(
                    f"Consider reducing {category['category']} spending "
                    f"({category['percentage']:.1f}% of total)"
                )
                potential_savings += category['amount'] * 0.2
                priority_actions.append(f"Review {category['category']} expenses")

        for pattern in patterns:
            if pattern.trend == stats.INCREASING and pattern.monthly_amount > 5000:
                recommendations.append(f"Monitor {pattern.category} - spending is increasing")
                priority_actions.append(f"Set budget limit for {pattern.category}")

        for pattern in patterns:
            if pattern.volatility > 0.8:
                recommendations.append(
                    f"{pattern.category} has high spending volatility - consider setting limits"
                )

        return {
            'recommendations': recommendations,
            'potential_savings': round_half_up(potential_savings),
            'priority_actions': priority_actions,
        }
