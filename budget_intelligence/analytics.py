"""Personal finance analytics.

This module contains the health, trend, prediction and budget-tracking
calculations behind the analytics dashboard. All results are recomputed
from the transaction snapshot given to ``AnalyticsEngine`` and the period
requested (``week``, ``month``, ``quarter``, ``year`` or ``all-time``,
measured back from "now").
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from . import stats
from .formatting import format_currency, round_half_up
from .log import get_logger
from .settings import BudgetSettings, coerce_settings
from .transactions import (
    EXPENSE,
    INCOME,
    Transaction,
    parse_transactions,
    reference_time,
    transactions_frame,
)

logger = get_logger(__name__)

WEEK = 'week'
MONTH = 'month'
QUARTER = 'quarter'
YEAR = 'year'
ALL_TIME = 'all-time'
PERIODS = (WEEK, MONTH, QUARTER, YEAR, ALL_TIME)

PERIOD_OFFSETS = {
    WEEK: pd.DateOffset(days=7),
    MONTH: pd.DateOffset(months=1),
    QUARTER: pd.DateOffset(months=3),
    YEAR: pd.DateOffset(years=1),
}
MONTHS_IN_PERIOD = {MONTH: 1, QUARTER: 3, YEAR: 12}
DAYS_IN_PERIOD = {WEEK: 7, MONTH: 30, QUARTER: 90, YEAR: 365}
DAILY_AVERAGE_DAYS = {MONTH: 30, QUARTER: 90, YEAR: 365}

TREND_COLUMNS = ['date', 'amount', 'count', 'average_amount', 'median_amount', 'variance']
REGRESSION_WINDOW = 7
PROJECTION_DAYS = 30
PROJECTION_MONTHS = 6
FI_MULTIPLE = 25  # 25x annual expenses (4% rule)

# Financial health weights (sum to 100)
SAVINGS_WEIGHT = 25
BUDGET_WEIGHT = 20
INCOME_STABILITY_WEIGHT = 20
EMERGENCY_FUND_WEIGHT = 15
DEBT_WEIGHT = 10
CASH_FLOW_WEIGHT = 10

TARGET_SAVINGS_RATE = 20.0


@dataclass
class CategoryAnalysis:
    category: str
    total_amount: float
    percentage: float
    transaction_count: int
    average_amount: float
    median_amount: float
    trend: str
    monthly_growth: float
    volatility: float
    budget_allocation: float = 0.0
    budget_status: str = 'on-track'  # under | over | on-track


@dataclass
class FinancialHealthMetrics:
    savings_rate: float
    budget_adherence: float
    income_stability: float
    emergency_fund_ratio: float
    debt_ratio: float
    overall_score: int
    recommendations: List[str]
    risk_level: str  # low | medium | high
    credit_score: int  # simulated, illustrative only
    net_worth: float
    cash_flow: float


@dataclass
class SpendingInsights:
    top_spending_category: str
    largest_transaction: Optional[Transaction]
    spending_velocity: float
    unusual_spending: List[Transaction] = field(default_factory=list)
    seasonal_patterns: List[Dict[str, Any]] = field(default_factory=list)
    budget_variance: float = 0.0
    spending_anomalies: List[Transaction] = field(default_factory=list)
    merchant_insights: List[Dict[str, Any]] = field(default_factory=list)
    category_efficiency: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class PredictiveAnalytics:
    next_month_spending: float
    budget_forecast: float
    savings_projection: float
    risk_factors: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    cash_flow_projection: List[float] = field(default_factory=list)
    break_even_date: Optional[str] = None
    financial_independence_date: Optional[str] = None


@dataclass
class BudgetMetrics:
    total_budget: float
    spent: float
    remaining: float
    daily_budget: float
    remaining_days: int
    projected_overspend: float
    category_budgets: List[Dict[str, Any]]
    status: str  # under-budget | on-track | over-budget | critical
    recommendations: List[str]


def _clamp(value: float, lower: float, upper: float) -> float:
    if not np.isfinite(value):
        return lower
    return max(lower, min(upper, value))


def budget_status(spent: float, budget: float) -> str:
    """Map spend against budget to a status by usage percentage."""
    if budget <= 0:
        return 'over-budget' if spent > 0 else 'under-budget'
    usage = spent / budget * 100
    if usage > 100:
        return 'over-budget'
    if usage > 90:
        return 'critical'
    if usage > 80:
        return 'on-track'
    return 'under-budget'


class AnalyticsEngine:
    """Financial health, trends, predictions and budget tracking."""

    def __init__(
        self,
        transactions: Optional[Iterable[Any]] = None,
        settings: Union[BudgetSettings, Mapping[str, Any], None] = None,
        *,
        now: Optional[datetime] = None,
    ):
        self._settings = coerce_settings(settings)
        self.now = reference_time(now)
        self.data = self._prepare_data(parse_transactions(transactions))

    @property
    def settings(self) -> BudgetSettings:
        return self._settings

    @property
    def monthly_budget(self) -> float:
        return float(self._settings.monthly_budget)

    @property
    def category_budgets(self) -> Dict[str, float]:
        return dict(self._settings.category_budgets)

    def update_settings(self, patch: Optional[Mapping[str, Any]] = None, **changes: Any) -> BudgetSettings:
        self._settings = self._settings.updated(patch, **changes)
        return self._settings

    # ------------------------------------------------------------------
    # Data preparation
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare_data(transactions: List[Transaction]) -> pd.DataFrame:
        """Keep rows with a positive finite amount and a date, newest first."""
        frame = transactions_frame(transactions)
        valid = np.isfinite(frame['amount']) & (frame['amount'] > 0) & frame['date'].notna()
        dropped = int((~valid).sum())
        if dropped:
            logger.debug('Excluded %d transactions without a usable amount or date', dropped)
        frame = frame[valid]
        return frame.sort_values('date', ascending=False, kind='stable').reset_index(drop=True)

    @staticmethod
    def _normalize_period(period: str) -> str:
        if period in PERIODS:
            return period
        logger.warning("Unknown period '%s', falling back to '%s'", period, MONTH)
        return MONTH

    def _period_start(self, period: str) -> Optional[pd.Timestamp]:
        period = self._normalize_period(period)
        if period == ALL_TIME:
            return None
        return self.now - PERIOD_OFFSETS[period]

    def _filter_by_period(self, period: str) -> pd.DataFrame:
        start = self._period_start(period)
        if start is None:
            return self.data.copy()
        return self.data[self.data['date'] >= start].copy()

    def _expense_rows(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        source = df if df is not None else self.data
        return source[source['type'] == EXPENSE]

    def _income_rows(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        source = df if df is not None else self.data
        return source[source['type'] == INCOME]

    # ------------------------------------------------------------------
    # Trends and categories
    # ------------------------------------------------------------------

    def get_spending_trends(self, period: str = MONTH) -> pd.DataFrame:
        """Daily expense aggregates for the period, oldest day first."""
        expenses = self._expense_rows(self._filter_by_period(period))
        if expenses.empty:
            return pd.DataFrame(columns=TREND_COLUMNS)

        grouped = expenses.groupby(expenses['date'].dt.normalize())['amount']
        trends = pd.DataFrame({
            'amount': grouped.sum(),
            'count': grouped.count(),
            'average_amount': grouped.mean(),
            'median_amount': grouped.median(),
            'variance': grouped.var(ddof=0),
        })
        trends.index.name = 'date'
        return trends.sort_index().reset_index()[TREND_COLUMNS]

    def get_category_analysis(self, period: str = MONTH) -> List[CategoryAnalysis]:
        expenses = self._expense_rows(self._filter_by_period(period))
        if expenses.empty:
            return []

        total_expenses = float(expenses['amount'].sum())
        budgets = self._settings.category_budgets
        results: List[CategoryAnalysis] = []

        for category, group in expenses.groupby('category', sort=False):
            amounts = group['amount']
            total_amount = float(amounts.sum())

            trend, growth = stats.STABLE, 0.0
            if len(group) >= 2:
                ordered = group.sort_values('date', kind='stable')['amount']
                growth = stats.half_split_change(ordered, how='sum')
                trend = stats.classify_trend(growth)

            allocation = float(budgets.get(category, 0) or 0)
            status = 'on-track'
            if allocation > 0:
                usage = total_amount / allocation * 100
                if usage > 100:
                    status = 'over'
                elif usage <= 90:
                    status = 'under'

            results.append(CategoryAnalysis(
                category=str(category),
                total_amount=total_amount,
                percentage=(total_amount / total_expenses * 100) if total_expenses > 0 else 0.0,
                transaction_count=len(group),
                average_amount=stats.mean(amounts),
                median_amount=float(amounts.median()),
                trend=trend,
                monthly_growth=growth,
                volatility=stats.coefficient_of_variation(amounts),
                budget_allocation=allocation,
                budget_status=status,
            ))

        results.sort(key=lambda item: item.total_amount, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Financial health
    # ------------------------------------------------------------------

    def get_financial_health(self, period: str = MONTH) -> FinancialHealthMetrics:
        """Weighted 0-100 health score with its components.

        Weights: savings rate 25, budget adherence 20, income stability 20,
        emergency fund 15, debt ratio 10, cash flow 10. Each component is
        clamped to its weight.
        """
        period = self._normalize_period(period)
        filtered = self._filter_by_period(period)
        income = self._income_rows(filtered)
        expenses = self._expense_rows(filtered)

        total_income = float(income['amount'].sum())
        total_expenses = float(expenses['amount'].sum())
        net_income = total_income - total_expenses
        budget = self.monthly_budget

        savings_rate = (net_income / total_income * 100) if total_income > 0 else 0.0
        savings_score = _clamp(savings_rate / TARGET_SAVINGS_RATE, 0, 1) * SAVINGS_WEIGHT

        if period == ALL_TIME or budget <= 0:
            budget_usage = 0.0
            budget_score = float(BUDGET_WEIGHT)
        else:
            budget_usage = total_expenses / budget * 100
            # Full credit up to the budget, proportionally less beyond it
            coverage = budget / total_expenses if total_expenses > 0 else 1.0
            budget_score = _clamp(coverage, 0, 1) * BUDGET_WEIGHT

        income_stability_score = float(INCOME_STABILITY_WEIGHT)
        if len(income) > 1 and total_income > 0:
            cv = stats.coefficient_of_variation(income['amount'])
            income_stability_score = _clamp(1 - cv, 0, 1) * INCOME_STABILITY_WEIGHT

        monthly_expenses = total_expenses / MONTHS_IN_PERIOD.get(period, 1)
        emergency_fund_ratio = net_income / (monthly_expenses * 3) if monthly_expenses > 0 else 1.0
        emergency_fund_score = _clamp(emergency_fund_ratio, 0, 1) * EMERGENCY_FUND_WEIGHT

        if total_income > 0:
            debt_ratio = total_expenses / total_income
        else:
            debt_ratio = 1.0 if total_expenses > 0 else 0.0
        debt_score = _clamp(1 - debt_ratio, 0, 1) * DEBT_WEIGHT

        cash_flow = net_income
        if cash_flow > 0:
            cash_flow_score = float(CASH_FLOW_WEIGHT)
        elif total_income > 0:
            cash_flow_score = _clamp(1 + cash_flow / total_income, 0, 1) * CASH_FLOW_WEIGHT
        else:
            cash_flow_score = 0.0

        overall_score = round_half_up(
            savings_score + budget_score + income_stability_score
            + emergency_fund_score + debt_score + cash_flow_score
        )

        if overall_score < 50:
            risk_level = 'high'
        elif overall_score < 70:
            risk_level = 'medium'
        else:
            risk_level = 'low'

        credit_score = 750
        if savings_rate > 20:
            credit_score += 50
        if budget_usage < 80:
            credit_score += 30
        if income_stability_score > 15:
            credit_score += 40
        if emergency_fund_ratio > 0.5:
            credit_score += 30
        if debt_ratio < 0.5:
            credit_score += 50
        credit_score = int(_clamp(credit_score, 300, 850))

        recommendations: List[str] = []
        if savings_rate < 10:
            recommendations.append('Increase your savings rate to at least 20% for better financial security.')
        if budget_usage > 90:
            recommendations.append("You're approaching your budget limit. Review discretionary spending.")
        if income_stability_score < 10:
            recommendations.append('Consider diversifying your income sources for better stability.')
        if emergency_fund_ratio < 0.5:
            recommendations.append('Build an emergency fund covering 3-6 months of expenses.')
        if debt_ratio > 0.8:
            recommendations.append('Focus on reducing expenses to improve your debt-to-income ratio.')
        if cash_flow < 0:
            recommendations.append(
                'Your expenses exceed income. Create a plan to increase income or reduce spending.'
            )

        return FinancialHealthMetrics(
            savings_rate=savings_rate,
            budget_adherence=100 - budget_usage,
            income_stability=income_stability_score,
            emergency_fund_ratio=emergency_fund_ratio * 100,
            debt_ratio=debt_ratio * 100,
            overall_score=overall_score,
            recommendations=recommendations,
            risk_level=risk_level,
            credit_score=credit_score,
            net_worth=net_income,
            cash_flow=cash_flow,
        )

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def get_spending_insights(self, period: str = MONTH) -> SpendingInsights:
        period = self._normalize_period(period)
        expenses = self._expense_rows(self._filter_by_period(period))
        category_analysis = self.get_category_analysis(period)
        trends = self.get_spending_trends(period)

        if expenses.empty:
            return SpendingInsights(
                top_spending_category='None',
                largest_transaction=None,
                spending_velocity=0.0,
                budget_variance=self._budget_variance(0.0, period),
            )

        amounts = expenses['amount']
        mean_amount = float(amounts.mean())
        std_amount = float(amounts.std(ddof=0))
        unusual = expenses.loc[amounts > mean_amount + 2 * std_amount, 'record'].tolist()
        anomalies = expenses.loc[amounts > mean_amount + 3 * std_amount, 'record'].tolist()

        seasonal = expenses.groupby(expenses['date'].dt.month_name(), sort=False)['amount'].sum()
        seasonal_patterns = [
            {'month': month, 'amount': float(amount)} for month, amount in seasonal.items()
        ]

        category_efficiency = []
        for category in category_analysis:
            if category.volatility < 0.5:
                rating = 'high'
            elif category.volatility < 1:
                rating = 'medium'
            else:
                rating = 'low'
            if rating == 'low':
                recommendation = 'Consider setting a budget for this category to reduce volatility.'
            elif category.trend == stats.INCREASING:
                recommendation = "Monitor spending in this category as it's trending upward."
            else:
                recommendation = 'Good spending control in this category.'
            category_efficiency.append({
                'category': category.category,
                'efficiency': category.volatility,
                'rating': rating,
                'recommendation': recommendation,
            })

        return SpendingInsights(
            top_spending_category=category_analysis[0].category,
            largest_transaction=expenses.loc[amounts.idxmax(), 'record'],
            spending_velocity=float(trends['amount'].mean()) if not trends.empty else 0.0,
            unusual_spending=unusual,
            seasonal_patterns=seasonal_patterns,
            budget_variance=self._budget_variance(float(amounts.sum()), period),
            spending_anomalies=anomalies,
            merchant_insights=self._merchant_totals(expenses).head(10).to_dict('records'),
            category_efficiency=category_efficiency,
        )

    def _budget_variance(self, total_expenses: float, period: str) -> float:
        budget = self.monthly_budget
        if period == ALL_TIME or budget <= 0:
            return 0.0
        return (total_expenses - budget) / budget * 100

    @staticmethod
    def _merchant_totals(expenses: pd.DataFrame) -> pd.DataFrame:
        merchants = expenses['merchant'].fillna('Unknown')
        totals = expenses.groupby(merchants, sort=False)['amount'].agg(['sum', 'count'])
        totals = totals.rename(columns={'sum': 'total_spent', 'count': 'frequency'})
        totals.index.name = 'merchant'
        totals['total_spent'] = totals['total_spent'].astype(float)
        totals['frequency'] = totals['frequency'].astype(int)
        return totals.sort_values('total_spent', ascending=False, kind='stable').reset_index()

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def get_predictive_analytics(self, period: str = MONTH) -> PredictiveAnalytics:
        """Project next month's spending from the recent daily trend.

        Fits a least-squares line over the last seven daily spending totals
        and evaluates it 30 steps ahead. Fewer than seven days of data gives
        a projection of 0.
        """
        period = self._normalize_period(period)
        trends = self.get_spending_trends(period)
        category_analysis = self.get_category_analysis(period)
        health = self.get_financial_health(period)
        budget = self.monthly_budget

        next_month_spending = 0.0
        if len(trends) >= REGRESSION_WINDOW:
            recent = trends['amount'].tail(REGRESSION_WINDOW).astype(float)
            next_month_spending = stats.linear_projection(recent, PROJECTION_DAYS)

        budget_forecast = budget - next_month_spending

        income = self._income_rows(self._filter_by_period(period))
        monthly_income = float(income['amount'].sum()) / MONTHS_IN_PERIOD.get(period, 1)
        savings_projection = monthly_income - next_month_spending

        cash_flow_projection = [
            monthly_income * months - next_month_spending * months
            for months in range(1, PROJECTION_MONTHS + 1)
        ]

        break_even_date = None
        if health.net_worth < 0 and savings_projection > 0:
            months_to_break_even = abs(health.net_worth) / savings_projection
            break_even_date = self._months_from_now(months_to_break_even)

        financial_independence_date = None
        if savings_projection > 0:
            target_net_worth = budget * 12 * FI_MULTIPLE
            months_to_fi = (target_net_worth - health.net_worth) / savings_projection
            if months_to_fi > 0:
                financial_independence_date = self._months_from_now(months_to_fi)

        risk_factors: List[str] = []
        if next_month_spending > budget:
            risk_factors.append('Projected spending exceeds monthly budget')
        if len(trends) > 3:
            recent_average = float(trends['amount'].tail(3).mean())
            earlier = trends['amount'].iloc[-6:-3]
            if not earlier.empty and recent_average > float(earlier.mean()) * 1.2:
                risk_factors.append('Spending trend is increasing rapidly')
        if health.risk_level == 'high':
            risk_factors.append('Overall financial health needs improvement')

        opportunities: List[str] = []
        low_share = [c.category for c in category_analysis if c.percentage < 5]
        if low_share:
            opportunities.append(f"Consider reducing spending in: {', '.join(low_share)}")
        if savings_projection > 0:
            opportunities.append(f'Potential monthly savings: {format_currency(savings_projection)}')
        if health.savings_rate < TARGET_SAVINGS_RATE:
            opportunities.append('Increase savings rate to 20% for better financial security')
        if break_even_date:
            opportunities.append(f'Projected break-even date: {break_even_date}')
        if financial_independence_date:
            opportunities.append(f'Financial independence possible by: {financial_independence_date}')

        return PredictiveAnalytics(
            next_month_spending=next_month_spending,
            budget_forecast=budget_forecast,
            savings_projection=savings_projection,
            risk_factors=risk_factors,
            opportunities=opportunities,
            cash_flow_projection=cash_flow_projection,
            break_even_date=break_even_date,
            financial_independence_date=financial_independence_date,
        )

    def _months_from_now(self, months: float) -> Optional[str]:
        """ISO date whole months ahead of now, ``None`` past the calendar range."""
        if not np.isfinite(months):
            return None
        try:
            target = self.now.to_pydatetime() + relativedelta(months=int(math.ceil(months)))
        except (OverflowError, ValueError):
            logger.debug("Projection of %.1f months falls outside the calendar range", months)
            return None
        return target.date().isoformat()

    # ------------------------------------------------------------------
    # Income, velocity and budgets
    # ------------------------------------------------------------------

    def get_income_expense_analysis(self, period: str = MONTH) -> Dict[str, Any]:
        period = self._normalize_period(period)
        filtered = self._filter_by_period(period)
        income = self._income_rows(filtered)
        expenses = self._expense_rows(filtered)

        total_income = float(income['amount'].sum())
        total_expenses = float(expenses['amount'].sum())
        net_balance = total_income - total_expenses
        days = DAILY_AVERAGE_DAYS.get(period, 7)

        return {
            'total_income': total_income,
            'total_expenses': total_expenses,
            'net_balance': net_balance,
            'income_sources': self._breakdown(income, 'source'),
            'expense_categories': self._breakdown(expenses, 'category'),
            'savings_rate': (net_balance / total_income * 100) if total_income > 0 else 0.0,
            'expense_ratio': (total_expenses / total_income * 100) if total_income > 0 else 0.0,
            'cash_flow': net_balance,
            'average_daily_income': total_income / days,
            'average_daily_expenses': total_expenses / days,
        }

    @staticmethod
    def _breakdown(rows: pd.DataFrame, label: str) -> List[Dict[str, Any]]:
        if rows.empty:
            return []
        summary = rows.groupby('category', sort=False)['amount'].agg(['sum', 'count', 'mean'])
        return [
            {label: str(name), 'amount': float(row['sum']), 'count': int(row['count']), 'average': float(row['mean'])}
            for name, row in summary.iterrows()
        ]

    def get_spending_velocity(self, period: str = MONTH) -> Dict[str, Any]:
        trends = self.get_spending_trends(period)
        if trends.empty:
            return {
                'daily_average': 0.0,
                'weekly_average': 0.0,
                'monthly_projection': 0.0,
                'trend': stats.STABLE,
                'acceleration': 0.0,
                'volatility': 0.0,
                'peak_day': None,
                'low_day': None,
            }

        amounts = trends['amount'].astype(float)
        daily_average = float(amounts.mean())

        trend, acceleration = stats.STABLE, 0.0
        if len(trends) >= 3:
            recent_average = float(amounts.tail(3).mean())
            earlier = amounts.iloc[-6:-3]
            if not earlier.empty:
                earlier_average = float(earlier.mean())
                if earlier_average > 0:
                    acceleration = (recent_average - earlier_average) / earlier_average * 100
                trend = stats.classify_trend(acceleration)

        return {
            'daily_average': daily_average,
            'weekly_average': daily_average * 7,
            'monthly_projection': daily_average * 30,
            'trend': trend,
            'acceleration': acceleration,
            'volatility': stats.coefficient_of_variation(amounts),
            'peak_day': trends.loc[amounts.idxmax()].to_dict(),
            'low_day': trends.loc[amounts.idxmin()].to_dict(),
        }

    def get_budget_performance(self, period: str = MONTH) -> BudgetMetrics:
        period = self._normalize_period(period)
        budget = self.monthly_budget

        if period == ALL_TIME:
            return BudgetMetrics(
                total_budget=budget,
                spent=0.0,
                remaining=budget,
                daily_budget=budget / 30,
                remaining_days=30,
                projected_overspend=0.0,
                category_budgets=[],
                status='under-budget',
                recommendations=['Set up monthly budgets for better tracking'],
            )

        expenses = self._expense_rows(self._filter_by_period(period))
        spent = float(expenses['amount'].sum())
        remaining = budget - spent
        status = budget_status(spent, budget)

        days_in_period = DAYS_IN_PERIOD[period]
        daily_budget = budget / days_in_period
        spending_days = len(self.get_spending_trends(period))
        remaining_days = max(0, days_in_period - spending_days)

        velocity = self.get_spending_velocity(period)['daily_average']
        projected_overspend = max(0.0, velocity * remaining_days - remaining)

        category_budgets = []
        for category, category_budget in self._settings.category_budgets.items():
            category_spent = float(expenses.loc[expenses['category'] == category, 'amount'].sum())
            category_budgets.append({
                'category': category,
                'budget': float(category_budget),
                'spent': category_spent,
                'remaining': float(category_budget) - category_spent,
            })

        recommendations: List[str] = []
        if status == 'over-budget':
            recommendations.append("You've exceeded your budget. Review discretionary spending.")
        elif status == 'critical':
            recommendations.append("You're approaching your budget limit. Reduce non-essential expenses.")
        if projected_overspend > 0:
            recommendations.append(
                f'Projected overspend: {format_currency(projected_overspend)}. Adjust spending now.'
            )
        if remaining_days > 0:
            recommendations.append(f'Daily budget remaining: {format_currency(remaining / remaining_days)}')

        return BudgetMetrics(
            total_budget=budget,
            spent=spent,
            remaining=remaining,
            daily_budget=daily_budget,
            remaining_days=remaining_days,
            projected_overspend=projected_overspend,
            category_budgets=category_budgets,
            status=status,
            recommendations=recommendations,
        )

    # ------------------------------------------------------------------
    # Recurring and merchants
    # ------------------------------------------------------------------

    def get_recurring_transactions(self) -> Dict[str, Any]:
        """Transactions flagged as recurring, across all history."""
        recurring = self.data[self.data['recurring']]
        expenses = self._expense_rows(recurring)
        income = self._income_rows(recurring)
        monthly_expenses = float(expenses['amount'].sum())
        monthly_income = float(income['amount'].sum())
        return {
            'recurring_expenses': expenses['record'].tolist(),
            'recurring_income': income['record'].tolist(),
            'monthly_recurring_expenses': monthly_expenses,
            'monthly_recurring_income': monthly_income,
            'net_recurring_cash_flow': monthly_income - monthly_expenses,
        }

    def get_merchant_analysis(self, period: str = MONTH) -> List[Dict[str, Any]]:
        expenses = self._expense_rows(self._filter_by_period(period))
        if expenses.empty:
            return []
        merchants = expenses['merchant'].fillna('Unknown')
        results = []
        for merchant, group in expenses.groupby(merchants, sort=False):
            total = float(group['amount'].sum())
            results.append({
                'merchant': str(merchant),
                'total_spent': total,
                'count': len(group),
                'average': total / len(group),
                'categories': list(dict.fromkeys(group['category'])),
            })
        results.sort(key=lambda item: item['total_spent'], reverse=True)
        return results
