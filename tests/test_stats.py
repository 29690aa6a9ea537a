import pandas as pd
import pytest

from budget_intelligence import stats


def test_coefficient_of_variation_edge_cases():
    assert stats.coefficient_of_variation([]) == 0
    assert stats.coefficient_of_variation([0, 0]) == 0
    assert stats.coefficient_of_variation([10, 10]) == 0
    assert stats.coefficient_of_variation([5, 15]) == pytest.approx(0.5)


def test_half_split_change_puts_odd_element_in_second_half():
    assert stats.half_split_change([100, 50, 50], how='sum') == 0
    assert stats.half_split_change([100, 50, 50], how='mean') == pytest.approx(-50)
    assert stats.half_split_change([100]) == 0
    assert stats.half_split_change([0, 0, 10, 10]) == 0


def test_classify_trend_threshold():
    assert stats.classify_trend(20) == stats.INCREASING
    assert stats.classify_trend(-20) == stats.DECREASING
    assert stats.classify_trend(10) == stats.STABLE
    assert stats.classify_trend(-10) == stats.STABLE


def test_linear_projection():
    values = [5 + 2 * x for x in range(7)]
    assert stats.linear_projection(values, 30) == pytest.approx(65)
    assert stats.linear_projection([], 30) == 0


def test_monthly_rate():
    two = pd.Series(pd.to_datetime(['2024-01-01', '2024-01-31']))
    same_day = pd.Series(pd.to_datetime(['2024-01-01', '2024-01-01']))
    single = pd.Series(pd.to_datetime(['2024-01-01']))

    assert stats.monthly_rate(two) == pytest.approx(2.0)
    assert stats.monthly_rate(same_day) == 1.0
    assert stats.monthly_rate(single) == 1.0


def test_monthly_seasonality():
    dates = pd.Series(pd.date_range('2023-01-01', periods=12, freq='MS'))
    amounts = pd.Series([200.0 if d.month == 7 else 100.0 for d in dates])

    assert stats.monthly_seasonality(dates, amounts, 7) == pytest.approx(200 / (1300 / 12))
    assert stats.monthly_seasonality(dates, amounts, 3) == pytest.approx(100 / (1300 / 12))
    assert stats.monthly_seasonality(dates[:11], amounts[:11], 7) == 1.0
