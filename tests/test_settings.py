import dataclasses

import pytest

from budget_intelligence.analytics import AnalyticsEngine
from budget_intelligence.settings import BudgetSettings, coerce_settings, load_settings, save_settings


def test_defaults():
    settings = BudgetSettings()
    assert settings.monthly_budget == 50000
    assert settings.emergency_buffer == 10
    assert settings.savings_target == 20
    assert settings.auto_adjust is True
    assert settings.learning_enabled is True
    assert settings.category_budgets == {}


def test_updated_returns_new_value():
    settings = BudgetSettings()
    changed = settings.updated(emergency_buffer=15)

    assert changed.emergency_buffer == 15
    assert settings.emergency_buffer == 10


def test_settings_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        BudgetSettings().monthly_budget = 1


def test_camel_case_and_unknown_keys():
    settings = BudgetSettings().updated({'monthlyBudget': '1200', 'learningEnabled': False, 'theme': 'dark'})
    assert settings.monthly_budget == 1200.0
    assert settings.learning_enabled is False
    assert not hasattr(settings, 'theme')


def test_malformed_numbers_keep_current_value():
    settings = BudgetSettings().updated(monthly_budget='lots', emergency_buffer=float('nan'))
    assert settings.monthly_budget == 50000
    assert settings.emergency_buffer == 10


def test_category_budgets_are_coerced():
    settings = BudgetSettings().updated(categoryBudgets={'Food': '300', 'Fun': 'n/a'})
    assert settings.category_budgets == {'Food': 300.0}


def test_coerce_settings_accepts_partial_mapping():
    assert coerce_settings(None) == BudgetSettings()
    assert coerce_settings({'emergencyBuffer': 5}).emergency_buffer == 5
    existing = BudgetSettings(monthly_budget=10)
    assert coerce_settings(existing) is existing


def test_dict_round_trip():
    settings = BudgetSettings(monthly_budget=800, category_budgets={'Food': 200.0}, auto_adjust=False)
    assert BudgetSettings.from_dict(settings.to_dict()) == settings


def test_save_and_load(tmp_path):
    path = tmp_path / 'nested' / 'settings.json'
    settings = BudgetSettings(monthly_budget=900, emergency_buffer=0)

    save_settings(settings, path)

    assert path.exists()
    assert load_settings(path) == settings


def test_load_missing_or_corrupt_file_returns_defaults(tmp_path):
    assert load_settings(tmp_path / 'missing.json') == BudgetSettings()

    corrupt = tmp_path / 'corrupt.json'
    corrupt.write_text('{not json', encoding='utf-8')
    assert load_settings(corrupt) == BudgetSettings()


def test_category_budgets_are_not_shared():
    shared = {'Food': 100.0}
    settings = BudgetSettings(category_budgets=shared)
    copy = settings.updated(monthly_budget=1)

    shared['Rent'] = 5
    with pytest.raises(TypeError):
        copy.category_budgets['Food'] = 999

    assert settings.category_budgets == {'Food': 100.0}
    assert copy.category_budgets == {'Food': 100.0}
    assert type(settings.to_dict()['category_budgets']) is dict


def test_engines_sharing_settings_cannot_alter_each_other():
    settings = BudgetSettings(category_budgets={'Food': 100})
    first, second = AnalyticsEngine([], settings), AnalyticsEngine([], settings)

    first.category_budgets['Food'] = 1
    with pytest.raises(TypeError):
        first.settings.category_budgets['Food'] = 1

    assert second.settings.category_budgets['Food'] == 100.0
    assert first.settings.category_budgets['Food'] == 100.0


def test_settings_are_hashable():
    assert hash(BudgetSettings()) == hash(BudgetSettings())
    assert len({BudgetSettings(), BudgetSettings(), BudgetSettings(category_budgets={'Food': 1})}) == 2
