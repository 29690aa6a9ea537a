import math
from types import SimpleNamespace

import pandas as pd
import pytest

from budget_intelligence.transactions import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    EXPENSE,
    INCOME,
    Transaction,
    parse_transaction,
    parse_transactions,
    reference_time,
    transactions_frame,
)


def test_missing_fields_take_defaults():
    txn = parse_transaction({'id': 1, 'amount': '-12.50'})

    assert txn.amount == 12.5
    assert txn.type == EXPENSE
    assert txn.category == DEFAULT_CATEGORY
    assert txn.description == DEFAULT_DESCRIPTION
    assert txn.date is None
    assert txn.tags == frozenset()
    assert txn.recurring is False


def test_blank_text_fields_fall_back_to_defaults():
    txn = parse_transaction({'id': 2, 'amount': 10, 'type': 'expense', 'category': '  ', 'description': ''})
    assert txn.category == DEFAULT_CATEGORY
    assert txn.description == DEFAULT_DESCRIPTION


def test_unparseable_dates_become_none():
    assert parse_transaction({'amount': 5, 'date': 'not-a-date'}).date is None
    assert parse_transaction({'amount': 5, 'date': ''}).date is None
    assert parse_transaction({'amount': 5, 'date': 12345}).date is None


def test_timezone_aware_dates_are_made_naive_utc():
    txn = parse_transaction({'amount': 5, 'date': '2024-01-05T10:00:00+02:00'})
    assert txn.date == pd.Timestamp('2024-01-05 08:00:00')
    assert txn.date.tzinfo is None


def test_non_numeric_amount_is_nan():
    txn = parse_transaction({'amount': 'abc', 'type': 'expense'})
    assert math.isnan(txn.amount)
    assert not txn.is_valid_amount


def test_amount_with_thousands_separator():
    assert parse_transaction({'amount': '1,250.75', 'type': 'expense'}).amount == 1250.75


def test_type_is_case_insensitive_and_inferred_from_sign():
    assert parse_transaction({'amount': 100, 'type': 'INCOME'}).type == INCOME
    assert parse_transaction({'amount': 100}).type == INCOME
    assert parse_transaction({'amount': -100}).type == EXPENSE
    assert parse_transaction({'amount': -100, 'type': 'transfer'}).type == EXPENSE


def test_optional_fields_are_coerced():
    txn = parse_transaction({
        'amount': 20,
        'type': 'expense',
        'tags': ['coffee', ' ', 'daily'],
        'recurring': 'true',
        'merchant': ' Cafe ',
        'account': '',
    })
    assert txn.tags == frozenset({'coffee', 'daily'})
    assert txn.recurring is True
    assert txn.merchant == 'Cafe'
    assert txn.account is None


def test_attribute_objects_are_accepted():
    record = SimpleNamespace(id='a', amount=42, type='expense', category='Food', date='2024-03-01')
    txn = parse_transaction(record)
    assert txn.category == 'Food'
    assert txn.date == pd.Timestamp('2024-03-01')


def test_parsed_transactions_pass_through():
    txn = Transaction(id=1, amount=10.0)
    assert parse_transaction(txn) is txn


def test_parse_transactions_handles_none_and_rejects_mappings():
    assert parse_transactions(None) == []
    assert len(parse_transactions([{'amount': 1}, None, {'amount': 2}])) == 2
    with pytest.raises(TypeError):
        parse_transactions({'amount': 1})


def test_frame_keeps_order_and_records():
    txns = parse_transactions([
        {'id': 1, 'amount': 10, 'type': 'expense', 'date': '2024-01-02'},
        {'id': 2, 'amount': 20, 'type': 'income'},
    ])
    frame = transactions_frame(txns)

    assert list(frame['id']) == [1, 2]
    assert frame.loc[0, 'record'] is txns[0]
    assert pd.isna(frame.loc[1, 'date'])
    assert frame['recurring'].dtype == bool


def test_empty_frame_has_all_columns():
    frame = transactions_frame([])
    assert frame.empty
    assert 'record' in frame.columns
    assert 'amount' in frame.columns


def test_reference_time_is_naive():
    stamp = reference_time('2024-06-15T12:00:00Z')
    assert stamp.tzinfo is None
    assert stamp == pd.Timestamp('2024-06-15 12:00:00')


@pytest.mark.parametrize('value', ['now', 'Today', ' yesterday ', 'tomorrow'])
def test_relative_date_words_are_undated(value):
    assert parse_transaction({'amount': 5, 'type': 'expense', 'date': value}).date is None
