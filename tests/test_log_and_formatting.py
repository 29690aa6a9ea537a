import json
import logging

import pytest

from budget_intelligence.config import CURRENCY_SYMBOL
from budget_intelligence.formatting import format_currency, round_half_up
from budget_intelligence.log import ROOT_LOGGER_NAME, JsonFormatter, configure_logging, get_logger


@pytest.fixture
def package_root_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


def test_child_loggers_hang_off_package_root(package_root_logger):
    logger = get_logger('forecast')

    assert logger.name == 'budget_intelligence.forecast'
    assert logger.parent is package_root_logger
    assert get_logger('budget_intelligence.analytics').name == 'budget_intelligence.analytics'
    assert package_root_logger.propagate is True
    assert not any(type(h) is logging.StreamHandler for h in package_root_logger.handlers)


def test_get_logger_is_idempotent(package_root_logger):
    get_logger()
    before = list(package_root_logger.handlers)
    get_logger('settings')
    get_logger()
    assert package_root_logger.handlers == before
    assert any(isinstance(h, logging.NullHandler) for h in before)


def test_configure_logging_installs_one_stream_handler(package_root_logger):
    first = configure_logging('debug', json_output=False)
    second = configure_logging('warning', json_output=True)

    assert first is second
    assert package_root_logger.handlers.count(first) == 1
    assert isinstance(first.formatter, JsonFormatter)
    assert package_root_logger.level == logging.WARNING
    assert package_root_logger.propagate is False


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord('budget_intelligence.test', logging.WARNING, __file__, 1, 'bad key %s', ('x',), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload == {'level': 'WARNING', 'message': 'bad key x', 'logger': 'budget_intelligence.test'}


def test_format_currency():
    assert format_currency(1234.5, include_sign=False) == '1,234.50'
    assert format_currency(3500) == f'{CURRENCY_SYMBOL}3,500.00'


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3849.5) == 3850
    assert round_half_up(-2.5) == -2
    assert round_half_up(float('nan')) == 0
