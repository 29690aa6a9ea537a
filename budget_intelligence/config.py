"""Configuration management for the budget intelligence engines.

This module centralizes default settings values, file locations and
environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in budget_intelligence/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


# Default budget settings
DEFAULT_MONTHLY_BUDGET = _env_float('BUDGET_MONTHLY_BUDGET', 50000.0)
DEFAULT_EMERGENCY_BUFFER = _env_float('BUDGET_EMERGENCY_BUFFER', 10.0)
DEFAULT_SAVINGS_TARGET = _env_float('BUDGET_SAVINGS_TARGET', 20.0)

# Display
CURRENCY_SYMBOL = os.getenv('BUDGET_CURRENCY_SYMBOL', '₱')

# Data directories
DATA_DIR = Path(os.getenv('BUDGET_DATA_DIR', _PROJECT_ROOT / 'data'))
SETTINGS_PATH = Path(
    os.getenv('BUDGET_SETTINGS_PATH', DATA_DIR / 'budget_settings.json')
).resolve()

# Logging
LOG_LEVEL = os.getenv('BUDGET_LOG_LEVEL', 'INFO').upper()
LOG_JSON = _env_flag('BUDGET_LOG_JSON')

