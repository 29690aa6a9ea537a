"""Budget settings value object and JSON persistence helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .config import (
    DEFAULT_EMERGENCY_BUFFER,
    DEFAULT_MONTHLY_BUDGET,
    DEFAULT_SAVINGS_TARGET,
    SETTINGS_PATH,
)
from .log import get_logger

logger = get_logger(__name__)

# Keys written by the web front-end
CAMEL_CASE_KEYS = {
    'monthlyBudget': 'monthly_budget',
    'categoryBudgets': 'category_budgets',
    'autoAdjust': 'auto_adjust',
    'learningEnabled': 'learning_enabled',
    'emergencyBuffer': 'emergency_buffer',
    'savingsTarget': 'savings_target',
}
NUMERIC_FIELDS = {'monthly_budget', 'emergency_buffer', 'savings_target'}
FLAG_FIELDS = {'auto_adjust', 'learning_enabled'}


@dataclass(frozen=True)
class BudgetSettings:
    """Tunable inputs for the forecast and analytics engines.

    Values are immutable; ``updated`` returns a new instance so a settings
    object shared between engines can never be changed from under one of
    them.
    """

    monthly_budget: float = DEFAULT_MONTHLY_BUDGET
    category_budgets: Mapping[str, float] = field(default_factory=dict, hash=False)
    auto_adjust: bool = True
    learning_enabled: bool = True
    emergency_buffer: float = DEFAULT_EMERGENCY_BUFFER  # percent
    savings_target: float = DEFAULT_SAVINGS_TARGET  # percent, informational

    def __post_init__(self):
        # Private read-only copy
        object.__setattr__(self, 'category_budgets', MappingProxyType(dict(self.category_budgets)))

    def updated(self, patch: Optional[Mapping[str, Any]] = None, **changes: Any) -> 'BudgetSettings':
        """Return a copy with ``patch``/``changes`` merged over this value."""
        merged: Dict[str, Any] = {}
        merged.update(_normalize_keys(patch or {}))
        merged.update(_normalize_keys(changes))
        valid = {f.name for f in fields(self)}
        unknown = sorted(set(merged) - valid)
        if unknown:
            logger.warning('Ignoring unknown budget settings: %s', ', '.join(unknown))
        cleaned = {
            key: _coerce_field(key, value, getattr(self, key))
            for key, value in merged.items()
            if key in valid
        }
        return replace(self, **cleaned)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'monthly_budget': self.monthly_budget,
            'category_budgets': dict(self.category_budgets),
            'auto_adjust': self.auto_adjust,
            'learning_enabled': self.learning_enabled,
            'emergency_buffer': self.emergency_buffer,
            'savings_target': self.savings_target,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BudgetSettings':
        if not isinstance(data, Mapping):
            return cls()
        return cls().updated(data)


def coerce_settings(value: Union[BudgetSettings, Mapping[str, Any], None]) -> BudgetSettings:
    """Accept ``None``, a ``BudgetSettings`` or a partial mapping."""
    if isinstance(value, BudgetSettings):
        return value
    if value is None:
        return BudgetSettings()
    return BudgetSettings.from_dict(value)


def load_settings(path: Path | None = None) -> BudgetSettings:
    target = path or SETTINGS_PATH
    if not target.exists():
        return BudgetSettings()
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError):
        logger.warning('Could not read budget settings from %s, using defaults', target)
        return BudgetSettings()
    return BudgetSettings.from_dict(data)


def save_settings(settings: BudgetSettings, path: Path | None = None) -> None:
    target = path or SETTINGS_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open('w', encoding='utf-8') as handle:
        json.dump(settings.to_dict(), handle, indent=2, sort_keys=True)


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {CAMEL_CASE_KEYS.get(key, key): value for key, value in data.items()}


def _coerce_field(key: str, value: Any, current: Any) -> Any:
    if key in NUMERIC_FIELDS:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return current
        return number if np.isfinite(number) else current
    if key in FLAG_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in {'1', 'true', 'yes', 'on'}
        return bool(value)
    if key == 'category_budgets':
        if not isinstance(value, Mapping):
            return current
        budgets: Dict[str, float] = {}
        for category, amount in value.items():
            try:
                budgets[str(category)] = float(amount)
            except (TypeError, ValueError):
                continue
        return budgets
    return value
