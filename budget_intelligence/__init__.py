"""Top-level package for the budget intelligence engines.

This package turns a flat list of income/expense transactions into budget
forecasts and financial analytics. The primary modules are:

* ``transactions`` – normalization of loosely typed transaction records
* ``patterns`` – per-category spending statistics
* ``forecast`` – budget forecasts, insights and optimization suggestions
* ``analytics`` – financial health, trends, predictions and budget tracking

Both engines are pure computations over the snapshot they are constructed
with:

```python
from budget_intelligence import ForecastEngine

engine = ForecastEngine(transactions, {'emergencyBuffer': 15})
forecast = engine.generate_forecast()
```
"""

from .analytics import AnalyticsEngine  # noqa: F401  # re-exported for convenience
from .forecast import BudgetForecast, ForecastEngine  # noqa: F401
from .patterns import PatternAnalyzer, SpendingPattern  # noqa: F401
from .settings import BudgetSettings, load_settings, save_settings  # noqa: F401
from .transactions import Transaction, parse_transaction, parse_transactions  # noqa: F401

__all__ = [
    "AnalyticsEngine",
    "BudgetForecast",
    "BudgetSettings",
    "ForecastEngine",
    "PatternAnalyzer",
    "SpendingPattern",
    "Transaction",
    "load_settings",
    "parse_transaction",
    "parse_transactions",
    "save_settings",
]
