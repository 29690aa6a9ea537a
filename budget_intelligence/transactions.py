"""Transaction normalization.

Records arrive from forms and APIs with optional or malformed fields.
``parse_transaction`` turns any of them into a strict ``Transaction`` so the
engines never deal with missing values themselves:

* amounts are coerced to a float magnitude, or ``nan`` when not a finite number
* unparseable, empty or relative ("today") dates become ``None``
* blank text fields take their defaults (``"Other"``, ``"No description"``)
* a missing or unknown ``type`` is inferred from the sign of the raw amount
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd

INCOME = 'income'
EXPENSE = 'expense'
TRANSACTION_TYPES = {INCOME, EXPENSE}

DEFAULT_CATEGORY = 'Other'
DEFAULT_DESCRIPTION = 'No description'
RELATIVE_DATE_WORDS = {'now', 'today', 'tomorrow', 'yesterday'}

FRAME_COLUMNS = [
    'id', 'amount', 'description', 'category', 'date', 'type',
    'account', 'tags', 'recurring', 'merchant', 'record',
]


@dataclass(frozen=True)
class Transaction:
    id: Any
    amount: float
    description: str = DEFAULT_DESCRIPTION
    category: str = DEFAULT_CATEGORY
    date: Optional[pd.Timestamp] = None
    type: str = EXPENSE
    account: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    recurring: bool = False
    merchant: Optional[str] = None

    @property
    def is_valid_amount(self) -> bool:
        return bool(np.isfinite(self.amount)) and self.amount > 0


def parse_transaction(record: Any) -> Transaction:
    """Normalize a loosely typed record into a ``Transaction``.

    ``record`` may be a mapping, any object exposing the fields as
    attributes, or an already parsed ``Transaction``. Never raises for bad
    field values.
    """
    if isinstance(record, Transaction):
        return record

    get = _field_getter(record)
    raw_amount = _coerce_number(get('amount'))

    return Transaction(
        id=get('id'),
        amount=abs(raw_amount) if np.isfinite(raw_amount) else float('nan'),
        description=_clean_text(get('description'), DEFAULT_DESCRIPTION),
        category=_clean_text(get('category'), DEFAULT_CATEGORY),
        date=_coerce_date(get('date')),
        type=_coerce_type(get('type'), raw_amount),
        account=_optional_text(get('account')),
        tags=_coerce_tags(get('tags')),
        recurring=_coerce_flag(get('recurring')),
        merchant=_optional_text(get('merchant')),
    )


def parse_transactions(records: Optional[Iterable[Any]]) -> List[Transaction]:
    """Parse every record, preserving order."""
    if records is None:
        return []
    if isinstance(records, (str, bytes, Mapping)):
        raise TypeError('transactions must be an iterable of records')
    return [parse_transaction(record) for record in records if record is not None]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build the DataFrame the engines compute on.

    Row order follows the input order. The ``record`` column holds the
    originating ``Transaction`` so results can hand records back.
    """
    names = [f.name for f in fields(Transaction)]
    rows = []
    for txn in transactions:
        row = {name: getattr(txn, name) for name in names}
        row['record'] = txn
        rows.append(row)

    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    frame['amount'] = pd.to_numeric(frame['amount'], errors='coerce').astype(float)
    frame['date'] = pd.to_datetime(frame['date'], errors='coerce')
    frame['recurring'] = frame['recurring'].astype(bool)
    return frame


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _field_getter(record: Any):
    if isinstance(record, Mapping):
        return record.get
    return lambda key: getattr(record, key, None)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _coerce_number(value: Any) -> float:
    if _is_missing(value) or isinstance(value, bool):
        return float('nan')
    if isinstance(value, str):
        value = value.strip().replace(',', '')
    try:
        number = pd.to_numeric(value, errors='coerce')
    except (TypeError, ValueError):
        return float('nan')
    try:
        number = float(number)
    except (TypeError, ValueError):
        return float('nan')
    return number if np.isfinite(number) else float('nan')


def _coerce_date(value: Any) -> Optional[pd.Timestamp]:
    if _is_missing(value):
        return None
    if isinstance(value, str):
        # Relative keywords would resolve against the wall clock
        if not value.strip() or value.strip().lower() in RELATIVE_DATE_WORDS:
            return None
    elif not isinstance(value, (datetime, date, np.datetime64)):
        return None
    try:
        parsed = pd.to_datetime(value, errors='coerce')
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert('UTC').tz_localize(None)
    return parsed


def _coerce_type(value: Any, raw_amount: float) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRANSACTION_TYPES:
            return lowered
    # Signed exports: positive flows are income, everything else an expense
    if np.isfinite(raw_amount) and raw_amount > 0:
        return INCOME
    return EXPENSE


def _clean_text(value: Any, default: str) -> str:
    if _is_missing(value):
        return default
    text = str(value).strip()
    return text or default


def _optional_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def _coerce_tags(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    try:
        return frozenset(str(tag).strip() for tag in value if tag is not None and str(tag).strip())
    except TypeError:
        return frozenset()


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 'y'}
    if _is_missing(value):
        return False
    return bool(value)


def reference_time(now: Any = None) -> pd.Timestamp:
    """Naive timestamp used as "now" by the engines."""
    stamp = pd.Timestamp.now() if now is None else pd.Timestamp(now)
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert('UTC').tz_localize(None)
    return stamp
