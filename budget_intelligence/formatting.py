"""Formatting utilities for amounts embedded in generated messages."""

from __future__ import annotations

import math
from typing import Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with thousands separators.

    Args:
        amount: The amount to format
        include_sign: Whether to prefix the configured currency symbol

    Returns:
        Formatted currency string (e.g., "₱1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    return f"{CURRENCY_SYMBOL}{formatted}" if include_sign else formatted


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3).

    Non-finite input rounds to 0.
    """
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))
