"""Compact number formatting for balances shown in chat."""

import math
from decimal import Decimal


def _one_decimal(value: float) -> str:
    # "#.#" style: at most one decimal, trailing zero dropped
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def strip_trailing_zeros(value: float) -> str:
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return _one_decimal(value)


def format_compact(value: float) -> str:
    """
    Format a balance as 999, 1.5k, 2M or 3B.

    >>> format_compact(1500)
    '1.5k'
    """
    if not math.isfinite(value):
        return "0"
    magnitude = abs(value)
    if magnitude >= 1_000_000_000:
        return _one_decimal(value / 1_000_000_000) + "B"
    if magnitude >= 1_000_000:
        return _one_decimal(value / 1_000_000) + "M"
    if magnitude >= 1_000:
        return _one_decimal(value / 1_000) + "k"
    return strip_trailing_zeros(value)


def format_amount(value: float) -> str:
    """Exact amount with trailing zeros removed, e.g. 0.25 or 3."""
    if not math.isfinite(value):
        return "0"
    return format(Decimal(str(value)).normalize(), "f")
