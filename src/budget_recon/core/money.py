from __future__ import annotations
import math
import re
from typing import Any

DEFAULT_CURRENCY = "£"

_LEADING_NUM = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")


def format_currency(amount: Any, symbol: str = DEFAULT_CURRENCY) -> str:
    """Symbol + two decimals, no thousands separator: 900 -> '£900.00'."""
    return f"{symbol}{parse_number(amount):.2f}"


def parse_number(value: Any, symbol: str = DEFAULT_CURRENCY) -> float:
    """Lenient number read: strips the currency symbol and commas, 0.0 for anything unparseable."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        v = float(value)
        return v if math.isfinite(v) else 0.0
    s = str(value)
    if symbol:
        s = s.replace(symbol, "")
    s = s.replace(",", "").strip()
    if not s:
        return 0.0
    try:
        v = float(s)
    except ValueError:
        # like a browser's parseFloat: take the leading number, if any
        m = _LEADING_NUM.match(s)
        if not m:
            return 0.0
        v = float(m.group(0))
    return v if math.isfinite(v) else 0.0
