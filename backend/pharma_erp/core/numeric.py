"""
Numeric helpers shared by the aggregator, the stock transaction and exports.

Form fields arrive as free text ("12", "12.5", "12 kg", ""), while stored
inventory quantities are decimal strings. safe_number() is the forgiving
reader for form input; parse_quantity() is the strict reader used at the
storage boundary and yields an exact Decimal.
"""
from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pharma_erp.core.config import settings

# Leading decimal number, optionally signed, optionally with exponent
_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def safe_number(value: Any) -> float:
    """
    Read a form value as a float. Never raises.

    Numbers pass through, strings are parsed from their leading numeric
    prefix ("12kg" -> 12.0), everything else (None, "", "abc", NaN) is 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        n = float(value)
        return n if math.isfinite(n) else 0.0
    if isinstance(value, str):
        m = _LEADING_NUMBER_RE.match(value)
        if not m:
            return 0.0
        try:
            n = float(m.group(1))
        except ValueError:
            return 0.0
        return n if math.isfinite(n) else 0.0
    return 0.0


def to_quantity(value: Any) -> Decimal:
    """A quantity already read as a number, as an exact Decimal (0.1 -> Decimal("0.1"))."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_quantity(value: Any) -> Decimal:
    """
    Strictly parse a stored quantity. Empty/None is 0; junk raises ValueError.
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise ValueError(f"not a quantity: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        text = str(value).strip()
        if not text:
            return Decimal(0)
    try:
        n = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a quantity: {value!r}") from None
    if not n.is_finite():
        raise ValueError(f"not a finite quantity: {value!r}")
    return n


def format_quantity(quantity: Any) -> str:
    """Canonical text form of a quantity: 200.0 -> "200", 12.5 -> "12.5"."""
    q = to_quantity(quantity)
    if q == 0:
        return "0"
    if q == q.to_integral_value():
        return str(int(q))
    return format(q.normalize(), "f")


def round_money(amount: float) -> float:
    return round(amount + 0.0, 2)


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount: Any, symbol: Optional[str] = None) -> str:
    """Format an amount as en-IN currency, e.g. 1234567.5 -> '₹12,34,567.50'."""
    if symbol is None:
        symbol = settings.CURRENCY_SYMBOL
    n = round(safe_number(amount), 2)
    sign = "-" if n < 0 else ""
    whole, frac = f"{abs(n):.2f}".split(".")
    return f"{sign}{symbol}{_group_indian(whole)}.{frac}"
