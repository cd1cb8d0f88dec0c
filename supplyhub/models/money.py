# supplyhub/models/money.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Numbers and numeric strings become a non-negative 2-place Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("amount must be a number")
    if not amount.is_finite():
        raise ValueError("amount must be finite")
    if amount < 0:
        raise ValueError("amount must be >= 0")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Any) -> str:
    return str(to_money(value))


def line_total(quantity: int, unit_price: Any) -> Decimal:
    return (to_money(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Any]) -> Decimal:
    total = Decimal("0.00")
    for v in values:
        total += to_money(v)
    return total.quantize(CENT)
