"""Decimal helpers for naira amounts.

Amounts are stored as floats on aggregates and events; arithmetic goes
through Decimal and is rounded half-up to kobo.
"""

from decimal import ROUND_HALF_UP, Decimal

Money = Decimal

CURRENCY = "NGN"
_KOBO = Decimal("0.01")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Money:
    return D(x).quantize(_KOBO, rounding=ROUND_HALF_UP)


def line_amount(unit_price, quantity) -> Money:
    return round_money(D(unit_price) * int(quantity))


def sum_lines(lines) -> Money:
    """Sum ``unit_price * quantity`` over objects or dicts carrying those keys."""
    total = Decimal("0")
    for line in lines:
        if isinstance(line, dict):
            total += line_amount(line["unit_price"], line.get("quantity", 1))
        else:
            total += line_amount(line.unit_price, line.quantity)
    return round_money(total)
