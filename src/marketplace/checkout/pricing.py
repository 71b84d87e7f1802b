"""Checkout pricing: subtotal, the flat 12% tax, seller partitioning and
the delivery confirmation code."""

import secrets
from collections import OrderedDict
from decimal import Decimal

from marketplace.utils.money import CURRENCY, round_money, sum_lines

# Combined delivery and service fee, applied to the subtotal.
TAX_RATE = Decimal("0.12")

CONFIRMATION_CODE_MIN = 100000
CONFIRMATION_CODE_MAX = 999999


def price_lines(lines):
    """Price checkout lines (dicts with unit_price and quantity).

    Returns floats, ready to be frozen onto the order.
    """
    subtotal = sum_lines(lines)
    tax = round_money(subtotal * TAX_RATE)
    return {
        "subtotal": float(subtotal),
        "tax": float(tax),
        "total": float(subtotal + tax),
        "currency": CURRENCY,
    }


def group_by_seller(lines):
    """Partition lines by seller_id, keeping first-seen seller order."""
    groups = OrderedDict()
    for line in lines:
        groups.setdefault(str(line["seller_id"]), []).append(line)
    return groups


def generate_confirmation_code():
    """Six-digit handoff code, uniform over [100000, 999999]."""
    return str(CONFIRMATION_CODE_MIN + secrets.randbelow(CONFIRMATION_CODE_MAX - CONFIRMATION_CODE_MIN + 1))
