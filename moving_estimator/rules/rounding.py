"""
Rounding — the single rounding step of an estimate.

Mode is ROUND_HALF_UP (half away from zero), never banker's rounding.
The half-way decision is taken on repr(value), the shortest decimal string
that round-trips the float, so 2.675 rounds to 2.68 on every host even
though its binary value is slightly below 2.675.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


class Rounder:

    def round(self, value: float) -> float:
        return float(Decimal(repr(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    return Rounder().round(value)
