# Overview: Fixed-point money helpers shared by the billing calculation and payment code.

"""
Money and rate primitives.

All amounts are integer cents; all percentages are integer basis points
(1% == 100 bps). Fractions of a cent only appear inside a single
computation and are resolved immediately with round-half-up, so totals
never drift the way binary floats do.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from .validation import ValidationError

BPS_PER_UNIT = 10_000

ADJUSTMENT_AMOUNT = "amount"
ADJUSTMENT_PERCENT = "percent"
ADJUSTMENT_TYPES = (ADJUSTMENT_AMOUNT, ADJUSTMENT_PERCENT)

_CENT = Decimal("0.01")


def round_half_up(numerator: int, denominator: int) -> int:
    """Divide two integers and round half away from zero."""
    quotient = Decimal(numerator) / Decimal(denominator)
    return int(quotient.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_of(amount_cents: int, rate_bps: int) -> int:
    return round_half_up(amount_cents * rate_bps, BPS_PER_UNIT)


def resolve_adjustment(base_cents: int, value: int, kind: str) -> int:
    """
    Resolve a discount given either as a flat amount (cents) or as a
    percentage (bps) of base_cents. Negative values pass through unchanged.
    """
    if kind == ADJUSTMENT_PERCENT:
        return percent_of(base_cents, value)
    if kind == ADJUSTMENT_AMOUNT:
        return value
    raise ValidationError(f"Invalid adjustment type: {kind}. Must be one of {list(ADJUSTMENT_TYPES)}")


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(_CENT, rounding=ROUND_HALF_UP)


def format_cents(cents: int) -> str:
    return f"{cents_to_decimal(cents):.2f}"
