# Overview: Pure bill calculation engine (no database access).

"""
Bill Calculation Engine

WHY: Totals are derived on the server from the cart, never accepted from
the client. The same cart must always produce the same numbers, so this
module is side-effect free and works on integer cents only.

CALCULATION MODES:
- global: one discount and one tax rate apply to the bill subtotal.
  Per-item discount/tax fields are ignored for totals.
- itemized: each line resolves its own discount and tax; bill totals are
  sums of the resolved lines. Global fields are ignored.

ROUNDING: every derived amount is rounded half-up to a whole cent at the
point it is produced, and the after-discount amount is floored at zero
(per line in itemized mode, per bill in global mode).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..models.billing import CALCULATION_MODE_GLOBAL, CALCULATION_MODE_ITEMIZED
from ..money import ADJUSTMENT_AMOUNT, ADJUSTMENT_TYPES, percent_of, resolve_adjustment
from ..validation import ValidationError, coerce_int, require_rate_bps

CALCULATION_MODES = (CALCULATION_MODE_GLOBAL, CALCULATION_MODE_ITEMIZED)


class BillingError(ValidationError):
    """Raised for bill calculation and checkout errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class CartLine:
    unit_price_cents: int
    quantity: int
    discount_value: int = 0
    discount_type: str = ADJUSTMENT_AMOUNT
    tax_rate_bps: int = 0


@dataclass(frozen=True)
class LineBreakdown:
    base_cents: int
    discount_cents: int
    after_discount_cents: int
    tax_cents: int
    total_cents: int


@dataclass(frozen=True)
class BillBreakdown:
    mode: str
    subtotal_cents: int
    discount_cents: int
    after_discount_cents: int
    tax_cents: int
    total_cents: int
    lines: tuple[LineBreakdown, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "calculation_mode": self.mode,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "after_discount_cents": self.after_discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "lines": [
                {
                    "base_cents": line.base_cents,
                    "discount_cents": line.discount_cents,
                    "after_discount_cents": line.after_discount_cents,
                    "tax_cents": line.tax_cents,
                    "total_cents": line.total_cents,
                }
                for line in self.lines
            ],
        }


def validate_mode(mode: str) -> str:
    if mode not in CALCULATION_MODES:
        raise BillingError(f"Invalid calculation mode: {mode}. Must be one of {list(CALCULATION_MODES)}")
    return mode


def validate_adjustment_type(kind: str) -> str:
    if kind not in ADJUSTMENT_TYPES:
        raise BillingError(f"Invalid discount type: {kind}. Must be one of {list(ADJUSTMENT_TYPES)}")
    return kind


def _line_base(line: CartLine) -> int:
    quantity = coerce_int(line.quantity, "quantity")
    if quantity <= 0:
        raise BillingError("quantity must be > 0")
    unit_price = coerce_int(line.unit_price_cents, "unit_price_cents")
    if unit_price < 0:
        raise BillingError("unit_price_cents must be >= 0")
    return unit_price * quantity


def _undiscounted_line(line: CartLine) -> LineBreakdown:
    """Global-mode line: price x quantity, item discount and tax not applied."""
    base = _line_base(line)
    return LineBreakdown(
        base_cents=base,
        discount_cents=0,
        after_discount_cents=base,
        tax_cents=0,
        total_cents=base,
    )


def calculate_line(line: CartLine) -> LineBreakdown:
    """Resolve one cart line: base, discount, floor at zero, tax, total."""
    base = _line_base(line)
    discount_type = validate_adjustment_type(line.discount_type)
    discount = resolve_adjustment(base, coerce_int(line.discount_value, "discount_value"), discount_type)
    after_discount = max(0, base - discount)
    tax = percent_of(after_discount, require_rate_bps(line.tax_rate_bps, "tax_rate_bps"))

    return LineBreakdown(
        base_cents=base,
        discount_cents=discount,
        after_discount_cents=after_discount,
        tax_cents=tax,
        total_cents=after_discount + tax,
    )


def calculate_bill(
    lines: Iterable[CartLine],
    mode: str,
    *,
    global_discount_value: int = 0,
    global_discount_type: str = ADJUSTMENT_AMOUNT,
    global_tax_rate_bps: int = 0,
) -> BillBreakdown:
    """
    Compute the bill totals for a cart under exactly one calculation mode.

    Returns the per-line breakdowns in both modes (for receipt display).
    In global mode the item discount/tax fields are neither validated nor
    applied; the lines carry price x quantity only.
    """
    validate_mode(mode)
    cart = list(lines)
    if not cart:
        raise BillingError("Cannot bill an empty cart")

    if mode == CALCULATION_MODE_ITEMIZED:
        breakdowns = tuple(calculate_line(line) for line in cart)
        subtotal = sum(b.base_cents for b in breakdowns)
        discount = sum(b.discount_cents for b in breakdowns)
        tax = sum(b.tax_cents for b in breakdowns)
        total = sum(b.total_cents for b in breakdowns)
        return BillBreakdown(
            mode=mode,
            subtotal_cents=subtotal,
            discount_cents=discount,
            after_discount_cents=total - tax,
            tax_cents=tax,
            total_cents=total,
            lines=breakdowns,
        )

    breakdowns = tuple(_undiscounted_line(line) for line in cart)
    subtotal = sum(b.base_cents for b in breakdowns)

    validate_adjustment_type(global_discount_type)
    global_discount_value = coerce_int(global_discount_value, "global_discount_value")
    global_tax_rate_bps = require_rate_bps(global_tax_rate_bps, "global_tax_rate_bps")

    discount = resolve_adjustment(subtotal, global_discount_value, global_discount_type)
    after_discount = max(0, subtotal - discount)
    tax = percent_of(after_discount, global_tax_rate_bps)

    return BillBreakdown(
        mode=mode,
        subtotal_cents=subtotal,
        discount_cents=discount,
        after_discount_cents=after_discount,
        tax_cents=tax,
        total_cents=after_discount + tax,
        lines=breakdowns,
    )
