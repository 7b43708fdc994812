"""
Return Processing Service

WHY: A customer brings back part of a purchase. The product goes back on
the shelf and the customer is refunded (or owes less), while the original
bill item stays untouched as the record of what was sold.

DESIGN PRINCIPLES:
- Returns reference the original bill and a product sold on it
- Cumulative returns for a bill + product never exceed the quantity sold
- Stock is restored with an atomic increment
- Refund defaults to the pro-rata share of what the customer was charged
- Immutable audit trail (returns are never edited)
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import Bill, BillItem, Return
from ..models.billing import CALCULATION_MODE_ITEMIZED
from ..models.ledger import ENTRY_CREDIT
from ..money import round_half_up
from ..validation import NotFoundError, ValidationError, coerce_int, optional_int, require_non_negative_int
from oilpos.time_utils import utcnow
from .concurrency import atomic, lock_for_update
from .inventory_service import increment_stock
from .ledger_service import append_ledger_entry

logger = logging.getLogger(__name__)


class ReturnError(ValidationError):
    """Raised for return operation errors."""
    pass


def _sold_items(bill_id: int, product_id: int) -> list[BillItem]:
    return (
        db.session.query(BillItem)
        .filter_by(bill_id=bill_id, product_id=product_id)
        .order_by(BillItem.id.asc())
        .all()
    )


def _returned_quantity(bill_id: int, product_id: int) -> int:
    total = db.session.query(func.coalesce(func.sum(Return.quantity), 0)).filter(
        Return.bill_id == bill_id,
        Return.product_id == product_id,
    ).scalar()
    return int(total or 0)


def returnable_quantity(bill_id: int, product_id: int) -> int:
    """Units of a product on a bill that can still be returned."""
    if not db.session.get(Bill, bill_id):
        raise NotFoundError(f"Bill {bill_id} not found")

    sold = sum(item.quantity for item in _sold_items(bill_id, product_id))
    return max(0, sold - _returned_quantity(bill_id, product_id))


def suggest_refund_cents(bill: Bill, items: list[BillItem], quantity: int) -> int:
    """
    Pro-rata refund for `quantity` units of the product on these items.

    Itemized bills refund the resolved line totals. Global bills refund the
    product's share of the bill total, so the bill-level discount and tax
    are returned proportionally.
    """
    sold = sum(item.quantity for item in items)
    if sold <= 0:
        return 0

    if bill.calculation_mode == CALCULATION_MODE_ITEMIZED:
        charged = sum(item.line_total_cents for item in items)
        return round_half_up(charged * quantity, sold)

    base = sum(item.line_subtotal_cents for item in items)
    if bill.subtotal_cents <= 0:
        return 0
    return round_half_up(bill.total_amount_cents * base * quantity, bill.subtotal_cents * sold)


def process_return(
    bill_id: int,
    product_id: int,
    quantity: int,
    refund_amount_cents: int | None = None,
    reason: str | None = None,
) -> Return:
    """
    Return units of a product sold on a bill.

    Args:
        bill_id: Original bill
        product_id: Product being returned (must be on the bill)
        quantity: Units returned, > 0
        refund_amount_cents: Amount refunded; defaults to the pro-rata charge
        reason: Free-text reason ("defective")

    Returns:
        The Return record

    Raises:
        ReturnError: invalid quantity/refund or more than was sold
        NotFoundError: unknown bill, or product not on the bill
    """
    quantity = coerce_int(quantity, "quantity")
    if quantity <= 0:
        raise ReturnError("Return quantity must be positive")

    refund_amount_cents = optional_int(refund_amount_cents, "refund_amount_cents")
    if refund_amount_cents is not None:
        refund_amount_cents = require_non_negative_int(refund_amount_cents, "refund_amount_cents")

    reason = (reason or "").strip() or None

    def _op():
        bill = lock_for_update(db.session.query(Bill).filter_by(id=bill_id)).first()
        if not bill:
            raise NotFoundError(f"Bill {bill_id} not found")

        items = _sold_items(bill_id, product_id)
        if not items:
            raise NotFoundError(f"Product {product_id} was not sold on bill {bill_id}")

        sold = sum(item.quantity for item in items)
        already_returned = _returned_quantity(bill_id, product_id)
        if already_returned + quantity > sold:
            raise ReturnError(
                f"Cannot return {quantity} units. Original quantity: {sold}, "
                f"already returned: {already_returned}, available: {sold - already_returned}"
            )

        refund = refund_amount_cents
        if refund is None:
            refund = suggest_refund_cents(bill, items, quantity)

        returned_at = utcnow()
        return_doc = Return(
            bill_id=bill.id,
            product_id=product_id,
            quantity=quantity,
            refund_amount_cents=refund,
            reason=reason,
            returned_at=returned_at,
        )
        db.session.add(return_doc)
        db.session.flush()

        increment_stock(product_id, quantity)

        if bill.customer_id is not None:
            append_ledger_entry(
                customer_id=bill.customer_id,
                entry_type=ENTRY_CREDIT,
                amount_cents=refund,
                bill_id=bill.id,
                description=f"Return on bill #{bill.id}" + (f": {reason}" if reason else ""),
                occurred_at=returned_at,
            )

        return return_doc

    return_doc = atomic(_op)
    logger.info(
        "Processed return %s: bill=%s product=%s quantity=%s refund=%s",
        return_doc.id, bill_id, product_id, quantity, return_doc.refund_amount_cents,
    )
    return return_doc


def get_bill_returns(bill_id: int) -> list[Return]:
    if not db.session.get(Bill, bill_id):
        raise NotFoundError(f"Bill {bill_id} not found")

    return (
        db.session.query(Return)
        .filter_by(bill_id=bill_id)
        .order_by(Return.id.asc())
        .all()
    )
