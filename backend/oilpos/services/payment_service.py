# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment/Ledger Update Service

WHY: Credit sales are settled over time. Each later payment updates the
bill's running payment fields, appends to the payment log and, for known
customers, credits the customer ledger.

DESIGN PRINCIPLES:
- Invalid amounts are rejected before anything is read or written
- Overpayment is rejected, so amount_paid + balance_due == total always holds
- The latest payment mode wins on the bill header
- All writes for one payment commit together
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Bill, BillPayment
from ..models.billing import PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL
from ..models.ledger import ENTRY_CREDIT
from ..validation import NotFoundError, ValidationError, coerce_int
from oilpos.time_utils import utcnow
from .concurrency import atomic, lock_for_update
from .ledger_service import append_ledger_entry

logger = logging.getLogger(__name__)


class PaymentError(ValidationError):
    """Raised for payment operation errors."""
    pass


def record_payment(bill_id: int, amount_cents: int, payment_mode: str) -> Bill:
    """
    Record an additional payment against an existing bill.

    Args:
        bill_id: Bill being paid
        amount_cents: Amount received (in cents), must be > 0
        payment_mode: Cash, Card, UPI...

    Returns:
        The updated Bill

    Raises:
        PaymentError: amount invalid, bill already paid, or amount exceeds balance
        NotFoundError: bill does not exist
    """
    amount_cents = coerce_int(amount_cents, "amount_cents")
    if amount_cents <= 0:
        raise PaymentError("Payment amount must be positive")

    payment_mode = (payment_mode or "").strip()
    if not payment_mode:
        raise PaymentError("payment_mode is required")

    def _op():
        bill = lock_for_update(db.session.query(Bill).filter_by(id=bill_id)).first()
        if not bill:
            raise NotFoundError(f"Bill {bill_id} not found")

        if bill.balance_due_cents <= 0:
            raise PaymentError(f"Bill {bill_id} has no remaining balance due")

        if amount_cents > bill.balance_due_cents:
            raise PaymentError(
                f"Payment of {amount_cents} exceeds balance due of {bill.balance_due_cents}"
            )

        new_amount_paid = bill.amount_paid_cents + amount_cents
        new_balance = max(0, bill.total_amount_cents - new_amount_paid)

        bill.amount_paid_cents = new_amount_paid
        bill.balance_due_cents = new_balance
        bill.payment_mode = payment_mode
        bill.payment_status = PAYMENT_STATUS_PAID if new_balance <= 0 else PAYMENT_STATUS_PARTIAL

        paid_at = utcnow()
        db.session.add(BillPayment(
            bill_id=bill.id,
            amount_cents=amount_cents,
            payment_mode=payment_mode,
            paid_at=paid_at,
        ))

        if bill.customer_id is not None:
            append_ledger_entry(
                customer_id=bill.customer_id,
                entry_type=ENTRY_CREDIT,
                amount_cents=amount_cents,
                bill_id=bill.id,
                description=f"Payment for bill #{bill.id} ({payment_mode})",
                occurred_at=paid_at,
            )

        return bill

    bill = atomic(_op)
    logger.info("Recorded payment of %s on bill %s (%s)", amount_cents, bill.id, bill.payment_status)
    return bill


def get_bill_payments(bill_id: int) -> list[BillPayment]:
    """All payments for a bill, in the order they were taken."""
    if not db.session.get(Bill, bill_id):
        raise NotFoundError(f"Bill {bill_id} not found")

    return (
        db.session.query(BillPayment)
        .filter_by(bill_id=bill_id)
        .order_by(BillPayment.id.asc())
        .all()
    )


def get_payment_summary(bill_id: int) -> dict:
    """
    Payment summary for a bill.

    Returns:
        - total_amount_cents, amount_paid_cents, balance_due_cents
        - payment_status, payment_mode
        - payments: list of payment records
    """
    bill = db.session.get(Bill, bill_id)
    if not bill:
        raise NotFoundError(f"Bill {bill_id} not found")

    payments = get_bill_payments(bill_id)

    return {
        "bill_id": bill.id,
        "total_amount_cents": bill.total_amount_cents,
        "amount_paid_cents": bill.amount_paid_cents,
        "balance_due_cents": bill.balance_due_cents,
        "payment_status": bill.payment_status,
        "payment_mode": bill.payment_mode,
        "payments": [p.to_dict() for p in payments],
    }
