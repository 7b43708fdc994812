# Overview: Service-layer operations for the customer ledger; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..extensions import db
from ..models import Customer, CustomerLedgerEntry
from ..models.ledger import ENTRY_CREDIT, ENTRY_DEBIT
from ..validation import NotFoundError, ValidationError, require_non_negative_int
from oilpos.time_utils import utcnow
"""
Customer Ledger Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- Entries are written inside the same DB transaction as the bill, payment
  or return they record; this module flushes but never commits.
- balance_cents is the running balance AFTER the entry:
  balance[n] = balance[n-1] + amount (credit) or - amount (debit),
  with the balance before the first entry equal to 0.
- Ordering is by id (insertion order), not by occurred_at.
"""

ENTRY_TYPES = (ENTRY_DEBIT, ENTRY_CREDIT)


def _signed(entry_type: str, amount_cents: int) -> int:
    return amount_cents if entry_type == ENTRY_CREDIT else -amount_cents


def get_customer_balance(customer_id: int) -> int:
    """Latest running balance for a customer (0 when the ledger is empty)."""
    balance = (
        db.session.query(CustomerLedgerEntry.balance_cents)
        .filter(CustomerLedgerEntry.customer_id == customer_id)
        .order_by(CustomerLedgerEntry.id.desc())
        .limit(1)
        .scalar()
    )
    return balance or 0


def append_ledger_entry(
    *,
    customer_id: int,
    entry_type: str,
    amount_cents: int,
    bill_id: int | None = None,
    description: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> CustomerLedgerEntry:
    """
    Append one entry continuing the customer's running balance.

    - debit: purchase, the customer owes more
    - credit: payment or refund, the customer owes less
    """
    if entry_type not in ENTRY_TYPES:
        raise ValidationError(f"Invalid ledger entry type: {entry_type}. Must be one of {list(ENTRY_TYPES)}")
    amount_cents = require_non_negative_int(amount_cents, "amount_cents")

    previous = get_customer_balance(customer_id)

    entry = CustomerLedgerEntry(
        customer_id=customer_id,
        bill_id=bill_id,
        entry_type=entry_type,
        amount_cents=amount_cents,
        balance_cents=previous + _signed(entry_type, amount_cents),
        description=description,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def get_customer_ledger(customer_id: int) -> list[CustomerLedgerEntry]:
    """All ledger entries for a customer, newest first."""
    if not db.session.get(Customer, customer_id):
        raise NotFoundError(f"Customer {customer_id} not found")

    return (
        db.session.query(CustomerLedgerEntry)
        .filter(CustomerLedgerEntry.customer_id == customer_id)
        .order_by(CustomerLedgerEntry.id.desc())
        .all()
    )


def verify_customer_ledger(customer_id: int) -> list[int]:
    """
    Replay a customer's ledger in insertion order and return the ids of
    entries whose stored balance does not match the running sum.
    """
    entries = (
        db.session.query(CustomerLedgerEntry)
        .filter(CustomerLedgerEntry.customer_id == customer_id)
        .order_by(CustomerLedgerEntry.id.asc())
        .all()
    )

    broken = []
    running = 0
    for entry in entries:
        running += entry.signed_amount_cents
        if entry.balance_cents != running:
            broken.append(entry.id)
            running = entry.balance_cents
    return broken
