from __future__ import annotations

from ..extensions import db
from oilpos.time_utils import to_utc_z

ENTRY_DEBIT = "debit"
ENTRY_CREDIT = "credit"


class CustomerLedgerEntry(db.Model):
    """
    Append-only running-balance ledger per customer.

    ENTRY TYPES:
    - debit: customer owes more (a purchase)
    - credit: customer owes less (a payment or a refund)

    INVARIANT: ordered by id, balance_cents is the running sum of signed
    amounts (credit +, debit -) starting from 0. A negative balance is the
    amount the customer owes.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "customer_ledger"
    __table_args__ = (
        db.CheckConstraint("entry_type IN ('debit', 'credit')", name="ck_customer_ledger_entry_type"),
        db.CheckConstraint("amount_cents >= 0", name="ck_customer_ledger_amount_non_negative"),
        db.Index("ix_customer_ledger_customer_id_id", "customer_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=True, index=True)

    entry_type = db.Column(db.String(8), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    balance_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("ledger_entries", lazy=True))

    @property
    def signed_amount_cents(self) -> int:
        return self.amount_cents if self.entry_type == ENTRY_CREDIT else -self.amount_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "bill_id": self.bill_id,
            "entry_type": self.entry_type,
            "amount_cents": self.amount_cents,
            "balance_cents": self.balance_cents,
            "description": self.description,
            "occurred_at": to_utc_z(self.occurred_at),
        }
