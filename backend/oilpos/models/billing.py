from __future__ import annotations

from ..extensions import db
from oilpos.time_utils import to_utc_z

CALCULATION_MODE_GLOBAL = "global"
CALCULATION_MODE_ITEMIZED = "itemized"

PAYMENT_STATUS_PAID = "Paid"
PAYMENT_STATUS_PARTIAL = "Partial"
PAYMENT_STATUS_UNPAID = "Unpaid"


class Bill(db.Model):
    """
    Bill (invoice) header.

    WHY: One row per checkout. Totals are computed server-side by the
    billing calculator and frozen here; afterwards only the payment fields
    (amount_paid_cents, payment_mode, payment_status, balance_due_cents)
    change, through payment_service.

    INVARIANT: amount_paid_cents + balance_due_cents == total_amount_cents.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.CheckConstraint(
            "amount_paid_cents + balance_due_cents = total_amount_cents",
            name="ck_bills_payment_closure",
        ),
        db.CheckConstraint(
            "payment_status IN ('Paid', 'Partial', 'Unpaid')",
            name="ck_bills_payment_status",
        ),
        db.CheckConstraint(
            "calculation_mode IN ('global', 'itemized')",
            name="ck_bills_calculation_mode",
        ),
        db.Index("ix_bills_bill_date", "bill_date"),
        db.Index("ix_bills_customer_date", "customer_id", "bill_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # NULL employee means the owner sold it; NULL customer means walk-in
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    # Snapshot of who sold it (survives employee renames)
    seller_name = db.Column(db.String(255), nullable=True)

    # Latest payment mode wins
    payment_mode = db.Column(db.String(32), nullable=False, default="Cash")

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    # discount_value is cents for "amount" and bps for "percent"
    discount_value = db.Column(db.Integer, nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="amount")
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    calculation_mode = db.Column(db.String(16), nullable=False, default=CALCULATION_MODE_GLOBAL)

    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_PAID, index=True)
    amount_paid_cents = db.Column(db.Integer, nullable=False, default=0)
    balance_due_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    employee = db.relationship("Employee", backref=db.backref("bills", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<Bill id={self.id} total={self.total_amount_cents} "
            f"status={self.payment_status!r} mode={self.calculation_mode!r}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_date": to_utc_z(self.bill_date),
            "employee_id": self.employee_id,
            "customer_id": self.customer_id,
            "seller_name": self.seller_name,
            "payment_mode": self.payment_mode,
            "subtotal_cents": self.subtotal_cents,
            "total_amount_cents": self.total_amount_cents,
            "discount_value": self.discount_value,
            "discount_type": self.discount_type,
            "discount_amount_cents": self.discount_amount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_amount_cents": self.tax_amount_cents,
            "calculation_mode": self.calculation_mode,
            "payment_status": self.payment_status,
            "amount_paid_cents": self.amount_paid_cents,
            "balance_due_cents": self.balance_due_cents,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class BillItem(db.Model):
    """
    Line item on a bill. Immutable after creation.

    FROZEN FIELDS: price, cost basis, batch and product name are copied at
    sale time so later product edits never rewrite history. discount_*
    and tax_rate_bps are authoritative only for itemized bills; on global
    bills they are kept for audit.
    """
    __tablename__ = "bill_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_bill_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)
    unit_cost_at_sale_cents = db.Column(db.Integer, nullable=False, default=0)
    batch_number = db.Column(db.String(64), nullable=True)

    discount_value = db.Column(db.Integer, nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="amount")
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    # Resolved line amounts (receipt display; totals for itemized bills)
    line_subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    line_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    line_tax_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bill = db.relationship("Bill", backref=db.backref("items", lazy=True, order_by="BillItem.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_at_sale_cents": self.price_at_sale_cents,
            "unit_cost_at_sale_cents": self.unit_cost_at_sale_cents,
            "batch_number": self.batch_number,
            "discount_value": self.discount_value,
            "discount_type": self.discount_type,
            "tax_rate_bps": self.tax_rate_bps,
            "line_subtotal_cents": self.line_subtotal_cents,
            "line_discount_cents": self.line_discount_cents,
            "line_tax_cents": self.line_tax_cents,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
        }


class BillPayment(db.Model):
    """
    Append-only log of money received against a bill, including the
    initial payment taken at checkout.
    """
    __tablename__ = "bill_payments"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_bill_payments_amount_positive"),
        db.Index("ix_bill_payments_bill_paid", "bill_id", "paid_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_mode = db.Column(db.String(32), nullable=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bill = db.relationship("Bill", backref=db.backref("payments", lazy=True, order_by="BillPayment.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "amount_cents": self.amount_cents,
            "payment_mode": self.payment_mode,
            "paid_at": to_utc_z(self.paid_at),
        }
