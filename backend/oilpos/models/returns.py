from __future__ import annotations

from ..extensions import db
from oilpos.time_utils import to_utc_z


class Return(db.Model):
    """
    Product returned against a bill.

    WHY: Returns restock the product and refund the customer without
    touching the original BillItem, which stays the record of the sale.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_returns_quantity_positive"),
        db.CheckConstraint("refund_amount_cents >= 0", name="ck_returns_refund_non_negative"),
        db.Index("ix_returns_bill_product", "bill_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    refund_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    reason = db.Column(db.String(255), nullable=True)

    returned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bill = db.relationship("Bill", backref=db.backref("returns", lazy=True, order_by="Return.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "refund_amount_cents": self.refund_amount_cents,
            "reason": self.reason,
            "returned_at": to_utc_z(self.returned_at),
        }
