"""Returns and the customer ledger

Revision ID: 0002_returns_and_ledger
Revises: 0001_core_schema
Create Date: 2026-10-05
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_returns_and_ledger"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "customer_ledger",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("bill_id", sa.Integer(), sa.ForeignKey("bills.id"), nullable=True),
        sa.Column("entry_type", sa.String(length=8), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("entry_type IN ('debit', 'credit')", name="ck_customer_ledger_entry_type"),
        sa.CheckConstraint("amount_cents >= 0", name="ck_customer_ledger_amount_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_ledger_customer_id_id", "customer_ledger", ["customer_id", "id"], unique=False)
    op.create_index("ix_customer_ledger_bill_id", "customer_ledger", ["bill_id"], unique=False)

    op.create_table(
        "returns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("bill_id", sa.Integer(), sa.ForeignKey("bills.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("refund_amount_cents", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("returned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_returns_quantity_positive"),
        sa.CheckConstraint("refund_amount_cents >= 0", name="ck_returns_refund_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_returns_bill_product", "returns", ["bill_id", "product_id"], unique=False)
    op.create_index("ix_returns_bill_id", "returns", ["bill_id"], unique=False)
    op.create_index("ix_returns_product_id", "returns", ["product_id"], unique=False)


def downgrade():
    op.drop_index("ix_returns_product_id", table_name="returns")
    op.drop_index("ix_returns_bill_id", table_name="returns")
    op.drop_index("ix_returns_bill_product", table_name="returns")
    op.drop_table("returns")

    op.drop_index("ix_customer_ledger_bill_id", table_name="customer_ledger")
    op.drop_index("ix_customer_ledger_customer_id_id", table_name="customer_ledger")
    op.drop_table("customer_ledger")
