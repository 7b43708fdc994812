# Overview: Pytest coverage for product returns.

import pytest

from oilpos.models import CustomerLedgerEntry, Product, Return
from oilpos.services import return_service
from oilpos.services.billing_service import create_bill
from oilpos.services.return_service import ReturnError, process_return, returnable_quantity
from oilpos.validation import NotFoundError


@pytest.fixture
def paid_bill(db_session, product):
    """Customer bill of 212.40 (2 units), fully paid."""
    return create_bill(
        items=[{"product_id": product.id, "quantity": 2}],
        calculation_mode="global",
        customer={"name": "Ravi", "phone": "9999999999"},
        global_discount_value=1000,
        global_discount_type="percent",
        global_tax_rate_bps=1800,
    )


class TestProcessReturn:

    def test_return_restocks_and_credits_customer(self, db_session, product, paid_bill):
        process_return(paid_bill.id, product.id, 1, refund_amount_cents=10620, reason="defective")

        assert db_session.get(Product, product.id).quantity == 49

        last = (
            db_session.query(CustomerLedgerEntry)
            .filter_by(customer_id=paid_bill.customer_id)
            .order_by(CustomerLedgerEntry.id.desc())
            .first()
        )
        assert last.entry_type == "credit"
        assert last.amount_cents == 10620
        assert last.balance_cents == 10620
        assert "defective" in last.description

    def test_default_refund_is_pro_rata_share(self, db_session, product, paid_bill):
        return_doc = process_return(paid_bill.id, product.id, 1)

        assert return_doc.refund_amount_cents == 10620

    def test_default_refund_itemized(self, db_session, product):
        bill = create_bill(
            items=[{"product_id": product.id, "quantity": 3, "discount_value": 300, "tax_rate_bps": 500}],
            calculation_mode="itemized",
        )

        return_doc = process_return(bill.id, product.id, 2)

        # line total 29700 + 5% = 31185 for 3 units; 2 units -> 20790
        assert return_doc.refund_amount_cents == 20790

    def test_walk_in_return_has_no_ledger(self, db_session, product):
        bill = create_bill(items=[{"product_id": product.id, "quantity": 1}], calculation_mode="global")

        process_return(bill.id, product.id, 1, refund_amount_cents=10000)

        assert db_session.query(CustomerLedgerEntry).count() == 0
        assert db_session.get(Product, product.id).quantity == 50

    def test_cumulative_returns_capped_at_quantity_sold(self, db_session, product, paid_bill):
        process_return(paid_bill.id, product.id, 1)
        assert returnable_quantity(paid_bill.id, product.id) == 1

        with pytest.raises(ReturnError):
            process_return(paid_bill.id, product.id, 2)

        process_return(paid_bill.id, product.id, 1)
        assert returnable_quantity(paid_bill.id, product.id) == 0
        assert db_session.query(Return).count() == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, db_session, product, paid_bill, quantity):
        with pytest.raises(ReturnError):
            process_return(paid_bill.id, product.id, quantity)

    def test_negative_refund_rejected(self, db_session, product, paid_bill):
        with pytest.raises(ValueError):
            process_return(paid_bill.id, product.id, 1, refund_amount_cents=-1)

    def test_product_not_on_bill(self, db_session, make_product, paid_bill):
        other = make_product(name="Grease 500g")

        with pytest.raises(NotFoundError):
            process_return(paid_bill.id, other.id, 1)

    def test_unknown_bill(self, db_session, product):
        with pytest.raises(NotFoundError):
            process_return(987654, product.id, 1)


class TestStockConservation:

    def test_sales_and_returns_balance_stock(self, db_session, product):
        sold = [3, 1, 4]
        bills = [
            create_bill(items=[{"product_id": product.id, "quantity": n}], calculation_mode="global")
            for n in sold
        ]
        returned = [(bills[0], 2), (bills[2], 4), (bills[1], 1)]
        for bill, n in returned:
            process_return(bill.id, product.id, n)

        final = db_session.get(Product, product.id).quantity
        assert final == 50 - sum(sold) + sum(n for _, n in returned)


class TestReturnAtomicity:

    def test_ledger_failure_restores_stock(self, db_session, product, paid_bill, monkeypatch):
        def _boom(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(return_service, "append_ledger_entry", _boom)

        with pytest.raises(RuntimeError):
            process_return(paid_bill.id, product.id, 1, refund_amount_cents=10620)

        db_session.expire_all()
        assert db_session.get(Product, product.id).quantity == 48
        assert db_session.query(Return).count() == 0
        assert returnable_quantity(paid_bill.id, product.id) == 2
