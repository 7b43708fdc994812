# Overview: Pytest coverage for follow-up payments on credit bills.

import pytest

from oilpos.models import Bill, BillPayment, CustomerLedgerEntry
from oilpos.services import payment_service
from oilpos.services.billing_service import create_bill
from oilpos.services.payment_service import PaymentError, get_payment_summary, record_payment
from oilpos.validation import NotFoundError


@pytest.fixture
def credit_bill(db_session, product):
    """Bill of 212.40 with 100.00 paid at checkout."""
    return create_bill(
        items=[{"product_id": product.id, "quantity": 2}],
        calculation_mode="global",
        payment={"mode": "Cash", "status": "Partial", "amount_paid_cents": 10000},
        customer={"name": "Ravi", "phone": "9999999999"},
        global_discount_value=1000,
        global_discount_type="percent",
        global_tax_rate_bps=1800,
    )


def _assert_closed(bill):
    assert bill.amount_paid_cents + bill.balance_due_cents == bill.total_amount_cents
    assert (bill.payment_status == "Paid") == (bill.balance_due_cents == 0)


class TestRecordPayment:

    def test_settling_balance_marks_bill_paid(self, db_session, credit_bill):
        bill = record_payment(credit_bill.id, 11240, "UPI")

        assert bill.balance_due_cents == 0
        assert bill.amount_paid_cents == 21240
        assert bill.payment_status == "Paid"
        assert bill.payment_mode == "UPI"
        _assert_closed(bill)

        last = (
            db_session.query(CustomerLedgerEntry)
            .filter_by(customer_id=bill.customer_id)
            .order_by(CustomerLedgerEntry.id.desc())
            .first()
        )
        assert last.entry_type == "credit"
        assert last.amount_cents == 11240
        assert last.balance_cents == 0

    def test_installments_keep_payment_closure(self, db_session, credit_bill):
        for amount in (1000, 2500, 40):
            bill = record_payment(credit_bill.id, amount, "Cash")
            assert bill.payment_status == "Partial"
            _assert_closed(bill)

        bill = record_payment(credit_bill.id, 11240 - 3540, "Card")
        assert bill.payment_status == "Paid"
        _assert_closed(bill)

        payments = db_session.query(BillPayment).filter_by(bill_id=bill.id).order_by(BillPayment.id).all()
        assert [p.amount_cents for p in payments] == [10000, 1000, 2500, 40, 7700]

    def test_overpayment_rejected(self, db_session, credit_bill):
        with pytest.raises(PaymentError):
            record_payment(credit_bill.id, 11241, "Cash")

        summary = get_payment_summary(credit_bill.id)
        assert summary["balance_due_cents"] == 11240
        assert len(summary["payments"]) == 1

    def test_paid_bill_rejects_more_payments(self, db_session, credit_bill):
        record_payment(credit_bill.id, 11240, "Cash")

        with pytest.raises(PaymentError):
            record_payment(credit_bill.id, 1, "Cash")

    @pytest.mark.parametrize("amount", [0, -500])
    def test_non_positive_amount_rejected(self, db_session, credit_bill, amount):
        with pytest.raises(PaymentError):
            record_payment(credit_bill.id, amount, "Cash")

    def test_missing_mode_rejected(self, db_session, credit_bill):
        with pytest.raises(PaymentError):
            record_payment(credit_bill.id, 100, "  ")

    def test_unknown_bill(self, db_session):
        with pytest.raises(NotFoundError):
            record_payment(424242, 100, "Cash")


class TestPaymentAtomicity:

    def test_ledger_failure_leaves_bill_untouched(self, db_session, credit_bill, monkeypatch):
        def _boom(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(payment_service, "append_ledger_entry", _boom)

        with pytest.raises(RuntimeError):
            record_payment(credit_bill.id, 5000, "UPI")

        db_session.expire_all()
        bill = db_session.get(Bill, credit_bill.id)
        assert bill.amount_paid_cents == 10000
        assert bill.balance_due_cents == 11240
        assert bill.payment_status == "Partial"
        assert db_session.query(BillPayment).filter_by(bill_id=bill.id).count() == 1
        assert db_session.query(CustomerLedgerEntry).filter_by(customer_id=bill.customer_id).count() == 2
