# Overview: Pytest coverage for the customer ledger running balance.

import pytest

from oilpos.models import CustomerLedgerEntry
from oilpos.services.billing_service import create_bill
from oilpos.services.customer_service import search_customers, upsert_customer
from oilpos.services.ledger_service import (
    append_ledger_entry,
    get_customer_balance,
    get_customer_ledger,
    verify_customer_ledger,
)
from oilpos.services.payment_service import record_payment
from oilpos.services.return_service import process_return
from oilpos.validation import NotFoundError, ValidationError


def test_running_balance_over_mixed_activity(db_session, product):
    first = create_bill(
        items=[{"product_id": product.id, "quantity": 2}],
        calculation_mode="global",
        payment={"mode": "Cash", "status": "Unpaid"},
        customer={"name": "Meena", "phone": "9123456789"},
    )
    record_payment(first.id, 5000, "Cash")
    create_bill(
        items=[{"product_id": product.id, "quantity": 1}],
        calculation_mode="itemized",
        payment={"mode": "UPI", "status": "Partial", "amount_paid_cents": 2500},
        customer={"phone": "9123456789"},
    )
    process_return(first.id, product.id, 1, refund_amount_cents=10000)

    customer_id = first.customer_id
    entries = (
        db_session.query(CustomerLedgerEntry)
        .filter_by(customer_id=customer_id)
        .order_by(CustomerLedgerEntry.id.asc())
        .all()
    )

    previous = 0
    for entry in entries:
        assert entry.balance_cents == previous + entry.signed_amount_cents
        previous = entry.balance_cents

    # owes 200 - 50 + 100 - 25 - 100
    assert get_customer_balance(customer_id) == -12500
    assert verify_customer_ledger(customer_id) == []


def test_ledger_is_newest_first(db_session, product):
    bill = create_bill(
        items=[{"product_id": product.id, "quantity": 1}],
        calculation_mode="global",
        payment={"mode": "Cash", "status": "Partial", "amount_paid_cents": 4000},
        customer={"phone": "9000012345"},
    )

    entries = get_customer_ledger(bill.customer_id)

    assert [e.entry_type for e in entries] == ["credit", "debit"]
    assert entries[0].id > entries[1].id


def test_verify_flags_tampered_balance(db_session):
    customer = upsert_customer("Anil", "9555500000")
    append_ledger_entry(customer_id=customer.id, entry_type="debit", amount_cents=1000)
    bad = append_ledger_entry(customer_id=customer.id, entry_type="credit", amount_cents=400)
    db_session.commit()

    bad.balance_cents = 0
    db_session.commit()

    assert verify_customer_ledger(customer.id) == [bad.id]


def test_invalid_entry_type_rejected(db_session):
    customer = upsert_customer(None, "9555500001")

    with pytest.raises(ValidationError):
        append_ledger_entry(customer_id=customer.id, entry_type="refund", amount_cents=100)


def test_unknown_customer_ledger(db_session):
    with pytest.raises(NotFoundError):
        get_customer_ledger(31337)


def test_search_by_name_or_phone(db_session):
    upsert_customer("Ravi Kumar", "9999999999")
    upsert_customer("Kavita", "9888800000")
    upsert_customer(None, "9777700000")
    db_session.commit()

    assert [c.name for c in search_customers("ravi")] == ["Ravi Kumar"]
    assert [c.phone for c in search_customers("98888")] == ["9888800000"]
    assert search_customers("   ") == []
    assert len(search_customers("9", limit=2)) == 2
