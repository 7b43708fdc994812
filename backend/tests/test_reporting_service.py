# Overview: Pytest coverage for bill history filters and dashboard stats.

import pytest

from oilpos.services.billing_service import create_bill
from oilpos.services.reporting_service import get_bill_detail, get_bills_by_filter, get_dashboard_stats
from oilpos.validation import NotFoundError, ValidationError


@pytest.fixture
def history(db_session, make_product, employee):
    """Three bills on different days, sellers and payment states."""
    oil = make_product(name="Engine Oil 10W-30", price_cents=50000, quantity=100)

    march_1 = create_bill(
        items=[{"product_id": oil.id, "quantity": 1}],
        calculation_mode="global",
        customer={"name": "Ravi Kumar", "phone": "9999999999"},
        bill_date="2026-03-01T10:15:00",
    )
    march_2 = create_bill(
        items=[{"product_id": oil.id, "quantity": 2}],
        calculation_mode="global",
        employee_id=employee.id,
        payment={"mode": "Cash", "status": "Partial", "amount_paid_cents": 30000},
        customer={"name": "Meena", "phone": "9123456789"},
        bill_date="2026-03-02T18:40:00",
    )
    march_5 = create_bill(
        items=[{"product_id": oil.id, "quantity": 4}],
        calculation_mode="itemized",
        employee_id=employee.id,
        payment={"mode": "Credit", "status": "Unpaid"},
        customer={"name": "Ravi Kumar", "phone": "9999999999"},
        bill_date="2026-03-05T09:00:00",
    )
    return {"march_1": march_1, "march_2": march_2, "march_5": march_5}


def _ids(rows):
    return [row["id"] for row in rows]


class TestBillsByFilter:

    def test_no_filters_returns_newest_first(self, db_session, history):
        rows = get_bills_by_filter()

        assert _ids(rows) == [history["march_5"].id, history["march_2"].id, history["march_1"].id]

    def test_date_range_is_inclusive_of_whole_days(self, db_session, history):
        rows = get_bills_by_filter(start="2026-03-01", end="2026-03-02")

        assert _ids(rows) == [history["march_2"].id, history["march_1"].id]

    def test_total_range(self, db_session, history):
        rows = get_bills_by_filter(min_total_cents=100000, max_total_cents="100000")

        assert _ids(rows) == [history["march_2"].id]

    def test_seller_filter_matches_employee(self, db_session, history):
        rows = get_bills_by_filter(seller_name="sure")

        assert _ids(rows) == [history["march_5"].id, history["march_2"].id]

    def test_owner_bills_match_owner_snapshot(self, db_session, history):
        rows = get_bills_by_filter(seller_name="Owner")

        assert _ids(rows) == [history["march_1"].id]

    def test_customer_filter(self, db_session, history):
        rows = get_bills_by_filter(customer_name="ravi")

        assert _ids(rows) == [history["march_5"].id, history["march_1"].id]
        assert all(row["customer_phone"] == "9999999999" for row in rows)

    def test_status_filter(self, db_session, history):
        assert _ids(get_bills_by_filter(payment_status="Partial")) == [history["march_2"].id]
        assert _ids(get_bills_by_filter(payment_status="Unpaid")) == [history["march_5"].id]

    def test_invalid_status_rejected(self, db_session, history):
        with pytest.raises(ValidationError):
            get_bills_by_filter(payment_status="Overdue")

    def test_invalid_date_rejected(self, db_session, history):
        with pytest.raises(ValidationError):
            get_bills_by_filter(start="03/01/2026")

    def test_rows_carry_items_and_payments(self, db_session, history):
        row = get_bills_by_filter(payment_status="Partial")[0]

        assert row["employee_name"] == "Suresh"
        assert [item["quantity"] for item in row["items"]] == [2]
        assert [p["amount_cents"] for p in row["payments"]] == [30000]
        assert row["returns"] == []


def test_bill_detail_not_found(db_session):
    with pytest.raises(NotFoundError):
        get_bill_detail(55555)


def test_dashboard_stats(db_session, make_product, employee):
    oil = make_product(name="Engine Oil 20W-50", price_cents=20000, quantity=12)
    make_product(name="Brake Fluid", price_cents=9000, quantity=3)

    create_bill(items=[{"product_id": oil.id, "quantity": 5}], calculation_mode="global")
    create_bill(
        items=[{"product_id": oil.id, "quantity": 1}],
        calculation_mode="global",
        payment={"mode": "Cash", "status": "Unpaid"},
        customer={"phone": "9000000000"},
    )

    stats = get_dashboard_stats(low_stock_threshold=10)

    assert stats["products"] == 2
    assert stats["employees"] == 1
    assert stats["low_stock"] == 2
    assert stats["total_revenue_cents"] == 120000
    assert stats["outstanding_balance_cents"] == 20000
    assert len(stats["recent_bills"]) == 2
    assert sum(day["amount_cents"] for day in stats["sales_by_day"]) == 120000
