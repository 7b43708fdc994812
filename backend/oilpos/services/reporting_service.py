# Overview: Read-only bill history and dashboard queries.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func, or_

from oilpos.extensions import db
from oilpos.models import Bill, Customer, Employee, Product
from oilpos.models.billing import PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_UNPAID
from oilpos.validation import NotFoundError, ValidationError, optional_int
from oilpos.time_utils import parse_date_bound, utcnow


def _parse_range(start: str | None, end: str | None):
    try:
        start_dt = parse_date_bound(start)
        end_dt = parse_date_bound(end, end=True)
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates")
    return start_dt, end_dt


def serialize_bill(bill: Bill) -> dict:
    """Bill with nested items, payments and returns (receipt/history shape)."""
    data = bill.to_dict()
    data["customer_name"] = bill.customer.name if bill.customer else None
    data["customer_phone"] = bill.customer.phone if bill.customer else None
    data["employee_name"] = bill.employee.name if bill.employee else None
    data["items"] = [item.to_dict() for item in bill.items]
    data["payments"] = [payment.to_dict() for payment in bill.payments]
    data["returns"] = [ret.to_dict() for ret in bill.returns]
    return data


def get_bills_by_filter(
    *,
    start: str | None = None,
    end: str | None = None,
    min_total_cents=None,
    max_total_cents=None,
    seller_name: str | None = None,
    customer_name: str | None = None,
    payment_status: str | None = None,
) -> list[dict]:
    """
    Bill history, newest first.

    - start/end: inclusive bounds; a bare date covers the whole day
    - min/max_total_cents: inclusive bounds on total_amount_cents
    - seller_name: substring of the bill's seller snapshot or employee name
    - customer_name: substring of the customer's name
    - payment_status: Paid, Partial or Unpaid
    """
    start_dt, end_dt = _parse_range(start, end)
    min_total = optional_int(min_total_cents, "min_total_cents")
    max_total = optional_int(max_total_cents, "max_total_cents")

    query = (
        db.session.query(Bill)
        .outerjoin(Employee, Bill.employee_id == Employee.id)
        .outerjoin(Customer, Bill.customer_id == Customer.id)
    )

    if start_dt:
        query = query.filter(Bill.bill_date >= start_dt)
    if end_dt:
        query = query.filter(Bill.bill_date <= end_dt)
    if min_total is not None:
        query = query.filter(Bill.total_amount_cents >= min_total)
    if max_total is not None:
        query = query.filter(Bill.total_amount_cents <= max_total)
    if seller_name:
        pattern = f"%{seller_name.strip()}%"
        query = query.filter(or_(Bill.seller_name.ilike(pattern), Employee.name.ilike(pattern)))
    if customer_name:
        query = query.filter(Customer.name.ilike(f"%{customer_name.strip()}%"))
    if payment_status:
        if payment_status not in (PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_UNPAID):
            raise ValidationError(f"Invalid payment status: {payment_status}")
        query = query.filter(Bill.payment_status == payment_status)

    bills = query.order_by(Bill.bill_date.desc(), Bill.id.desc()).all()
    return [serialize_bill(bill) for bill in bills]


def get_bill_detail(bill_id: int) -> dict:
    bill = db.session.get(Bill, bill_id)
    if not bill:
        raise NotFoundError(f"Bill {bill_id} not found")
    return serialize_bill(bill)


def get_dashboard_stats(low_stock_threshold: int = 10, recent_limit: int = 5, days: int = 7) -> dict:
    products_count = db.session.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar() or 0
    employees_count = db.session.query(func.count(Employee.id)).filter(Employee.is_active.is_(True)).scalar() or 0
    low_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.is_active.is_(True),
        Product.quantity < low_stock_threshold,
    ).scalar() or 0

    total_revenue = db.session.query(func.coalesce(func.sum(Bill.total_amount_cents), 0)).scalar() or 0
    outstanding = db.session.query(func.coalesce(func.sum(Bill.balance_due_cents), 0)).scalar() or 0

    recent = (
        db.session.query(Bill)
        .order_by(Bill.bill_date.desc(), Bill.id.desc())
        .limit(recent_limit)
        .all()
    )

    day = func.date(Bill.bill_date)
    since = utcnow() - timedelta(days=days)
    daily = (
        db.session.query(
            day.label("day"),
            func.coalesce(func.sum(Bill.total_amount_cents), 0).label("amount_cents"),
        )
        .filter(Bill.bill_date >= since)
        .group_by(day)
        .order_by(day.asc())
        .all()
    )

    return {
        "products": int(products_count),
        "employees": int(employees_count),
        "low_stock": int(low_stock_count),
        "low_stock_threshold": low_stock_threshold,
        "total_revenue_cents": int(total_revenue),
        "outstanding_balance_cents": int(outstanding),
        "recent_bills": [
            {
                "id": bill.id,
                "total_amount_cents": bill.total_amount_cents,
                "customer_name": bill.customer.name if bill.customer else None,
                "bill_date": bill.to_dict()["bill_date"],
                "payment_status": bill.payment_status,
            }
            for bill in recent
        ],
        "sales_by_day": [
            {"day": str(row.day), "amount_cents": int(row.amount_cents)}
            for row in daily
        ],
    }
