# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer
from ..validation import NotFoundError, ValidationError
from oilpos.time_utils import utcnow


def normalize_phone(phone: str | None) -> str | None:
    if phone is None:
        return None
    cleaned = str(phone).strip()
    return cleaned or None


def upsert_customer(name: str | None, phone: str) -> Customer:
    """
    Find a customer by phone or create one. The phone is the natural key;
    on a repeat visit only the stored name is refreshed.

    Runs inside the caller's transaction: flushes, never commits.
    """
    phone = normalize_phone(phone)
    if not phone:
        raise ValidationError("customer phone is required")

    name = (name or "").strip() or None

    customer = db.session.query(Customer).filter_by(phone=phone).first()
    if customer:
        if name and customer.name != name:
            customer.name = name
        return customer

    customer = Customer(name=name, phone=phone, created_at=utcnow())
    db.session.add(customer)
    db.session.flush()
    return customer


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def search_customers(query: str, limit: int = 5) -> list[Customer]:
    """Substring search on name or phone."""
    query = (query or "").strip()
    if not query:
        return []
    pattern = f"%{query}%"
    return (
        db.session.query(Customer)
        .filter(or_(Customer.name.ilike(pattern), Customer.phone.like(pattern)))
        .order_by(Customer.name.asc(), Customer.id.asc())
        .limit(limit)
        .all()
    )
