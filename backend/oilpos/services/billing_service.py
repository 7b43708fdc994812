# Overview: Service-layer operations for checkout; encapsulates business logic and database work.

"""
Billing Transaction Coordinator

WHY: A checkout touches customers, bills, bill items, stock, payments and
the customer ledger. All of it commits together or not at all.

DESIGN PRINCIPLES:
- Totals are computed here by the calculation engine, never trusted from
  the client.
- Cost basis (unit_cost_at_sale_cents) is re-read from the product row at
  sale time, never accepted from the client.
- Stock is decremented with a guarded atomic UPDATE; a line that would
  oversell aborts the whole bill.
- Payment input is resolved once, at the boundary, into ResolvedPayment.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Bill, BillItem, BillPayment, Employee, Product
from ..models.billing import CALCULATION_MODE_GLOBAL, PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_UNPAID
from ..models.ledger import ENTRY_CREDIT, ENTRY_DEBIT
from ..money import ADJUSTMENT_AMOUNT
from ..validation import NotFoundError, ValidationError, coerce_int, optional_int, require_positive_int
from oilpos.time_utils import parse_iso_datetime, utcnow
from .billing_calculator import BillBreakdown, BillingError, CartLine, calculate_bill, validate_mode
from .concurrency import atomic
from .customer_service import normalize_phone, upsert_customer
from .inventory_service import decrement_stock
from .ledger_service import append_ledger_entry

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = (PAYMENT_STATUS_PAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_UNPAID)


# =============================================================================
# PAYMENT CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class ResolvedPayment:
    mode: str
    status: str
    amount_paid_cents: int
    balance_due_cents: int


@dataclass(frozen=True)
class PaymentConfig:
    """
    Canonical checkout payment input.

    status None means "paid in full with this mode".
    """
    mode: str
    status: str | None = None
    amount_paid_cents: int | None = None

    def settle(self, total_cents: int) -> ResolvedPayment:
        """Resolve the paid amount, balance and normalized status for a bill total."""
        if self.status in (None, PAYMENT_STATUS_PAID):
            paid = total_cents
        elif self.status == PAYMENT_STATUS_UNPAID:
            paid = 0
        else:
            if self.amount_paid_cents is None:
                raise BillingError("amount_paid_cents is required for Partial payment")
            paid = self.amount_paid_cents
            if paid < 0:
                raise BillingError("amount_paid_cents must be >= 0")
            if paid > total_cents:
                raise BillingError(
                    "amount_paid_cents cannot exceed the bill total",
                    details={"amount_paid_cents": paid, "total_amount_cents": total_cents},
                )

        balance = total_cents - paid
        if balance == 0:
            status = PAYMENT_STATUS_PAID
        elif paid == 0:
            status = PAYMENT_STATUS_UNPAID
        else:
            status = PAYMENT_STATUS_PARTIAL

        return ResolvedPayment(mode=self.mode, status=status, amount_paid_cents=paid, balance_due_cents=balance)


def resolve_payment_config(raw: Any, default_mode: str = "Cash") -> PaymentConfig:
    """
    Accept either a bare payment mode ("Cash", "UPI") or a mapping
    {mode, status, amount_paid_cents[, balance_due_cents]}.

    A client-supplied balance_due_cents is ignored; the balance is always
    recomputed from the server-side total.
    """
    if raw is None:
        return PaymentConfig(mode=default_mode)

    if isinstance(raw, str):
        mode = raw.strip() or default_mode
        return PaymentConfig(mode=mode)

    if not isinstance(raw, Mapping):
        raise ValidationError("payment must be a mode string or an object")

    mode = str(raw.get("mode") or default_mode).strip() or default_mode
    status = raw.get("status")
    if status is not None and status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status: {status}. Must be one of {list(PAYMENT_STATUSES)}")

    return PaymentConfig(
        mode=mode,
        status=status,
        amount_paid_cents=optional_int(raw.get("amount_paid_cents"), "amount_paid_cents"),
    )


# =============================================================================
# LINE INPUT
# =============================================================================

@dataclass(frozen=True)
class BillLineInput:
    product_id: int
    quantity: int
    unit_price_cents: int | None = None
    batch_number: str | None = None
    discount_value: int = 0
    discount_type: str = ADJUSTMENT_AMOUNT
    tax_rate_bps: int = 0


def parse_bill_lines(items: Any) -> list[BillLineInput]:
    if not isinstance(items, (list, tuple)) or not items:
        raise BillingError("items must be a non-empty list")

    lines = []
    for index, raw in enumerate(items):
        if isinstance(raw, BillLineInput):
            lines.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise BillingError(f"items[{index}] must be an object")
        if raw.get("product_id") is None:
            raise BillingError(f"items[{index}].product_id is required")

        batch = raw.get("batch_number")
        lines.append(BillLineInput(
            product_id=coerce_int(raw["product_id"], f"items[{index}].product_id"),
            quantity=require_positive_int(raw.get("quantity"), f"items[{index}].quantity"),
            unit_price_cents=optional_int(raw.get("unit_price_cents"), f"items[{index}].unit_price_cents"),
            batch_number=(str(batch).strip() or None) if batch is not None else None,
            discount_value=coerce_int(raw.get("discount_value", 0) or 0, f"items[{index}].discount_value"),
            discount_type=str(raw.get("discount_type") or ADJUSTMENT_AMOUNT).strip(),
            tax_rate_bps=coerce_int(raw.get("tax_rate_bps", 0) or 0, f"items[{index}].tax_rate_bps"),
        ))
    return lines


def _load_products(lines: list[BillLineInput]) -> dict[int, Product]:
    product_ids = {line.product_id for line in lines}
    products = db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    by_id = {p.id: p for p in products}

    missing = sorted(product_ids - by_id.keys())
    if missing:
        raise NotFoundError(f"Product {missing[0]} not found")

    inactive = sorted(p.id for p in products if not p.is_active)
    if inactive:
        raise BillingError(f"Product {inactive[0]} is no longer sold", details={"product_ids": inactive})

    return by_id


def _cart_lines(lines: list[BillLineInput], products: dict[int, Product]) -> list[CartLine]:
    cart = []
    for line in lines:
        unit_price = line.unit_price_cents
        if unit_price is None:
            unit_price = products[line.product_id].price_cents
        cart.append(CartLine(
            unit_price_cents=unit_price,
            quantity=line.quantity,
            discount_value=line.discount_value,
            discount_type=line.discount_type,
            tax_rate_bps=line.tax_rate_bps,
        ))
    return cart


def _resolve_seller(employee_id: int | None, seller_name: str | None) -> str:
    if employee_id is not None:
        employee = db.session.get(Employee, employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if not employee.is_active:
            raise BillingError(f"Employee {employee_id} is inactive")
        return (seller_name or "").strip() or employee.name

    return (seller_name or "").strip() or current_app.config.get("OWNER_SELLER_NAME", "Owner")


def _coerce_bill_date(bill_date: datetime | str | None) -> datetime:
    if bill_date is None:
        return utcnow()
    if isinstance(bill_date, datetime):
        return bill_date
    if not isinstance(bill_date, str):
        raise ValidationError("bill_date must be an ISO-8601 datetime")
    try:
        parsed = parse_iso_datetime(bill_date)
    except ValueError:
        raise ValidationError("bill_date must be an ISO-8601 datetime")
    return parsed or utcnow()


# =============================================================================
# CHECKOUT
# =============================================================================

def preview_bill(
    *,
    items: Any,
    calculation_mode: str,
    global_discount_value: int = 0,
    global_discount_type: str = ADJUSTMENT_AMOUNT,
    global_tax_rate_bps: int = 0,
) -> BillBreakdown:
    """Totals for a cart without writing anything (live cart display)."""
    validate_mode(calculation_mode)
    lines = parse_bill_lines(items)
    products = _load_products(lines)
    return calculate_bill(
        _cart_lines(lines, products),
        calculation_mode,
        global_discount_value=global_discount_value,
        global_discount_type=global_discount_type,
        global_tax_rate_bps=global_tax_rate_bps,
    )


def create_bill(
    *,
    items: Any,
    calculation_mode: str,
    payment: Any = None,
    employee_id: int | None = None,
    customer: Mapping | None = None,
    seller_name: str | None = None,
    global_discount_value: int = 0,
    global_discount_type: str = ADJUSTMENT_AMOUNT,
    global_tax_rate_bps: int = 0,
    bill_date: datetime | str | None = None,
) -> Bill:
    """
    Create a bill and everything it implies, atomically.

    Args:
        items: cart lines {product_id, quantity, unit_price_cents?, batch_number?,
            discount_value, discount_type, tax_rate_bps}
        calculation_mode: "global" or "itemized"
        payment: mode string or {mode, status, amount_paid_cents}
        employee_id: seller (None = owner)
        customer: {name, phone}; no phone means walk-in (no ledger)
        global_*: bill-level discount/tax (global mode only)

    Returns:
        The committed Bill

    Raises:
        BillingError / ValidationError: invalid input (nothing written)
        NotFoundError: unknown product or employee (nothing written)
        InsufficientStockError: a line would oversell (nothing written)
    """
    validate_mode(calculation_mode)
    lines = parse_bill_lines(items)
    payment_config = resolve_payment_config(
        payment, default_mode=current_app.config.get("DEFAULT_PAYMENT_MODE", "Cash")
    )
    employee_id = optional_int(employee_id, "employee_id")
    when = _coerce_bill_date(bill_date)

    customer = customer or {}
    if not isinstance(customer, Mapping):
        raise ValidationError("customer must be an object with name and phone")
    customer_phone = normalize_phone(customer.get("phone"))
    customer_name = customer.get("name")

    def _op():
        products = _load_products(lines)
        cart = _cart_lines(lines, products)
        breakdown = calculate_bill(
            cart,
            calculation_mode,
            global_discount_value=global_discount_value,
            global_discount_type=global_discount_type,
            global_tax_rate_bps=global_tax_rate_bps,
        )
        settled = payment_config.settle(breakdown.total_cents)

        if settled.balance_due_cents > 0 and not customer_phone:
            raise ValidationError("A customer phone is required for bills with a balance due")

        seller = _resolve_seller(employee_id, seller_name)

        # 1. Customer resolution
        customer_id = None
        if customer_phone:
            customer_id = upsert_customer(customer_name, customer_phone).id

        # 2. Bill header
        is_global = calculation_mode == CALCULATION_MODE_GLOBAL
        bill = Bill(
            bill_date=when,
            employee_id=employee_id,
            customer_id=customer_id,
            seller_name=seller,
            payment_mode=settled.mode,
            subtotal_cents=breakdown.subtotal_cents,
            total_amount_cents=breakdown.total_cents,
            discount_value=coerce_int(global_discount_value, "global_discount_value") if is_global else 0,
            discount_type=global_discount_type if is_global else ADJUSTMENT_AMOUNT,
            discount_amount_cents=breakdown.discount_cents,
            tax_rate_bps=coerce_int(global_tax_rate_bps, "global_tax_rate_bps") if is_global else 0,
            tax_amount_cents=breakdown.tax_cents,
            calculation_mode=calculation_mode,
            payment_status=settled.status,
            amount_paid_cents=settled.amount_paid_cents,
            balance_due_cents=settled.balance_due_cents,
        )
        db.session.add(bill)
        db.session.flush()

        # 3. Initial payment
        if settled.amount_paid_cents > 0:
            db.session.add(BillPayment(
                bill_id=bill.id,
                amount_cents=settled.amount_paid_cents,
                payment_mode=settled.mode,
                paid_at=when,
            ))

        # 4. Items + stock
        for line, cart_line, line_breakdown in zip(lines, cart, breakdown.lines):
            product = products[line.product_id]
            db.session.add(BillItem(
                bill_id=bill.id,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                price_at_sale_cents=cart_line.unit_price_cents,
                unit_cost_at_sale_cents=product.unit_cost_cents,
                batch_number=line.batch_number or product.batch_number,
                discount_value=line.discount_value,
                discount_type=line.discount_type,
                tax_rate_bps=line.tax_rate_bps,
                line_subtotal_cents=line_breakdown.base_cents,
                line_discount_cents=line_breakdown.discount_cents,
                line_tax_cents=line_breakdown.tax_cents,
                line_total_cents=line_breakdown.total_cents,
            ))
            decrement_stock(product.id, line.quantity)

        # 5. Customer ledger
        if customer_id is not None:
            append_ledger_entry(
                customer_id=customer_id,
                entry_type=ENTRY_DEBIT,
                amount_cents=bill.total_amount_cents,
                bill_id=bill.id,
                description=f"Bill #{bill.id}",
                occurred_at=when,
            )
            if settled.amount_paid_cents > 0:
                append_ledger_entry(
                    customer_id=customer_id,
                    entry_type=ENTRY_CREDIT,
                    amount_cents=settled.amount_paid_cents,
                    bill_id=bill.id,
                    description=f"Payment for bill #{bill.id} ({settled.mode})",
                    occurred_at=when,
                )

        return bill

    bill = atomic(_op)
    logger.info(
        "Created bill %s: total=%s status=%s customer=%s",
        bill.id, bill.total_amount_cents, bill.payment_status, bill.customer_id,
    )
    return bill

