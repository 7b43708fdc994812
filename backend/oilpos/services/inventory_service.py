# Overview: Service-layer operations for stock on hand; encapsulates business logic and database work.

"""
Product stock ledger.

STOCK INVARIANT: products.quantity never goes below zero.

Every change is a single atomic UPDATE evaluated by the database
(quantity = quantity - :n), never a read-modify-write in Python, so the
invariant holds even if a second writer is ever added. Decrements are
guarded with WHERE quantity >= :n and report insufficient stock instead
of underflowing.
"""

from __future__ import annotations

import logging

from sqlalchemy import update

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, NotFoundError, require_non_negative_int, require_positive_int
from .concurrency import atomic

logger = logging.getLogger(__name__)


class InsufficientStockError(ConflictError):
    """Raised when a sale would take a product's stock below zero."""

    def __init__(self, product_id: int, requested: int, on_hand: int | None):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, on hand {on_hand}",
            details={"product_id": product_id, "requested_quantity": requested, "on_hand": on_hand},
        )
        self.product_id = product_id
        self.requested = requested
        self.on_hand = on_hand


def get_quantity_on_hand(product_id: int) -> int:
    quantity = db.session.query(Product.quantity).filter(Product.id == product_id).scalar()
    if quantity is None:
        raise NotFoundError(f"Product {product_id} not found")
    return quantity


def decrement_stock(product_id: int, quantity: int) -> None:
    """Take stock out for a sale. Runs inside the caller's transaction."""
    quantity = require_positive_int(quantity, "quantity")

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 1:
        return

    on_hand = get_quantity_on_hand(product_id)
    logger.warning("Insufficient stock for product %s: requested %s, on hand %s", product_id, quantity, on_hand)
    raise InsufficientStockError(product_id, quantity, on_hand)


def increment_stock(product_id: int, quantity: int) -> None:
    """Put stock back (return or restock). Runs inside the caller's transaction."""
    quantity = require_positive_int(quantity, "quantity")

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + quantity)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise NotFoundError(f"Product {product_id} not found")


def restock_product(
    product_id: int,
    quantity: int,
    unit_cost_cents: int | None = None,
    batch_number: str | None = None,
) -> Product:
    """
    Manual restock from a delivery.

    Optionally refreshes the cost basis and the lot on the shelf; bills
    already written keep the values frozen at their sale time.
    """
    quantity = require_positive_int(quantity, "quantity")
    if unit_cost_cents is not None:
        unit_cost_cents = require_non_negative_int(unit_cost_cents, "unit_cost_cents")

    def _op():
        product = db.session.get(Product, product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        increment_stock(product_id, quantity)

        if unit_cost_cents is not None:
            product.unit_cost_cents = unit_cost_cents
        if batch_number is not None:
            product.batch_number = batch_number.strip() or None

        return product

    product = atomic(_op)
    logger.info("Restocked product %s by %s", product_id, quantity)
    return product


def list_low_stock(threshold: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.quantity < threshold)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
