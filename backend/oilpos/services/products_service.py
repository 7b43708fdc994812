# backend/oilpos/services/products_service.py
"""
Products Service

Catalogue maintenance: products, categories and suppliers.

HISTORY: a product that appears on any bill item or return is never
deleted; delete_product deactivates it instead so old bills still resolve.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import BillItem, Category, Product, Return, Supplier
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "description",
    "quantity",
    "price_cents",
    "unit_cost_cents",
    "batch_number",
    "category_id",
    "supplier_id",
    "is_active",
}

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"name", "price_cents"},
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_references(patch: dict) -> None:
    if patch.get("category_id") is not None and not db.session.get(Category, patch["category_id"]):
        raise NotFoundError(f"Category {patch['category_id']} not found")
    if patch.get("supplier_id") is not None and not db.session.get(Supplier, patch["supplier_id"]):
        raise NotFoundError(f"Supplier {patch['supplier_id']} not found")


def list_products(include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def create_product(payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_references(patch)

    product = Product(quantity=0, unit_cost_cents=0, is_active=True)
    apply_product_patch(product, patch)

    db.session.add(product)
    db.session.commit()
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """
    Direct edit of a product. Bills already written keep their frozen
    price, cost and batch.
    """
    product = get_product(product_id)

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _check_references(patch)

    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(product_id: int) -> dict:
    """
    Delete a product, or deactivate it when bills or returns reference it.

    Returns:
        {"id": ..., "deleted": bool, "deactivated": bool}
    """
    product = get_product(product_id)

    referenced = (
        db.session.query(BillItem.id).filter_by(product_id=product_id).first() is not None
        or db.session.query(Return.id).filter_by(product_id=product_id).first() is not None
    )

    if referenced:
        product.is_active = False
        db.session.commit()
        logger.info("Deactivated product %s (referenced by bills)", product_id)
        return {"id": product_id, "deleted": False, "deactivated": True}

    db.session.delete(product)
    db.session.commit()
    return {"id": product_id, "deleted": True, "deactivated": False}


# =============================================================================
# CATEGORIES / SUPPLIERS
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def create_category(name: str) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if db.session.query(Category).filter_by(name=name).first():
        raise ConflictError(f"Category '{name}' already exists")

    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    return category


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()


def create_supplier(name: str, phone: str | None = None, address: str | None = None) -> Supplier:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if db.session.query(Supplier).filter_by(name=name).first():
        raise ConflictError(f"Supplier '{name}' already exists")

    supplier = Supplier(
        name=name,
        phone=(phone or "").strip() or None,
        address=(address or "").strip() or None,
    )
    db.session.add(supplier)
    db.session.commit()
    return supplier
