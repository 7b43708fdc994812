# Overview: Pytest coverage for products, categories, suppliers, employees and restocking.

import pytest

from oilpos.models import Product
from oilpos.services import employee_service, products_service
from oilpos.services.billing_service import create_bill
from oilpos.services.inventory_service import list_low_stock, restock_product
from oilpos.validation import ConflictError, NotFoundError, ValidationError


class TestProducts:

    def test_create_and_update(self, db_session):
        category = products_service.create_category("Engine Oil")
        product = products_service.create_product({
            "name": "Castrol 20W-40 1L",
            "price_cents": "45000",
            "unit_cost_cents": 38000,
            "quantity": 24,
            "category_id": category.id,
        })

        assert product.id is not None
        assert product.price_cents == 45000
        assert product.is_active is True

        updated = products_service.update_product(product.id, {"price_cents": 46000, "batch_number": " LOT-9 "})
        assert updated.price_cents == 46000
        assert updated.batch_number == "LOT-9"

    def test_missing_required_fields(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product({"name": "No price"})

    def test_negative_quantity_rejected(self, db_session, product):
        with pytest.raises(ValidationError):
            products_service.update_product(product.id, {"quantity": -1})

    def test_unknown_field_rejected(self, db_session, product):
        with pytest.raises(ValidationError):
            products_service.update_product(product.id, {"version_id": 3})

    def test_decimal_price_rejected(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product({"name": "Grease", "price_cents": 12.5})

    def test_unknown_category(self, db_session):
        with pytest.raises(NotFoundError):
            products_service.create_product({"name": "Grease", "price_cents": 100, "category_id": 999})

    def test_delete_unsold_product(self, db_session, product):
        result = products_service.delete_product(product.id)

        assert result == {"id": product.id, "deleted": True, "deactivated": False}
        assert db_session.get(Product, product.id) is None

    def test_delete_sold_product_deactivates(self, db_session, product):
        create_bill(items=[{"product_id": product.id, "quantity": 1}], calculation_mode="global")

        result = products_service.delete_product(product.id)

        assert result["deactivated"] is True
        assert db_session.get(Product, product.id).is_active is False
        assert products_service.list_products() == []
        assert len(products_service.list_products(include_inactive=True)) == 1

    def test_duplicate_category_conflict(self, db_session):
        products_service.create_category("Grease")

        with pytest.raises(ConflictError):
            products_service.create_category("Grease")

    def test_supplier(self, db_session):
        supplier = products_service.create_supplier("Gulf Traders", phone="022-5550000", address="")

        assert supplier.address is None
        assert [s.name for s in products_service.list_suppliers()] == ["Gulf Traders"]


class TestRestock:

    def test_restock_adds_quantity_and_refreshes_cost(self, db_session, product):
        restocked = restock_product(product.id, 10, unit_cost_cents=7500, batch_number="LOT-2026-10")

        assert restocked.quantity == 60
        assert restocked.unit_cost_cents == 7500
        assert restocked.batch_number == "LOT-2026-10"

    def test_restock_requires_positive_quantity(self, db_session, product):
        with pytest.raises(ValidationError):
            restock_product(product.id, 0)

    def test_restock_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            restock_product(8080, 5)

    def test_low_stock_ordering(self, db_session, make_product):
        make_product(name="A", quantity=9)
        make_product(name="B", quantity=2)
        make_product(name="C", quantity=10)

        assert [p.name for p in list_low_stock(10)] == ["B", "A"]


class TestEmployees:

    def test_create_update_and_delete(self, db_session):
        employee = employee_service.create_employee({"name": "Asha", "salary_cents": 1500000})
        employee_service.update_employee(employee.id, {"phone": "9000011111"})

        assert employee_service.get_employee(employee.id).phone == "9000011111"
        assert employee_service.delete_employee(employee.id)["deleted"] is True

    def test_negative_salary_rejected(self, db_session):
        with pytest.raises(ValidationError):
            employee_service.create_employee({"name": "Asha", "salary_cents": -1})

    def test_seller_with_bills_is_deactivated(self, db_session, product, employee):
        create_bill(items=[{"product_id": product.id, "quantity": 1}], calculation_mode="global",
                    employee_id=employee.id)

        result = employee_service.delete_employee(employee.id)

        assert result["deactivated"] is True
        assert employee_service.list_employees() == []
