"""
Pytest fixtures for oil POS backend tests.

Provides an in-memory database, per-test table wipes, the Flask test
client, and small factories for products and employees.
"""

import pytest

from oilpos import create_app
from oilpos.extensions import db
from oilpos.models import Employee, Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTO_MIGRATE': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for catalogue products (price/cost in cents)."""
    def _make(name="Engine Oil 20W-40 1L", price_cents=10000, unit_cost_cents=7000, quantity=50, **extra):
        product = Product(
            name=name,
            price_cents=price_cents,
            unit_cost_cents=unit_cost_cents,
            quantity=quantity,
            is_active=True,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """A product priced at 100.00 with 50 units on hand."""
    return make_product()


@pytest.fixture(scope='function')
def employee(db_session):
    employee = Employee(name="Suresh", phone="9000000001", joining_date="2025-04-01", is_active=True)
    db_session.add(employee)
    db_session.commit()
    return employee
