# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/oilpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Apply migrations and seed a default category, supplier and sample products when empty.
# - python -m flask system reset-db --yes
#   DEV/TEST only: migrate down to base and back up to head (deletes all data).
#
# Ledger audit:
# - python -m flask ledger verify [--customer-id 7]
#   Check every stored running balance against the sum of earlier entries.
#
# Stock inspection:
# - python -m flask products low-stock [--threshold 10]
#   List active products below the threshold.

import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import downgrade, upgrade

from .extensions import db
from .models import Category, Customer, Product, Supplier
from .money import format_cents
from .services.inventory_service import list_low_stock
from .services.ledger_service import verify_customer_ledger

SAMPLE_PRODUCTS = (
    # name, price_cents, unit_cost_cents, quantity
    ("Engine Oil 20W-40 1L", 45000, 38000, 40),
    ("Engine Oil 10W-30 1L", 52000, 44000, 30),
    ("Gear Oil 80W-90 1L", 39000, 32000, 20),
    ("Brake Fluid DOT4 500ml", 26000, 21000, 15),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the shop database.

    Applies pending migrations, then seeds a default category, supplier and
    a handful of sample products if the catalogue is empty. Safe to re-run.
    """
    click.echo("START Initializing oil POS...")

    upgrade()
    click.echo("PASS Schema is up to date")

    category = db.session.query(Category).filter_by(name="Lubricants").first()
    if not category:
        category = Category(name="Lubricants")
        db.session.add(category)
        click.echo("PASS Created category: Lubricants")

    supplier = db.session.query(Supplier).filter_by(name="Default Supplier").first()
    if not supplier:
        supplier = Supplier(name="Default Supplier")
        db.session.add(supplier)
        click.echo("PASS Created supplier: Default Supplier")

    db.session.flush()

    if db.session.query(Product.id).first() is None:
        for name, price, cost, quantity in SAMPLE_PRODUCTS:
            db.session.add(Product(
                name=name,
                price_cents=price,
                unit_cost_cents=cost,
                quantity=quantity,
                category_id=category.id,
                supplier_id=supplier.id,
                is_active=True,
            ))
        click.echo(f"PASS Seeded {len(SAMPLE_PRODUCTS)} sample products")
    else:
        click.echo("WARN  Products already exist, skipping sample data")

    db.session.commit()
    click.echo("DONE Oil POS initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Rebuild the schema through the migration chain.

    Every revision is downgraded to base, then upgraded to head, so
    alembic_version stays in step with the tables. This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    db.session.remove()

    click.echo("DELETE  Downgrading to base...")
    downgrade(revision="base")

    click.echo("BUILD  Upgrading to head...")
    upgrade()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed.")


@click.group('ledger')
def ledger_group():
    """Customer ledger audit commands."""


@ledger_group.command('verify')
@click.option('--customer-id', type=int, help='Only check this customer')
@with_appcontext
def verify_ledger(customer_id):
    """Verify stored running balances for one or all customers."""
    query = db.session.query(Customer).order_by(Customer.id.asc())
    if customer_id is not None:
        query = query.filter(Customer.id == customer_id)

    customers = query.all()
    if not customers:
        click.echo("No customers found")
        return

    broken_total = 0
    for customer in customers:
        broken = verify_customer_ledger(customer.id)
        if broken:
            broken_total += len(broken)
            click.echo(f"FAIL Customer {customer.id} ({customer.phone}): bad entries {broken}")
        else:
            click.echo(f"PASS Customer {customer.id} ({customer.phone})")

    if broken_total:
        raise click.ClickException(f"{broken_total} ledger entries do not match their running balance")


@click.group('products')
def products_group():
    """Stock inspection commands."""


@products_group.command('low-stock')
@click.option('--threshold', type=int, help='Quantity below which a product is low (defaults to LOW_STOCK_THRESHOLD)')
@with_appcontext
def low_stock(threshold):
    """List active products below the low-stock threshold."""
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]

    products = list_low_stock(threshold)
    if not products:
        click.echo(f"No products below {threshold}")
        return

    click.echo(f"{'ID':<6} {'Name':<30} {'Qty':>5} {'Price':>10}")
    click.echo("-" * 54)
    for product in products:
        click.echo(f"{product.id:<6} {product.name[:30]:<30} {product.quantity:>5} {format_cents(product.price_cents):>10}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(products_group)
